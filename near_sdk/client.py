"""Async JSON-RPC client for a NEAR node.

:class:`NearClient` provides typed methods for the node endpoints the SDK
relies on. All I/O uses :mod:`httpx` so the client is fully async and
compatible with ``asyncio``. Transport failures are translated into
:class:`~near_sdk.exceptions.RpcUnreachableError`; JSON-RPC error objects
into :class:`~near_sdk.exceptions.NearRpcError` and its subclasses.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from near_sdk.exceptions import (
    AccountNotFoundError,
    NearRpcError,
    RejectedBySyntaxError,
    RpcUnreachableError,
)
from near_sdk.types import (
    AccountView,
    SignedTransaction,
    TransactionStatusResponse,
    ViewFunctionResponse,
)

logger = logging.getLogger(__name__)


class NearClient:
    """Async JSON-RPC client for a NEAR node.

    Args:
        node_url: Base URL of the node (e.g. ``"http://localhost:3030"``).
        timeout: Default request timeout in seconds.

    Example::

        async with NearClient("http://localhost:3030") as client:
            view = await client.view_account("alice.near")
    """

    def __init__(self, node_url: str, *, timeout: float = 15.0) -> None:
        self._node_url = node_url.rstrip("/")
        self._timeout = timeout
        self._request_id = 0
        self._client: httpx.AsyncClient | None = None

    # ----- lifecycle -------------------------------------------------------

    async def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self._node_url,
                timeout=self._timeout,
            )
        return self._client

    async def close(self) -> None:
        """Close the underlying HTTP connection pool."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()

    async def __aenter__(self) -> "NearClient":
        await self._ensure_client()
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    # ----- internal helpers ------------------------------------------------

    def _next_id(self) -> int:
        self._request_id += 1
        return self._request_id

    async def _call(self, method: str, params: dict[str, Any] | None = None) -> Any:
        """Send a JSON-RPC 2.0 request and return the ``result`` field."""
        client = await self._ensure_client()
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params or {},
            "id": self._next_id(),
        }
        logger.debug("rpc %s id=%d", method, payload["id"])
        try:
            resp = await client.post("/", json=payload)
        except httpx.TimeoutException as exc:
            raise RpcUnreachableError(f"request to {self._node_url} timed out") from exc
        except httpx.TransportError as exc:
            raise RpcUnreachableError(f"cannot reach {self._node_url}: {exc}") from exc

        if resp.status_code >= 500:
            raise RpcUnreachableError(
                f"node {self._node_url} answered HTTP {resp.status_code}"
            )
        if resp.status_code >= 400:
            raise NearRpcError(code=resp.status_code, message=resp.text or resp.reason_phrase)

        try:
            body = resp.json()
        except ValueError as exc:
            raise RpcUnreachableError(f"response to {method} is not JSON") from exc
        if not isinstance(body, dict):
            raise RpcUnreachableError(f"response to {method} is not a JSON object")
        if body.get("error") is not None:
            err = body["error"]
            message = err.get("message", "unknown error")
            error_cls = AccountNotFoundError if "does not exist" in message else NearRpcError
            raise error_cls(code=err.get("code", -1), message=message, data=err.get("data"))
        return body.get("result")

    # ----- public API ------------------------------------------------------

    async def view_account(self, account_id: str) -> AccountView:
        """Fetch nonce, balance, code hash and stake of an account.

        Raises:
            AccountNotFoundError: If the account does not exist.
        """
        result = await self._call("view_account", {"account_id": account_id})
        return AccountView.model_validate(result)

    async def submit_transaction(self, signed_tx: SignedTransaction) -> str:
        """Hand a signed transaction to the node and return its hash.

        Returns as soon as the node has accepted the transaction for
        processing; it may still be pending.

        Raises:
            RejectedBySyntaxError: If the node refuses the transaction.
            RpcUnreachableError: If the node cannot be reached.
        """
        try:
            result = await self._call(
                "submit_transaction",
                {"signed_transaction": signed_tx.model_dump(mode="json")},
            )
        except NearRpcError as exc:
            raise RejectedBySyntaxError(code=exc.code, message=exc.message, data=exc.data) from exc
        return str(result["hash"])

    async def tx_status(self, tx_hash: str) -> TransactionStatusResponse:
        """Query the current status of a transaction by hash."""
        result = await self._call("tx_status", {"hash": tx_hash})
        return TransactionStatusResponse.model_validate(result)

    async def call_view_function(
        self, contract_id: str, method_name: str, args: dict[str, Any] | None = None
    ) -> ViewFunctionResponse:
        """Run a read-only contract method; no transaction is created."""
        result = await self._call(
            "call_view_function",
            {"contract_id": contract_id, "method_name": method_name, "args": args or {}},
        )
        return ViewFunctionResponse.model_validate(result)
