"""The connection object tying every SDK component together.

:class:`Near` is built once from a :class:`~near_sdk.config.NearConfig` and
owns the node client, key store, signer, nonce tracker, transaction builder,
submitter and result poller. Facades (:class:`~near_sdk.account.Account`,
:class:`~near_sdk.contract.Contract`) are thin layers on top of it.
"""

from __future__ import annotations

import logging
from typing import Any, Sequence

from near_sdk.account import Account
from near_sdk.client import NearClient
from near_sdk.config import NearConfig, create_default_config
from near_sdk.contract import Contract, emit_contract_logs
from near_sdk.exceptions import (
    AmbiguousTimeoutError,
    ExecutionFailedError,
    RejectedBySyntaxError,
)
from near_sdk.key_store import InMemoryKeyStore, KeyStore, UnencryptedFileSystemKeyStore
from near_sdk.nonce import NonceTracker
from near_sdk.poller import ResultPoller
from near_sdk.signer import Signer
from near_sdk.submitter import Submitter
from near_sdk.transaction import TransactionBuilder, make_intent
from near_sdk.types import (
    Action,
    DeployContract,
    FunctionCall,
    OutcomeStatus,
    SignedTransaction,
    TransactionHandle,
    TransactionOutcome,
    Transfer,
    decode_result,
)

logger = logging.getLogger(__name__)


class Near:
    """A connection to one node.

    Args:
        config: Connection settings. Defaults to :func:`create_default_config`.
        key_store: Key store backend. Defaults to a file-system store when
            ``config.key_store_path`` is set, an in-memory store otherwise.
        client: Pre-built node client, mostly useful in tests.

    Example::

        async with Near(NearConfig(node_url="http://localhost:3030")) as near:
            handle = await near.send_tokens(1, "alice.near", "bob.near")
            outcome = await near.wait_for_transaction_result(handle)
    """

    def __init__(
        self,
        config: NearConfig | None = None,
        *,
        key_store: KeyStore | None = None,
        client: NearClient | None = None,
    ) -> None:
        self._config = config or create_default_config()
        self._client = client or NearClient(
            self._config.node_url, timeout=self._config.request_timeout
        )
        if key_store is None:
            if self._config.key_store_path:
                key_store = UnencryptedFileSystemKeyStore(
                    self._config.key_store_path, self._config.network_id
                )
            else:
                key_store = InMemoryKeyStore()
        self._key_store = key_store
        self._signer = Signer(key_store)
        self._nonces = NonceTracker(self._client)
        self._builder = TransactionBuilder(self._nonces, self._signer)
        self._submitter = Submitter(self._client)
        self._poller = ResultPoller(
            self._client,
            timeout=self._config.wait_timeout,
            interval=self._config.poll_interval,
            max_interval=self._config.max_poll_interval,
            backoff=self._config.poll_backoff,
        )

    # ----- lifecycle -------------------------------------------------------

    async def close(self) -> None:
        await self._client.close()

    async def __aenter__(self) -> "Near":
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    # ----- properties ------------------------------------------------------

    @property
    def config(self) -> NearConfig:
        return self._config

    @property
    def client(self) -> NearClient:
        return self._client

    @property
    def key_store(self) -> KeyStore:
        return self._key_store

    @property
    def signer(self) -> Signer:
        return self._signer

    @property
    def nonces(self) -> NonceTracker:
        return self._nonces

    @property
    def builder(self) -> TransactionBuilder:
        return self._builder

    @property
    def poller(self) -> ResultPoller:
        return self._poller

    def account(self) -> Account:
        """Account-management facade bound to this connection."""
        return Account(self)

    # ----- transaction pipeline -------------------------------------------

    async def submit(self, signed_tx: SignedTransaction) -> TransactionHandle:
        """Submit an already signed transaction.

        When the node rejects it, the originator's nonce tracker is told to
        re-read the chain before issuing another nonce. The rejected
        transaction itself is never retried.
        """
        try:
            return await self._submitter.submit(signed_tx)
        except RejectedBySyntaxError:
            originator = signed_tx.transaction.originator
            logger.warning(
                "node rejected transaction %s from %s, resyncing nonce",
                signed_tx.hash,
                originator,
            )
            await self._nonces.reset(originator)
            raise

    async def send_transaction(self, originator: str, intent: Action) -> TransactionHandle:
        """Build, sign and submit *intent*; return the handle without waiting."""
        signed_tx = await self._builder.build(originator, intent)
        return await self.submit(signed_tx)

    async def wait_for_transaction_result(
        self,
        handle: TransactionHandle | str,
        *,
        timeout: float | None = None,
    ) -> TransactionOutcome:
        """Wait for *handle* and return its Completed outcome.

        Raises:
            ExecutionFailedError: The node reports the transaction failed.
            AmbiguousTimeoutError: Polling stopped before a terminal state;
                the transaction may still complete.
        """
        outcome = await self._poller.wait(handle, timeout=timeout)
        if outcome.status is OutcomeStatus.FAILED:
            raise ExecutionFailedError(outcome.hash, outcome.reason or "", outcome.logs)
        if outcome.status is OutcomeStatus.UNKNOWN:
            budget = self._config.wait_timeout if timeout is None else timeout
            raise AmbiguousTimeoutError(outcome.hash, budget)
        return outcome

    # ----- convenience scheduling -----------------------------------------

    async def deploy_contract(self, contract_id: str, code: bytes) -> TransactionHandle:
        """Deploy WASM *code* to *contract_id*, signed by the contract account itself."""
        intent = make_intent(DeployContract, contract_id=contract_id, code=bytes(code))
        return await self.send_transaction(contract_id, intent)

    async def schedule_function_call(
        self,
        amount: int,
        originator: str,
        contract_id: str,
        method_name: str,
        args: dict[str, Any] | None = None,
    ) -> TransactionHandle:
        """Submit a change call and return its handle for manual polling."""
        intent = make_intent(
            FunctionCall,
            contract_id=contract_id,
            method_name=method_name,
            args=args or {},
            amount=amount,
        )
        return await self.send_transaction(originator, intent)

    async def send_tokens(self, amount: int, originator: str, receiver_id: str) -> TransactionHandle:
        """Transfer *amount* from *originator* to *receiver_id*."""
        intent = make_intent(Transfer, receiver_id=receiver_id, amount=amount)
        return await self.send_transaction(originator, intent)

    # ----- reads -----------------------------------------------------------

    async def call_view_function(
        self,
        contract_id: str,
        method_name: str,
        args: dict[str, Any] | None = None,
    ) -> Any:
        """Run a read-only method and return its JSON-decoded result.

        No transaction is built: nonces, keys and polling are not involved.
        """
        response = await self._client.call_view_function(contract_id, method_name, args)
        emit_contract_logs(contract_id, response.logs)
        return decode_result(response.result)

    async def load_contract(
        self,
        contract_id: str,
        *,
        sender: str,
        view_methods: Sequence[str] = (),
        change_methods: Sequence[str] = (),
    ) -> Contract:
        """Return a :class:`Contract` exposing the given methods as coroutines."""
        return Contract(
            self,
            contract_id,
            sender=sender,
            view_methods=view_methods,
            change_methods=change_methods,
        )
