"""Shared fixtures: an in-process fake node behind ``httpx.MockTransport``.

The fake node keeps accounts, verifies signatures, enforces unique nonces
per account, executes a tiny "hello" contract, and reports transaction
status through ``tx_status`` after a configurable number of pending polls.
"""

from __future__ import annotations

import base64
import hashlib
import json
from typing import Any, Callable

import base58
import httpx
import pytest
import pytest_asyncio

from near_sdk.client import NearClient
from near_sdk.config import NearConfig
from near_sdk.key_pair import KeyPair
from near_sdk.key_store import InMemoryKeyStore
from near_sdk.near import Near
from near_sdk.transaction import compute_transaction_hash, verify_transaction
from near_sdk.types import (
    CreateAccount,
    DeployContract,
    FunctionCall,
    SignedTransaction,
    Transfer,
)

ALICE = "alice.near"
ALICE_SEED = b"\x01" * 32
ALICE_BALANCE = 1_000_000
DEFAULT_CODE_HASH = "GKot5hBsd81kMupNCXHaqbhv3huEbxAFMLnpcX2hniwn"
HELLO_WASM = b"\x00asm\x01\x00\x00\x00hello"

ABORT_LINE = 'ABORT: "expected to fail" filename: "main.ts" line: 35 col: 3'
RUNTIME_ERROR_LINE = (
    "Runtime error: wasm async call execution failed with error: "
    'Wasmer(CallError(Runtime(User { msg: "Error: AssertFailed" })))'
)


class ContractAbort(Exception):
    def __init__(self, logs: list[str]) -> None:
        self.logs = logs
        super().__init__("contract aborted")


# ---------------------------------------------------------------------------
# Simulated "hello" contract
# ---------------------------------------------------------------------------


def _hello(storage: dict, args: dict) -> tuple[Any, list[str]]:
    return f"hello {args.get('name', '')}", []


def _get_value(storage: dict, args: dict) -> tuple[Any, list[str]]:
    return storage.get("value"), []


def _return_hi_with_logs(storage: dict, args: dict) -> tuple[Any, list[str]]:
    return "Hi", ["LOG: loooog1", "LOG: loooog2"]


def _set_value(storage: dict, args: dict) -> tuple[Any, list[str]]:
    storage["value"] = args["value"]
    return args["value"], []


def _generate_logs(storage: dict, args: dict) -> tuple[Any, list[str]]:
    return None, ["LOG: log1", "LOG: log2"]


def _trigger_assert(storage: dict, args: dict) -> tuple[Any, list[str]]:
    raise ContractAbort(["LOG: log before assert", ABORT_LINE, RUNTIME_ERROR_LINE])


def _test_set_remove(storage: dict, args: dict) -> tuple[Any, list[str]]:
    storage["tmp"] = args.get("value")
    del storage["tmp"]
    return None, []


VIEW_METHODS: dict[str, Callable[[dict, dict], tuple[Any, list[str]]]] = {
    "hello": _hello,
    "getValue": _get_value,
    "returnHiWithLogs": _return_hi_with_logs,
}

CHANGE_METHODS: dict[str, Callable[[dict, dict], tuple[Any, list[str]]]] = {
    "setValue": _set_value,
    "generateLogs": _generate_logs,
    "triggerAssert": _trigger_assert,
    "testSetRemove": _test_set_remove,
}


def _encode_value(value: Any) -> str | None:
    if value is None:
        return None
    return base64.b64encode(json.dumps(value).encode("utf-8")).decode("ascii")


def _rpc_result(req_id: int, result: Any) -> httpx.Response:
    return httpx.Response(200, json={"jsonrpc": "2.0", "id": req_id, "result": result})


def _rpc_error(req_id: int, code: int, message: str) -> httpx.Response:
    return httpx.Response(
        200,
        json={"jsonrpc": "2.0", "id": req_id, "error": {"code": code, "message": message}},
    )


# ---------------------------------------------------------------------------
# Fake node
# ---------------------------------------------------------------------------


class FakeNode:
    """Minimal in-memory node speaking the SDK's JSON-RPC dialect.

    Attributes:
        pending_polls: How many ``tx_status`` queries report ``Started``
            before the terminal status is revealed.
        stall: When true, transactions never leave ``Started``.
        status_failures: Number of upcoming ``tx_status`` queries answered
            with HTTP 503.
        calls: Method names of every RPC request received, in order.
    """

    def __init__(self) -> None:
        self.accounts: dict[str, dict[str, Any]] = {}
        self.used_nonces: dict[str, set[int]] = {}
        self.txs: dict[str, dict[str, Any]] = {}
        self.storage: dict[str, dict[str, Any]] = {}
        self.pending_polls = 1
        self.stall = False
        self.status_failures = 0
        self.calls: list[str] = []

    # ----- setup helpers ---------------------------------------------------

    def add_account(self, account_id: str, amount: int, public_key: bytes, nonce: int = 0) -> None:
        self.accounts[account_id] = {
            "nonce": nonce,
            "amount": amount,
            "code_hash": DEFAULT_CODE_HASH,
            "stake": 0,
            "keys": {bytes(public_key)},
            "code": None,
            "base_nonce": nonce,
        }
        self.used_nonces[account_id] = set()

    def view(self, account_id: str) -> dict[str, Any]:
        acc = self.accounts[account_id]
        return {
            "nonce": acc["nonce"],
            "account_id": account_id,
            "amount": acc["amount"],
            "code_hash": acc["code_hash"],
            "stake": acc["stake"],
        }

    # ----- transport -------------------------------------------------------

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        method = body["method"]
        params = body.get("params", {})
        req_id = body.get("id", 1)
        self.calls.append(method)

        if method == "view_account":
            account_id = params["account_id"]
            if account_id not in self.accounts:
                return _rpc_error(req_id, -32000, f"account {account_id} does not exist while viewing")
            return _rpc_result(req_id, self.view(account_id))

        if method == "submit_transaction":
            return self._submit(req_id, params["signed_transaction"])

        if method == "tx_status":
            if self.status_failures > 0:
                self.status_failures -= 1
                return httpx.Response(503, text="node busy")
            return self._status(req_id, params["hash"])

        if method == "call_view_function":
            return self._view_call(req_id, params)

        return _rpc_error(req_id, -32601, f"Method not found: {method}")

    # ----- methods ---------------------------------------------------------

    def _submit(self, req_id: int, raw: dict[str, Any]) -> httpx.Response:
        signed = SignedTransaction.model_validate(raw)
        tx = signed.transaction
        account = self.accounts.get(tx.originator)
        if account is None:
            return _rpc_error(req_id, -32000, f"originator {tx.originator} does not exist")
        if not verify_transaction(signed) or bytes(signed.public_key) not in account["keys"]:
            return _rpc_error(req_id, -32000, "invalid signature")
        used = self.used_nonces[tx.originator]
        if tx.nonce in used or tx.nonce <= account["base_nonce"]:
            return _rpc_error(req_id, -32000, f"invalid nonce {tx.nonce}")

        used.add(tx.nonce)
        account["nonce"] = max(account["nonce"], tx.nonce)
        tx_hash = compute_transaction_hash(tx)
        self.txs[tx_hash] = {"polls": 0, "result": self._execute(tx)}
        return _rpc_result(req_id, {"hash": tx_hash})

    def _execute(self, tx: Any) -> dict[str, Any]:
        action = tx.action
        sender = self.accounts[tx.originator]

        if isinstance(action, CreateAccount):
            if action.new_account_id in self.accounts:
                return {"status": "Failed", "logs": [], "error": "account already exists"}
            if sender["amount"] < action.amount:
                return {"status": "Failed", "logs": [], "error": "insufficient balance"}
            sender["amount"] -= action.amount
            self.add_account(action.new_account_id, action.amount, bytes(action.public_key))
            return {"status": "Completed", "logs": []}

        if isinstance(action, DeployContract):
            if action.contract_id != tx.originator:
                return {"status": "Failed", "logs": [], "error": "can only deploy to own account"}
            sender["code"] = action.code
            sender["code_hash"] = base58.b58encode(hashlib.sha256(action.code).digest()).decode()
            self.storage.setdefault(action.contract_id, {})
            return {"status": "Completed", "logs": []}

        if isinstance(action, Transfer):
            if action.receiver_id not in self.accounts:
                return {"status": "Failed", "logs": [], "error": "receiver does not exist"}
            if sender["amount"] < action.amount:
                return {"status": "Failed", "logs": [], "error": "insufficient balance"}
            sender["amount"] -= action.amount
            self.accounts[action.receiver_id]["amount"] += action.amount
            return {"status": "Completed", "logs": []}

        if isinstance(action, FunctionCall):
            contract = self.accounts.get(action.contract_id)
            if contract is None or contract["code"] is None:
                return {"status": "Failed", "logs": [], "error": "contract not deployed"}
            fn = CHANGE_METHODS.get(action.method_name) or VIEW_METHODS.get(action.method_name)
            if fn is None:
                return {"status": "Failed", "logs": [], "error": f"method {action.method_name} not found"}
            try:
                value, logs = fn(self.storage[action.contract_id], action.args)
            except ContractAbort as exc:
                return {"status": "Failed", "logs": exc.logs}
            return {"status": "Completed", "logs": logs, "value": _encode_value(value)}

        return {"status": "Failed", "logs": [], "error": "unknown action"}

    def _status(self, req_id: int, tx_hash: str) -> httpx.Response:
        entry = self.txs.get(tx_hash)
        if entry is None:
            return _rpc_result(req_id, {"status": "Unknown", "logs": []})
        entry["polls"] += 1
        if self.stall or entry["polls"] <= self.pending_polls:
            return _rpc_result(req_id, {"status": "Started", "logs": []})
        return _rpc_result(req_id, entry["result"])

    def _view_call(self, req_id: int, params: dict[str, Any]) -> httpx.Response:
        contract_id = params["contract_id"]
        fn = VIEW_METHODS.get(params["method_name"])
        if contract_id not in self.storage or fn is None:
            return _rpc_error(req_id, -32000, f"cannot call {params['method_name']} on {contract_id}")
        value, logs = fn(dict(self.storage[contract_id]), params.get("args", {}))
        return _rpc_result(req_id, {"result": _encode_value(value) or "", "logs": logs})


def build_mock_client(handler: Callable[[httpx.Request], httpx.Response]) -> NearClient:
    """Create a NearClient backed by a mock transport (no real I/O)."""
    client = NearClient("http://localhost:3030")
    client._client = httpx.AsyncClient(
        transport=httpx.MockTransport(handler),
        base_url="http://localhost:3030",
    )
    return client


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def alice_key() -> KeyPair:
    return KeyPair.from_seed(ALICE_SEED)


@pytest.fixture()
def fake_node(alice_key: KeyPair) -> FakeNode:
    node = FakeNode()
    node.add_account(ALICE, ALICE_BALANCE, alice_key.public_key)
    return node


@pytest.fixture()
def config() -> NearConfig:
    return NearConfig(
        node_url="http://localhost:3030",
        wait_timeout=2.0,
        poll_interval=0.01,
        max_poll_interval=0.02,
    )


@pytest_asyncio.fixture()
async def key_store(alice_key: KeyPair) -> InMemoryKeyStore:
    store = InMemoryKeyStore()
    await store.set_key(ALICE, alice_key)
    return store


@pytest_asyncio.fixture()
async def near(config: NearConfig, key_store: InMemoryKeyStore, fake_node: FakeNode):
    conn = Near(config, key_store=key_store, client=build_mock_client(fake_node))
    yield conn
    await conn.close()
