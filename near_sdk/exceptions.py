"""Exception hierarchy for the NEAR Python SDK.

Every error raised by the SDK derives from :class:`NearError`. The split
between :class:`ExecutionFailedError` and :class:`AmbiguousTimeoutError`
matters to callers: the first means the node executed the transaction and
reported a failure, the second only means the client stopped watching.
"""

from __future__ import annotations

from typing import Any


class NearError(Exception):
    """Base class for all SDK errors."""


# ---------------------------------------------------------------------------
# Construction-time errors
# ---------------------------------------------------------------------------


class KeyNotFoundError(NearError):
    """Raised when the key store has no active key pair for an account."""

    def __init__(self, account_id: str) -> None:
        self.account_id = account_id
        super().__init__(f"no key pair found for account {account_id!r}")


class InvalidIntentError(NearError, ValueError):
    """Raised when a transaction intent is malformed."""


# ---------------------------------------------------------------------------
# Transport / node errors
# ---------------------------------------------------------------------------


class NearClientError(NearError):
    """Base class for errors talking to the node."""


class RpcUnreachableError(NearClientError):
    """Raised when the SDK cannot reach the node at the transport level."""


class NearRpcError(NearClientError):
    """Raised when the node returns a JSON-RPC error response."""

    def __init__(self, code: int, message: str, data: Any = None) -> None:
        self.code = code
        self.message = message
        self.data = data
        super().__init__(f"RPC error {code}: {message}")


class AccountNotFoundError(NearRpcError):
    """Raised when the queried account does not exist on chain."""


class RejectedBySyntaxError(NearRpcError):
    """Raised when the node refuses a transaction before queuing it.

    Typical causes are a stale nonce or a bad signature. The same signed
    transaction must never be resubmitted.
    """


# ---------------------------------------------------------------------------
# Outcome errors
# ---------------------------------------------------------------------------


class ExecutionFailedError(NearError):
    """Raised when the node reports that a transaction failed."""

    def __init__(self, tx_hash: str, reason: str, logs: list[str]) -> None:
        self.tx_hash = tx_hash
        self.reason = reason
        self.logs = list(logs)
        super().__init__(f"Transaction {tx_hash} failed. {reason}")


class AmbiguousTimeoutError(NearError):
    """Raised when polling gave up before the transaction reached a terminal state.

    The transaction may still complete later; poll the same hash again to find
    out.
    """

    def __init__(self, tx_hash: str, timeout: float) -> None:
        self.tx_hash = tx_hash
        self.timeout = timeout
        super().__init__(
            f"transaction {tx_hash} did not reach a terminal state within {timeout}s; "
            "outcome unknown"
        )
