"""Core types for the NEAR Python SDK.

All public-facing data structures are Pydantic v2 models. Keys and
signatures travel as base58 strings, binary blobs (contract code, return
values) as base64, and account ids as validated plain strings.
"""

from __future__ import annotations

import base64
import json
import re
from enum import Enum
from typing import Annotated, Any, Literal, Union

import base58
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    GetCoreSchemaHandler,
    field_serializer,
    field_validator,
)
from pydantic_core import CoreSchema, core_schema

# ---------------------------------------------------------------------------
# Annotated scalar types
# ---------------------------------------------------------------------------

_ACCOUNT_ID_RE = re.compile(r"^(([a-z\d]+[\-_])*[a-z\d]+\.)*([a-z\d]+[\-_])*[a-z\d]+$")
_ACCOUNT_ID_MIN = 2
_ACCOUNT_ID_MAX = 64

_ED25519_PREFIX = "ed25519:"


def _decode_base64(v: Any) -> bytes:
    if isinstance(v, str):
        return base64.b64decode(v)
    if isinstance(v, (bytes, bytearray)):
        return bytes(v)
    if isinstance(v, list):
        return bytes(v)
    raise ValueError("expected bytes, a list of ints or a base64 string")


class AccountId(str):
    """A human-readable account name such as ``alice.near``.

    Subclasses ``str`` so it serialises natively as a JSON string while
    still enforcing format on creation.
    """

    @classmethod
    def __get_pydantic_core_schema__(
        cls, _source_type: Any, handler: GetCoreSchemaHandler
    ) -> CoreSchema:
        return core_schema.no_info_plain_validator_function(cls._validate)

    @classmethod
    def _validate(cls, v: str) -> "AccountId":
        if not isinstance(v, str):
            raise ValueError("AccountId must be a string")
        if not _ACCOUNT_ID_MIN <= len(v) <= _ACCOUNT_ID_MAX:
            raise ValueError(
                f"AccountId must be {_ACCOUNT_ID_MIN}-{_ACCOUNT_ID_MAX} characters, got {len(v)}"
            )
        if not _ACCOUNT_ID_RE.match(v):
            raise ValueError(f"invalid account id {v!r}")
        return cls(v)


class PublicKey(bytes):
    """32-byte Ed25519 public key with base58 serialisation."""

    @classmethod
    def __get_pydantic_core_schema__(
        cls, _source_type: Any, handler: GetCoreSchemaHandler
    ) -> CoreSchema:
        return core_schema.no_info_plain_validator_function(
            cls._validate,
            serialization=core_schema.plain_serializer_function_ser_schema(
                lambda v: v.to_base58(), when_used="json"
            ),
        )

    @classmethod
    def _validate(cls, v: bytes | str) -> "PublicKey":
        if isinstance(v, str):
            if v.startswith(_ED25519_PREFIX):
                v = v[len(_ED25519_PREFIX):]
            try:
                v = base58.b58decode(v)
            except ValueError as exc:
                raise ValueError(f"invalid base58 public key: {exc}") from exc
        if len(v) != 32:
            raise ValueError(f"public key must be 32 bytes, got {len(v)}")
        return cls(v)

    def to_base58(self) -> str:
        return base58.b58encode(bytes(self)).decode("ascii")


class Signature(bytes):
    """64-byte Ed25519 signature with base58 serialisation."""

    @classmethod
    def __get_pydantic_core_schema__(
        cls, _source_type: Any, handler: GetCoreSchemaHandler
    ) -> CoreSchema:
        return core_schema.no_info_plain_validator_function(
            cls._validate,
            serialization=core_schema.plain_serializer_function_ser_schema(
                lambda v: v.to_base58(), when_used="json"
            ),
        )

    @classmethod
    def _validate(cls, v: bytes | str) -> "Signature":
        if isinstance(v, str):
            v = base58.b58decode(v)
        if len(v) != 64:
            raise ValueError(f"signature must be 64 bytes, got {len(v)}")
        return cls(v)

    def to_base58(self) -> str:
        return base58.b58encode(bytes(self)).decode("ascii")


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class TransactionStatus(str, Enum):
    """Status of a transaction as reported by the node."""

    UNKNOWN = "Unknown"
    NOT_STARTED = "NotStarted"
    STARTED = "Started"
    PENDING = "Pending"
    COMPLETED = "Completed"
    FAILED = "Failed"

    @property
    def is_terminal(self) -> bool:
        return self in (TransactionStatus.COMPLETED, TransactionStatus.FAILED)


class OutcomeStatus(str, Enum):
    """Terminal result of waiting on a transaction, as seen by the client."""

    COMPLETED = "Completed"
    FAILED = "Failed"
    UNKNOWN = "Unknown"


# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------


class CreateAccount(BaseModel):
    """Create ``new_account_id`` owned by ``public_key`` and fund it with ``amount``."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["create_account"] = "create_account"
    new_account_id: AccountId
    public_key: PublicKey
    amount: Annotated[int, Field(ge=0)] = 0


class DeployContract(BaseModel):
    """Attach WASM ``code`` to ``contract_id``."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["deploy_contract"] = "deploy_contract"
    contract_id: AccountId
    code: bytes

    @field_validator("code", mode="before")
    @classmethod
    def _parse_code(cls, v: Any) -> bytes:
        return _decode_base64(v)

    @field_serializer("code", when_used="json")
    def _serialize_code(self, v: bytes) -> str:
        return base64.b64encode(v).decode("ascii")


class FrozenArgs(dict):
    """A ``dict`` that rejects mutation, so signed call arguments stay fixed."""

    def _readonly(self, *args: Any, **kwargs: Any) -> Any:
        raise TypeError("function call arguments are immutable")

    __setitem__ = __delitem__ = __ior__ = _readonly
    clear = pop = popitem = setdefault = update = _readonly

    def __copy__(self) -> "FrozenArgs":
        return self

    def __deepcopy__(self, memo: dict) -> "FrozenArgs":
        return self

    def __reduce__(self) -> tuple:
        return (FrozenArgs, (dict(self),))


def _freeze(value: Any) -> Any:
    if isinstance(value, dict):
        return FrozenArgs((k, _freeze(v)) for k, v in value.items())
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(v) for v in value)
    return value


class FunctionCall(BaseModel):
    """Invoke ``method_name`` on ``contract_id`` with JSON ``args``, attaching ``amount``.

    ``args`` is copied and frozen on construction: nested dicts become
    :class:`FrozenArgs` and lists become tuples.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["function_call"] = "function_call"
    contract_id: AccountId
    method_name: Annotated[str, Field(min_length=1)]
    args: dict[str, Any] = Field(default_factory=FrozenArgs)
    amount: Annotated[int, Field(ge=0)] = 0

    @field_validator("args", mode="after")
    @classmethod
    def _freeze_args(cls, v: dict[str, Any]) -> FrozenArgs:
        return _freeze(v)

    def args_bytes(self) -> bytes:
        """Compact JSON encoding of ``args`` with key order preserved."""
        return json.dumps(self.args, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


class Transfer(BaseModel):
    """Move ``amount`` from the originator to ``receiver_id``."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["transfer"] = "transfer"
    receiver_id: AccountId
    amount: Annotated[int, Field(ge=0)]


Action = Annotated[
    Union[CreateAccount, DeployContract, FunctionCall, Transfer],
    Field(discriminator="kind"),
]


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------


class Transaction(BaseModel):
    """An unsigned transaction: who sends it, in which order, and what it does."""

    model_config = ConfigDict(frozen=True)

    originator: AccountId
    nonce: Annotated[int, Field(ge=0)]
    action: Action


class SignedTransaction(BaseModel):
    """A transaction with its Ed25519 signature, signer key and hash."""

    model_config = ConfigDict(frozen=True)

    transaction: Transaction
    signature: Signature
    public_key: PublicKey
    hash: str


class TransactionHandle(BaseModel):
    """What the node hands back on submission; ``hash`` is the polling key."""

    model_config = ConfigDict(frozen=True)

    hash: str
    originator: AccountId
    nonce: int


class TransactionOutcome(BaseModel):
    """Result of waiting on a transaction.

    ``UNKNOWN`` means the client stopped polling; it says nothing about
    whether the transaction will eventually succeed.
    """

    model_config = ConfigDict(frozen=True)

    status: OutcomeStatus
    hash: str
    value: bytes | None = None
    logs: list[str] = Field(default_factory=list)
    reason: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status is not OutcomeStatus.UNKNOWN

    def decoded_value(self) -> Any:
        """Return the JSON-decoded return value, or ``None`` when empty."""
        return decode_result(self.value)


def decode_result(raw: bytes | None) -> Any:
    """Decode a contract return value.

    Contracts return JSON; anything that does not parse is handed back as
    text, and bytes that are not UTF-8 are handed back unchanged.
    """
    if not raw:
        return None
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError:
        return bytes(raw)
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return text


# ---------------------------------------------------------------------------
# Node responses
# ---------------------------------------------------------------------------


class AccountView(BaseModel):
    """On-chain state for a single account."""

    nonce: Annotated[int, Field(ge=0)]
    account_id: AccountId
    amount: Annotated[int, Field(ge=0)]
    code_hash: str
    stake: Annotated[int, Field(ge=0)] = 0


class TransactionStatusResponse(BaseModel):
    """Payload of a ``tx_status`` query."""

    status: TransactionStatus
    logs: list[str] = Field(default_factory=list)
    value: bytes | None = None
    error: str | None = None

    @field_validator("value", mode="before")
    @classmethod
    def _parse_value(cls, v: Any) -> bytes | None:
        if v is None:
            return None
        return _decode_base64(v)


class ViewFunctionResponse(BaseModel):
    """Payload of a ``call_view_function`` query."""

    result: bytes = b""
    logs: list[str] = Field(default_factory=list)

    @field_validator("result", mode="before")
    @classmethod
    def _parse_result(cls, v: Any) -> bytes:
        return _decode_base64(v)
