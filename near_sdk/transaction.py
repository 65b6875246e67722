"""Transaction construction, signing, and verification.

:class:`TransactionBuilder` turns an intent (one of the action models in
:mod:`near_sdk.types`) into a signed transaction. The canonical byte layout
produced by :func:`signable_bytes` is what gets signed and hashed, so it
must stay stable across releases.
"""

from __future__ import annotations

import hashlib
import struct
from typing import TYPE_CHECKING, Any, TypeVar

import base58
from pydantic import BaseModel, ValidationError

from near_sdk.exceptions import InvalidIntentError
from near_sdk.key_pair import KeyPair, verify_signature
from near_sdk.types import (
    AccountId,
    CreateAccount,
    DeployContract,
    FunctionCall,
    SignedTransaction,
    Transaction,
    Transfer,
)

if TYPE_CHECKING:
    from near_sdk.nonce import NonceTracker
    from near_sdk.signer import Signer
    from near_sdk.types import Action

_IntentT = TypeVar("_IntentT", bound=BaseModel)

# ---------------------------------------------------------------------------
# Action wire names
# ---------------------------------------------------------------------------

_ACTION_WIRE: dict[type, str] = {
    CreateAccount: "CreateAccount",
    DeployContract: "DeployContract",
    FunctionCall: "FunctionCall",
    Transfer: "Transfer",
}


# ---------------------------------------------------------------------------
# Canonical signable bytes
# ---------------------------------------------------------------------------


def _str(value: str) -> bytes:
    return value.encode("utf-8") + b"\x00"


def _blob(value: bytes) -> bytes:
    return struct.pack("<I", len(value)) + value


def _u128(value: int) -> bytes:
    return value.to_bytes(16, "little")


def _action_bytes(action: "Action") -> bytes:
    if isinstance(action, CreateAccount):
        return _str(action.new_account_id) + bytes(action.public_key) + _u128(action.amount)
    if isinstance(action, DeployContract):
        return _str(action.contract_id) + _blob(action.code)
    if isinstance(action, FunctionCall):
        return (
            _str(action.contract_id)
            + _str(action.method_name)
            + _blob(action.args_bytes())
            + _u128(action.amount)
        )
    if isinstance(action, Transfer):
        return _str(action.receiver_id) + _u128(action.amount)
    raise InvalidIntentError(f"unsupported action {type(action).__name__}")


def signable_bytes(tx: Transaction) -> bytes:
    """Produce the canonical binary representation used for signing and hashing.

    Layout::

        action kind   — UTF-8 PascalCase name + 0x00 separator
        originator    — UTF-8 account id + 0x00 separator
        nonce         — 8 bytes, little-endian u64
        action body   — per kind:
            CreateAccount   new_account_id + 0x00, 32-byte public key, u128 amount
            DeployContract  contract_id + 0x00, u32 length + code
            FunctionCall    contract_id + 0x00, method + 0x00,
                            u32 length + compact JSON args, u128 amount
            Transfer        receiver_id + 0x00, u128 amount

    Integers are little-endian. JSON args keep their insertion order.
    """
    buf = bytearray()
    buf += _str(_ACTION_WIRE[type(tx.action)])
    buf += _str(tx.originator)
    buf += struct.pack("<Q", tx.nonce)
    buf += _action_bytes(tx.action)
    return bytes(buf)


def compute_transaction_hash(tx: Transaction) -> str:
    """Return ``base58(sha256(signable_bytes(tx)))``."""
    return base58.b58encode(hashlib.sha256(signable_bytes(tx)).digest()).decode("ascii")


def sign_transaction(tx: Transaction, key_pair: KeyPair) -> SignedTransaction:
    """Sign *tx* with an explicit key pair, bypassing any key store."""
    return SignedTransaction(
        transaction=tx,
        signature=key_pair.sign(signable_bytes(tx)),
        public_key=key_pair.public_key,
        hash=compute_transaction_hash(tx),
    )


def verify_transaction(signed_tx: SignedTransaction) -> bool:
    """Check the signature and hash of a :class:`SignedTransaction`.

    Whether the public key is actually authorised for the originator is for
    the node to decide.
    """
    tx = signed_tx.transaction
    if compute_transaction_hash(tx) != signed_tx.hash:
        return False
    return verify_signature(signed_tx.public_key, signable_bytes(tx), signed_tx.signature)


# ---------------------------------------------------------------------------
# Intent validation
# ---------------------------------------------------------------------------


def make_intent(intent_cls: type[_IntentT], **fields: Any) -> _IntentT:
    """Construct an action model, reporting bad fields as :class:`InvalidIntentError`."""
    try:
        return intent_cls(**fields)
    except ValidationError as exc:
        raise InvalidIntentError(str(exc)) from exc


def validate_intent(originator: str, intent: object) -> None:
    """Check intent-specific preconditions.

    Raises:
        InvalidIntentError: If the intent cannot be turned into a transaction.
    """
    if type(intent) not in _ACTION_WIRE:
        raise InvalidIntentError(f"unsupported intent {type(intent).__name__}")

    if isinstance(intent, CreateAccount):
        if intent.new_account_id == originator:
            raise InvalidIntentError(
                f"cannot create account {intent.new_account_id!r}: it is the originator"
            )
    elif isinstance(intent, DeployContract):
        if not intent.code:
            raise InvalidIntentError("contract code is empty")
    elif isinstance(intent, FunctionCall):
        try:
            intent.args_bytes()
        except (TypeError, ValueError) as exc:
            raise InvalidIntentError(
                f"arguments for {intent.method_name!r} are not JSON-serialisable: {exc}"
            ) from exc


class TransactionBuilder:
    """Builds signed transactions from intents.

    The builder itself does no network I/O; the nonce tracker may query the
    node once per account to recover its baseline.

    Example::

        builder = TransactionBuilder(nonces, signer)
        signed = await builder.build(
            "alice.near",
            Transfer(receiver_id="bob.near", amount=10),
        )
    """

    def __init__(self, nonce_tracker: "NonceTracker", signer: "Signer") -> None:
        self._nonces = nonce_tracker
        self._signer = signer

    async def build(self, originator: str, intent: "Action") -> SignedTransaction:
        """Validate *intent*, assign a nonce, and sign.

        Raises:
            InvalidIntentError: If the originator or intent is malformed.
            KeyNotFoundError: If there is no key for *originator*. Raised
                before a nonce is consumed.
        """
        try:
            originator_id = AccountId._validate(originator)
        except ValueError as exc:
            raise InvalidIntentError(str(exc)) from exc
        validate_intent(originator_id, intent)

        # Fail on a missing key before touching the network or the tracker.
        await self._signer.public_key(originator_id)

        nonce = await self._nonces.next_nonce(originator_id)
        tx = Transaction(originator=originator_id, nonce=nonce, action=intent)
        signature, public_key = await self._signer.sign_with_key(signable_bytes(tx), originator_id)
        return SignedTransaction(
            transaction=tx,
            signature=signature,
            public_key=public_key,
            hash=compute_transaction_hash(tx),
        )
