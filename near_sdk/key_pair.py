"""Ed25519 key pairs: generation, base58 encoding, signing.

All cryptographic operations use Ed25519 via PyNaCl (libsodium binding).
Keys are shown to users in base58, the same alphabet the node uses for
public keys in account records.
"""

from __future__ import annotations

import base58
from nacl.exceptions import BadSignatureError
from nacl.signing import SigningKey, VerifyKey

from near_sdk.types import PublicKey, Signature


class KeyPair:
    """An Ed25519 key pair held in memory.

    Key pairs are created via :meth:`from_random_seed`, :meth:`from_seed` or
    :meth:`from_secret_key`. The secret key is never serialised implicitly;
    key stores decide how it is persisted.
    """

    __slots__ = ("_secret_key", "_public_key")

    def __init__(self, secret_key: bytes) -> None:
        if len(secret_key) != 32:
            raise ValueError(f"secret key must be exactly 32 bytes, got {len(secret_key)}")
        sk = SigningKey(secret_key)
        self._secret_key = bytes(sk)
        self._public_key = PublicKey(bytes(sk.verify_key))

    # ----- constructors ----------------------------------------------------

    @classmethod
    def from_random_seed(cls) -> "KeyPair":
        """Generate a new key pair from a random seed."""
        return cls(bytes(SigningKey.generate()))

    @classmethod
    def from_seed(cls, seed: bytes) -> "KeyPair":
        """Derive a key pair deterministically from a 32-byte seed.

        Raises:
            ValueError: If *seed* is not exactly 32 bytes.
        """
        if len(seed) != 32:
            raise ValueError(f"seed must be exactly 32 bytes, got {len(seed)}")
        return cls(seed)

    @classmethod
    def from_secret_key(cls, encoded: str) -> "KeyPair":
        """Restore a key pair from its base58-encoded secret key."""
        return cls(base58.b58decode(encoded))

    # ----- properties ------------------------------------------------------

    @property
    def public_key(self) -> PublicKey:
        """The raw 32-byte Ed25519 public key."""
        return self._public_key

    @property
    def secret_key(self) -> str:
        """The base58-encoded 32-byte secret seed."""
        return base58.b58encode(self._secret_key).decode("ascii")

    # ----- signing ---------------------------------------------------------

    def sign(self, message: bytes) -> Signature:
        """Sign *message* and return the 64-byte Ed25519 signature."""
        signed = SigningKey(self._secret_key).sign(message)
        return Signature(signed.signature)

    def verify(self, message: bytes, signature: bytes) -> bool:
        return verify_signature(self._public_key, message, signature)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, KeyPair):
            return NotImplemented
        return self._secret_key == other._secret_key

    def __hash__(self) -> int:
        return hash(self._public_key)

    def __repr__(self) -> str:
        return f"KeyPair(public_key={self._public_key.to_base58()!r})"


def verify_signature(public_key: bytes, message: bytes, signature: bytes) -> bool:
    """Verify an Ed25519 signature.

    Returns:
        ``True`` if the signature is valid, ``False`` otherwise.
    """
    try:
        VerifyKey(bytes(public_key)).verify(message, bytes(signature))
    except (BadSignatureError, ValueError):
        return False
    return True
