"""Signing on behalf of accounts whose keys live in a key store."""

from __future__ import annotations

from near_sdk.exceptions import KeyNotFoundError
from near_sdk.key_pair import KeyPair
from near_sdk.key_store import KeyStore
from near_sdk.types import PublicKey, Signature


class Signer:
    """Signs messages with the active key pair of an account.

    Args:
        key_store: Where key pairs are looked up. The signer only reads from
            it.
    """

    def __init__(self, key_store: KeyStore) -> None:
        self._key_store = key_store

    @property
    def key_store(self) -> KeyStore:
        return self._key_store

    async def _key_pair(self, account_id: str) -> KeyPair:
        key_pair = await self._key_store.get_key(account_id)
        if key_pair is None:
            raise KeyNotFoundError(account_id)
        return key_pair

    async def public_key(self, account_id: str) -> PublicKey:
        """Return the active public key for *account_id*.

        Raises:
            KeyNotFoundError: If the key store holds no key for the account.
        """
        return (await self._key_pair(account_id)).public_key

    async def sign(self, message: bytes, account_id: str) -> Signature:
        """Sign *message* with the active key of *account_id*.

        Ed25519 signatures are deterministic: the same message and key always
        yield the same signature.

        Raises:
            KeyNotFoundError: If the key store holds no key for the account.
        """
        return (await self._key_pair(account_id)).sign(message)

    async def sign_with_key(self, message: bytes, account_id: str) -> tuple[Signature, PublicKey]:
        """Like :meth:`sign`, also returning the public key that signed.

        Both come from a single key-store read, so a concurrent key rotation
        cannot pair a signature with the wrong public key.
        """
        key_pair = await self._key_pair(account_id)
        return key_pair.sign(message), key_pair.public_key
