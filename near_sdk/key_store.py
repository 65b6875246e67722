"""Key storage backends.

A key store maps an account id to the key pairs that may sign for it. Any
object that implements the :class:`KeyStore` protocol can be plugged into
:class:`~near_sdk.near.Near`; two backends ship with the SDK:

* :class:`InMemoryKeyStore` for tests and short-lived processes.
* :class:`UnencryptedFileSystemKeyStore` which keeps one JSON file per
  account under ``<root>/<network_id>/``.

Several key pairs may be stored per account (key rotation). The most
recently set one is the *active* key returned by :meth:`KeyStore.get_key`.
Reads run concurrently; writes are serialised with an :class:`asyncio.Lock`.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import stat
from pathlib import Path
from typing import Protocol, runtime_checkable

from near_sdk.key_pair import KeyPair

logger = logging.getLogger(__name__)


@runtime_checkable
class KeyStore(Protocol):
    """Capability interface every key store backend implements."""

    async def get_key(self, account_id: str) -> KeyPair | None: ...

    async def set_key(self, account_id: str, key_pair: KeyPair) -> None: ...

    async def remove_key(self, account_id: str, key_pair: KeyPair | None = None) -> None: ...

    async def clear(self) -> None: ...

    async def get_accounts(self) -> list[str]: ...


def _rotate_in(keys: list[KeyPair], key_pair: KeyPair) -> list[KeyPair]:
    # The active key is always last.
    return [k for k in keys if k != key_pair] + [key_pair]


class InMemoryKeyStore:
    """Key store backed by a dict; contents vanish with the process."""

    def __init__(self) -> None:
        self._keys: dict[str, list[KeyPair]] = {}
        self._lock = asyncio.Lock()

    async def get_key(self, account_id: str) -> KeyPair | None:
        keys = self._keys.get(account_id)
        return keys[-1] if keys else None

    async def get_keys(self, account_id: str) -> list[KeyPair]:
        """All key pairs for *account_id*, oldest first; the last is active."""
        return list(self._keys.get(account_id, []))

    async def set_key(self, account_id: str, key_pair: KeyPair) -> None:
        async with self._lock:
            self._keys[account_id] = _rotate_in(self._keys.get(account_id, []), key_pair)

    async def remove_key(self, account_id: str, key_pair: KeyPair | None = None) -> None:
        """Drop *key_pair* from *account_id*, or every key when it is ``None``."""
        async with self._lock:
            if key_pair is None:
                self._keys.pop(account_id, None)
                return
            remaining = [k for k in self._keys.get(account_id, []) if k != key_pair]
            if remaining:
                self._keys[account_id] = remaining
            else:
                self._keys.pop(account_id, None)

    async def clear(self) -> None:
        async with self._lock:
            self._keys.clear()

    async def get_accounts(self) -> list[str]:
        return list(self._keys)


class UnencryptedFileSystemKeyStore:
    """Key store writing plain JSON files, one per account.

    Layout::

        <root>/<network_id>/<account_id>.json
            {"account_id": "...", "keys": [{"public_key": ..., "secret_key": ...}]}

    Files are created with ``0600`` permissions on POSIX systems. Secrets are
    not encrypted; use this only where the filesystem itself is trusted.
    File access runs in a worker thread so the event loop is never blocked.
    """

    def __init__(self, root: str | os.PathLike[str], network_id: str = "default") -> None:
        self._dir = Path(root).expanduser() / network_id
        self._lock = asyncio.Lock()

    def _path(self, account_id: str) -> Path:
        return self._dir / f"{account_id}.json"

    def _read(self, account_id: str) -> list[KeyPair]:
        path = self._path(account_id)
        if not path.exists():
            return []
        with open(path) as f:
            data = json.load(f)
        return [KeyPair.from_secret_key(entry["secret_key"]) for entry in data.get("keys", [])]

    def _write(self, account_id: str, keys: list[KeyPair]) -> None:
        self._dir.mkdir(parents=True, exist_ok=True)
        path = self._path(account_id)
        data = {
            "account_id": account_id,
            "keys": [
                {"public_key": k.public_key.to_base58(), "secret_key": k.secret_key}
                for k in keys
            ],
        }
        with open(path, "w") as f:
            json.dump(data, f, indent=2)
        if os.name == "posix":
            os.chmod(path, stat.S_IRUSR | stat.S_IWUSR)

    def _clear(self) -> None:
        if not self._dir.exists():
            return
        for path in self._dir.glob("*.json"):
            path.unlink()

    def _list_accounts(self) -> list[str]:
        if not self._dir.exists():
            return []
        return sorted(path.stem for path in self._dir.glob("*.json"))

    async def get_key(self, account_id: str) -> KeyPair | None:
        keys = await asyncio.to_thread(self._read, account_id)
        return keys[-1] if keys else None

    async def get_keys(self, account_id: str) -> list[KeyPair]:
        return await asyncio.to_thread(self._read, account_id)

    async def set_key(self, account_id: str, key_pair: KeyPair) -> None:
        async with self._lock:
            keys = _rotate_in(await asyncio.to_thread(self._read, account_id), key_pair)
            await asyncio.to_thread(self._write, account_id, keys)
            logger.debug("stored key %s for %s", key_pair.public_key.to_base58(), account_id)

    async def remove_key(self, account_id: str, key_pair: KeyPair | None = None) -> None:
        async with self._lock:
            remaining = [] if key_pair is None else [
                k for k in await asyncio.to_thread(self._read, account_id) if k != key_pair
            ]
            if remaining:
                await asyncio.to_thread(self._write, account_id, remaining)
            else:
                await asyncio.to_thread(self._path(account_id).unlink, missing_ok=True)

    async def clear(self) -> None:
        async with self._lock:
            await asyncio.to_thread(self._clear)

    async def get_accounts(self) -> list[str]:
        return await asyncio.to_thread(self._list_accounts)
