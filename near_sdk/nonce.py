"""Per-account nonce issuance.

Nonces must be strictly increasing for every transaction an account ever
sends, failed ones included, so the tracker hands out each value exactly
once. An :class:`asyncio.Lock` per account serialises issuance when several
coroutines build transactions for the same account concurrently; different
accounts never wait on each other.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from near_sdk.exceptions import AccountNotFoundError

if TYPE_CHECKING:
    from near_sdk.client import NearClient

logger = logging.getLogger(__name__)


class NonceTracker:
    """Issues nonces, recovering the on-chain baseline on first use.

    The tracker keeps no persistent state. The first request for an account
    reads its current nonce from the node and issues the next one; an
    account that does not exist yet starts from 0.
    """

    def __init__(self, client: "NearClient") -> None:
        self._client = client
        self._last: dict[str, int] = {}
        self._resync: set[str] = set()
        self._locks: dict[str, asyncio.Lock] = {}

    def _lock(self, account_id: str) -> asyncio.Lock:
        lock = self._locks.get(account_id)
        if lock is None:
            lock = self._locks[account_id] = asyncio.Lock()
        return lock

    async def _on_chain_nonce(self, account_id: str) -> int:
        try:
            view = await self._client.view_account(account_id)
        except AccountNotFoundError:
            logger.debug("account %s not on chain yet, nonce baseline 0", account_id)
            return 0
        return view.nonce

    async def next_nonce(self, account_id: str) -> int:
        """Return a nonce for *account_id* never issued before by this tracker."""
        async with self._lock(account_id):
            last = self._last.get(account_id)
            if last is None or account_id in self._resync:
                on_chain = await self._on_chain_nonce(account_id)
                # Never go below what was already handed out.
                last = on_chain if last is None else max(last, on_chain)
                self._resync.discard(account_id)
                logger.debug("nonce baseline for %s is %d", account_id, last)
            nonce = last + 1
            self._last[account_id] = nonce
            return nonce

    def peek(self, account_id: str) -> int | None:
        """The last nonce issued for *account_id*, or ``None`` if none yet."""
        return self._last.get(account_id)

    async def reset(self, account_id: str) -> None:
        """Re-read the chain on the next request.

        Used after the node rejected a nonce as stale. The next value is
        still above every nonce issued so far.
        """
        async with self._lock(account_id):
            if account_id in self._last:
                self._resync.add(account_id)
