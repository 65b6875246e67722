"""Waiting for transactions to reach a terminal state.

The node only offers a polling view of transaction status, so
:class:`ResultPoller` drives a small state machine::

    SUBMITTED ──query──▶ PENDING ──query──▶ PENDING ...
        │                   │
        │                   ├──▶ COMPLETED
        │                   └──▶ FAILED
        └───────────────────┴──▶ TIMED_OUT   (client-side deadline)

``TIMED_OUT`` is a decision of the client, not a status reported by the
node: the transaction may still complete afterwards. Every call to
:meth:`ResultPoller.wait` owns its own state, so concurrent waits on
different handles never interfere.
"""

from __future__ import annotations

import asyncio
import logging
import time
from enum import Enum

from pydantic import ValidationError

from near_sdk.client import NearClient
from near_sdk.exceptions import NearClientError
from near_sdk.types import (
    OutcomeStatus,
    TransactionHandle,
    TransactionOutcome,
    TransactionStatus,
    TransactionStatusResponse,
)

logger = logging.getLogger(__name__)

_ABORT_PREFIX = "ABORT:"


class PollState(str, Enum):
    SUBMITTED = "submitted"
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


def failure_reason(response: TransactionStatusResponse) -> str:
    """Pick the most useful explanation for a failed transaction.

    Order of preference: the node's ``error`` field, the first ``ABORT:`` log
    line, the last log line.
    """
    if response.error:
        return response.error
    for line in response.logs:
        if line.startswith(_ABORT_PREFIX):
            return line
    if response.logs:
        return response.logs[-1]
    return "execution failed"


def _advance(tx_hash: str, old: PollState, new: PollState) -> PollState:
    if old is not new:
        logger.debug("transaction %s: %s -> %s", tx_hash, old.value, new.value)
    return new


class ResultPoller:
    """Polls transaction status until it is terminal or a deadline passes.

    Args:
        client: Node client used for status queries.
        timeout: Default polling budget in seconds.
        interval: Delay after the first non-terminal poll.
        max_interval: Upper bound of the delay.
        backoff: Factor applied to the delay after each non-terminal poll.
    """

    def __init__(
        self,
        client: NearClient,
        *,
        timeout: float = 20.0,
        interval: float = 0.5,
        max_interval: float = 2.0,
        backoff: float = 1.5,
    ) -> None:
        if interval <= 0 or max_interval <= 0:
            raise ValueError("poll intervals must be positive")
        self._client = client
        self._timeout = timeout
        self._interval = interval
        self._max_interval = max(max_interval, interval)
        self._backoff = max(backoff, 1.0)

    async def _query(self, tx_hash: str, remaining: float) -> TransactionStatusResponse | None:
        try:
            return await asyncio.wait_for(self._client.tx_status(tx_hash), remaining)
        except asyncio.TimeoutError:
            logger.warning("status query for %s outlived the wait budget", tx_hash)
            return None
        except (NearClientError, ValidationError) as exc:
            logger.warning("status query for %s failed, will retry: %s", tx_hash, exc)
            return None

    async def wait(
        self,
        handle: TransactionHandle | str,
        *,
        timeout: float | None = None,
    ) -> TransactionOutcome:
        """Poll until *handle* is terminal or *timeout* seconds have passed.

        Never raises for failed or timed-out transactions: the returned
        outcome's ``status`` is ``Completed``, ``Failed`` or ``Unknown``.
        Cancelling the awaiting task only stops the observation. A status
        query still in flight when the budget runs out is abandoned.
        """
        tx_hash = handle.hash if isinstance(handle, TransactionHandle) else handle
        budget = self._timeout if timeout is None else timeout
        deadline = time.monotonic() + budget
        delay = self._interval
        state = PollState.SUBMITTED
        attempts = 0

        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                logger.info(
                    "gave up on %s after %d polls in %ss (last state %s)",
                    tx_hash,
                    attempts,
                    budget,
                    state.value,
                )
                _advance(tx_hash, state, PollState.TIMED_OUT)
                return TransactionOutcome(status=OutcomeStatus.UNKNOWN, hash=tx_hash)

            response = await self._query(tx_hash, remaining)
            attempts += 1

            if response is not None:
                if response.status is TransactionStatus.COMPLETED:
                    _advance(tx_hash, state, PollState.COMPLETED)
                    logger.info("transaction %s completed", tx_hash)
                    return TransactionOutcome(
                        status=OutcomeStatus.COMPLETED,
                        hash=tx_hash,
                        value=response.value,
                        logs=response.logs,
                    )
                if response.status is TransactionStatus.FAILED:
                    _advance(tx_hash, state, PollState.FAILED)
                    reason = failure_reason(response)
                    logger.info("transaction %s failed: %s", tx_hash, reason)
                    return TransactionOutcome(
                        status=OutcomeStatus.FAILED,
                        hash=tx_hash,
                        value=response.value,
                        logs=response.logs,
                        reason=reason,
                    )
                state = _advance(tx_hash, state, PollState.PENDING)
                logger.debug("transaction %s is %s", tx_hash, response.status.value)

            remaining = deadline - time.monotonic()
            if remaining > 0:
                await asyncio.sleep(min(delay, remaining))
                delay = min(delay * self._backoff, self._max_interval)
