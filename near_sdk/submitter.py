"""Handing signed transactions to the node."""

from __future__ import annotations

import logging

from near_sdk.client import NearClient
from near_sdk.types import SignedTransaction, TransactionHandle

logger = logging.getLogger(__name__)


class Submitter:
    """Sends signed transactions and returns a handle without waiting.

    Nothing here retries. A transport error after the node has already
    accepted a transaction would make a blind resubmission look like a
    second intent, so retry policy is left to the caller.
    """

    def __init__(self, client: NearClient) -> None:
        self._client = client

    async def submit(self, signed_tx: SignedTransaction) -> TransactionHandle:
        """Submit *signed_tx* and return its handle.

        Raises:
            RejectedBySyntaxError: The node refused the transaction. Terminal.
            RpcUnreachableError: The node could not be reached.
        """
        tx = signed_tx.transaction
        tx_hash = await self._client.submit_transaction(signed_tx)
        if tx_hash != signed_tx.hash:
            logger.warning(
                "node returned hash %s for transaction %s, using node hash",
                tx_hash,
                signed_tx.hash,
            )
        logger.info(
            "submitted %s from %s nonce=%d hash=%s",
            tx.action.kind,
            tx.originator,
            tx.nonce,
            tx_hash,
        )
        return TransactionHandle(hash=tx_hash, originator=tx.originator, nonce=tx.nonce)
