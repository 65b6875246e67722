"""Tests for NonceTracker issuance and cold-start recovery."""

from __future__ import annotations

import asyncio

import pytest

from conftest import ALICE, FakeNode, build_mock_client
from near_sdk.nonce import NonceTracker


class TestNonceTracker:
    @pytest.mark.asyncio
    async def test_cold_start_reads_chain(self, fake_node: FakeNode) -> None:
        fake_node.accounts[ALICE]["nonce"] = 17
        tracker = NonceTracker(build_mock_client(fake_node))
        assert await tracker.next_nonce(ALICE) == 18
        assert fake_node.calls == ["view_account"]

    @pytest.mark.asyncio
    async def test_chain_is_read_once(self, fake_node: FakeNode) -> None:
        tracker = NonceTracker(build_mock_client(fake_node))
        values = [await tracker.next_nonce(ALICE) for _ in range(3)]
        assert values == [1, 2, 3]
        assert fake_node.calls.count("view_account") == 1
        assert tracker.peek(ALICE) == 3

    @pytest.mark.asyncio
    async def test_unknown_account_starts_at_zero(self, fake_node: FakeNode) -> None:
        tracker = NonceTracker(build_mock_client(fake_node))
        assert await tracker.next_nonce("ghost.near") == 1

    @pytest.mark.asyncio
    async def test_concurrent_issuance_is_unique_and_increasing(self, fake_node: FakeNode) -> None:
        tracker = NonceTracker(build_mock_client(fake_node))
        values = await asyncio.gather(*(tracker.next_nonce(ALICE) for _ in range(20)))
        assert sorted(values) == list(range(1, 21))
        assert fake_node.calls.count("view_account") == 1

    @pytest.mark.asyncio
    async def test_accounts_are_independent(self, fake_node: FakeNode) -> None:
        fake_node.accounts[ALICE]["nonce"] = 10
        tracker = NonceTracker(build_mock_client(fake_node))
        a, b = await asyncio.gather(tracker.next_nonce(ALICE), tracker.next_nonce("bob.near"))
        assert (a, b) == (11, 1)

    @pytest.mark.asyncio
    async def test_reset_resyncs_forward(self, fake_node: FakeNode) -> None:
        tracker = NonceTracker(build_mock_client(fake_node))
        assert await tracker.next_nonce(ALICE) == 1
        # Another client moved the account ahead.
        fake_node.accounts[ALICE]["nonce"] = 50
        await tracker.reset(ALICE)
        assert await tracker.next_nonce(ALICE) == 51

    @pytest.mark.asyncio
    async def test_reset_never_goes_backwards(self, fake_node: FakeNode) -> None:
        tracker = NonceTracker(build_mock_client(fake_node))
        for _ in range(5):
            await tracker.next_nonce(ALICE)
        await tracker.reset(ALICE)
        assert await tracker.next_nonce(ALICE) == 6

    @pytest.mark.asyncio
    async def test_peek_before_issue(self, fake_node: FakeNode) -> None:
        tracker = NonceTracker(build_mock_client(fake_node))
        assert tracker.peek(ALICE) is None
