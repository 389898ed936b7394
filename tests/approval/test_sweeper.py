"""Tests for ApprovalSweeper."""

import asyncio
from unittest.mock import MagicMock

import pytest

from toolgate.approval.models import ApprovalStatus
from toolgate.approval.store import ApprovalStore
from toolgate.approval.sweeper import ApprovalSweeper
from toolgate.policy.models import Decision, PolicyEffect


def _review(token: str) -> Decision:
    return Decision(effect=PolicyEffect.REVIEW, reason="r", approval_token=token)


class TestSweepOnce:
    def test_expires_then_purges(self, make_context, clock, approver) -> None:
        store = ApprovalStore(default_ttl=10, clock=clock)
        store.create_approval(make_context(), _review("old-done"))
        store.grant("old-done", approver)
        store.create_approval(make_context(), _review("overdue"))
        clock.advance(100)
        store.create_approval(make_context(), _review("fresh"))

        sweeper = ApprovalSweeper(store, interval=1, retention=50)
        expired, removed = sweeper.sweep_once()

        assert expired == 1
        # "overdue" was created 100s ago and is now expired, so it is purged too
        assert removed == 2
        assert store.get_approval("fresh").status == ApprovalStatus.PENDING
        assert len(store) == 1

    def test_invalid_interval(self) -> None:
        with pytest.raises(ValueError):
            ApprovalSweeper(ApprovalStore(), interval=0)


class TestSweeperTask:
    async def test_runs_periodically(self) -> None:
        store = MagicMock(spec=ApprovalStore)
        store.expire_overdue.return_value = 0
        store.cleanup.return_value = 0

        async with ApprovalSweeper(store, interval=0.01) as sweeper:
            assert sweeper.running
            await asyncio.sleep(0.05)

        assert not sweeper.running
        assert store.expire_overdue.call_count >= 1
        assert store.cleanup.call_count >= 1

    async def test_errors_do_not_stop_loop(self) -> None:
        store = MagicMock(spec=ApprovalStore)
        store.expire_overdue.side_effect = RuntimeError("boom")

        sweeper = ApprovalSweeper(store, interval=0.01)
        sweeper.start()
        await asyncio.sleep(0.05)
        assert sweeper.running
        await sweeper.stop()

        assert store.expire_overdue.call_count >= 2

    async def test_start_twice_is_noop(self) -> None:
        sweeper = ApprovalSweeper(ApprovalStore(), interval=10)
        sweeper.start()
        first = sweeper._task
        sweeper.start()
        assert sweeper._task is first
        await sweeper.stop()

    async def test_stop_without_start(self) -> None:
        await ApprovalSweeper(ApprovalStore(), interval=10).stop()
