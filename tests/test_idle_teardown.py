"""Tests for IdleTeardownTimer."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from discord_playback_engine.application.services.idle_teardown import IdleTeardownTimer
from discord_playback_engine.domain.playback.entities import Session

from .conftest import make_item


@pytest.fixture
def session():
    return Session(session_id=3)


@pytest.fixture
def on_teardown():
    return AsyncMock()


def _timer(grace, on_teardown, clock):
    return IdleTeardownTimer(
        grace, on_teardown=on_teardown, spawn_task=asyncio.ensure_future, clock=clock
    )


class TestIdleTeardownTimer:
    @pytest.mark.asyncio
    async def test_zero_grace_tears_down_immediately(self, session, on_teardown, clock):
        timer = _timer(0, on_teardown, clock)

        await timer.schedule(session)

        on_teardown.assert_awaited_once_with(session)
        assert session.idle_timer is None

    @pytest.mark.asyncio
    async def test_schedule_arms_timer(self, session, on_teardown, clock):
        timer = _timer(30, on_teardown, clock)

        await timer.schedule(session)

        assert session.idle_timer is not None
        assert session.idle_teardown_at_ms == pytest.approx((clock.now + 30) * 1000)
        on_teardown.assert_not_awaited()
        timer.cancel(session)

    @pytest.mark.asyncio
    async def test_cancel(self, session, on_teardown, clock):
        timer = _timer(30, on_teardown, clock)
        await timer.schedule(session)
        handle = session.idle_timer

        assert timer.cancel(session) is True
        assert handle.cancelled()
        assert session.idle_timer is None
        assert session.idle_teardown_at_ms is None
        assert timer.cancel(session) is False

    @pytest.mark.asyncio
    async def test_reschedule_replaces_timer(self, session, on_teardown, clock):
        timer = _timer(30, on_teardown, clock)
        await timer.schedule(session)
        first = session.idle_timer

        await timer.schedule(session)

        assert first.cancelled()
        assert session.idle_timer is not first
        timer.cancel(session)

    @pytest.mark.asyncio
    async def test_timer_fires_after_grace(self, session, on_teardown, clock):
        timer = _timer(0.01, on_teardown, clock)

        await timer.schedule(session)
        await asyncio.sleep(0.05)

        on_teardown.assert_awaited_once_with(session)
        assert session.idle_timer is None

    @pytest.mark.asyncio
    async def test_busy_session_is_not_torn_down(self, session, on_teardown, clock):
        timer = _timer(0.01, on_teardown, clock)

        await timer.schedule(session)
        session.append([make_item("Late arrival")])
        await asyncio.sleep(0.05)

        on_teardown.assert_not_awaited()
        assert session.idle_timer is None
