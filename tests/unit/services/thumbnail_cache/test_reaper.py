"""
Unit tests for the background ExpiryReaper.
"""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from brandguide.services.thumbnail_cache import ExpiryReaper

# CRITICAL: This line ensures async tests work with coverage
pytestmark = pytest.mark.asyncio


@pytest.fixture
def mock_service() -> MagicMock:
    service = MagicMock()
    service.clear_expired_thumbnails = AsyncMock(return_value=2)
    return service


class TestExpiryReaper:
    """Tests for the periodic reaping loop."""

    def test_rejects_non_positive_interval(self, mock_service: MagicMock) -> None:
        """Test the interval must be positive."""
        with pytest.raises(ValueError):
            ExpiryReaper(mock_service, interval=0)

    async def test_run_once_delegates_to_service(self, mock_service: MagicMock) -> None:
        """Test a single pass returns the reclaimed count."""
        reaper = ExpiryReaper(mock_service, interval=60)

        assert await reaper.run_once() == 2
        mock_service.clear_expired_thumbnails.assert_awaited_once()

    async def test_loop_runs_periodically_until_stopped(
        self, mock_service: MagicMock
    ) -> None:
        """Test the loop reaps on every interval and stops cleanly."""
        reaper = ExpiryReaper(mock_service, interval=0.01)

        reaper.start()
        assert reaper.is_running
        await asyncio.sleep(0.1)
        await reaper.stop()

        assert not reaper.is_running
        assert mock_service.clear_expired_thumbnails.await_count >= 2

    async def test_loop_survives_failed_pass(self, mock_service: MagicMock) -> None:
        """Test an exception in one pass does not end the loop."""
        calls = 0

        async def flaky() -> int:
            nonlocal calls
            calls += 1
            if calls == 1:
                raise RuntimeError("database is locked")
            return 1

        mock_service.clear_expired_thumbnails.side_effect = flaky
        reaper = ExpiryReaper(mock_service, interval=0.01)

        reaper.start()
        await asyncio.sleep(0.08)
        await reaper.stop()

        assert mock_service.clear_expired_thumbnails.await_count >= 2

    async def test_stop_without_start_is_a_no_op(self, mock_service: MagicMock) -> None:
        """Test stopping an idle reaper does nothing."""
        reaper = ExpiryReaper(mock_service, interval=60)

        await reaper.stop()

        mock_service.clear_expired_thumbnails.assert_not_awaited()
