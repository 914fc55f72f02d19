"""
Unit tests for CancellationToken.

Tests cover manual and timer based cancellation, racing awaitables against the
signal, and propagation of task-level cancellation.
"""

import asyncio

import pytest

from social.graze.authclient.http.cancellation import (
    CancellationToken,
    OperationCancelledError,
)


class TestCancellationToken:
    """Test the cancellation signal state."""

    def test_initial_state(self):
        """Test a new token is not cancelled."""
        token = CancellationToken()

        assert not token.cancelled
        assert token.reason is None
        token.raise_if_cancelled()

    def test_cancel(self):
        """Test cancel sets the flag and keeps the first reason."""
        token = CancellationToken()

        token.cancel("user left")
        token.cancel("second call")

        assert token.cancelled
        assert token.reason == "user left"

    def test_raise_if_cancelled(self):
        """Test raise_if_cancelled raises once cancelled."""
        token = CancellationToken()
        token.cancel()

        with pytest.raises(OperationCancelledError):
            token.raise_if_cancelled()

    @pytest.mark.asyncio
    async def test_cancel_after(self):
        """Test the timer fires the signal."""
        token = CancellationToken()

        token.cancel_after(0.01, "deadline")
        await asyncio.wait_for(token.wait(), timeout=1)

        assert token.cancelled
        assert token.reason == "deadline"

    @pytest.mark.asyncio
    async def test_cancel_after_negative(self):
        """Test negative delays are rejected."""
        with pytest.raises(ValueError):
            CancellationToken().cancel_after(-1)


class TestRun:
    """Test racing awaitables against the signal."""

    @pytest.mark.asyncio
    async def test_run_returns_result(self):
        """Test the awaitable result is returned when the signal stays quiet."""
        token = CancellationToken()

        async def work():
            return "done"

        assert await token.run(work()) == "done"

    @pytest.mark.asyncio
    async def test_run_propagates_exception(self):
        """Test errors of the awaitable propagate unchanged."""
        token = CancellationToken()

        async def work():
            raise TimeoutError("socket timeout")

        with pytest.raises(TimeoutError, match="socket timeout"):
            await token.run(work())

    @pytest.mark.asyncio
    async def test_run_aborts_inflight_work(self):
        """Test the signal aborts the pending awaitable promptly."""
        token = CancellationToken()
        started = asyncio.Event()
        aborted = asyncio.Event()

        async def work():
            started.set()
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                aborted.set()
                raise

        async def trigger():
            await started.wait()
            token.cancel("stop")

        trigger_task = asyncio.create_task(trigger())
        with pytest.raises(OperationCancelledError):
            await asyncio.wait_for(token.run(work()), timeout=1)
        await trigger_task

        assert aborted.is_set()

    @pytest.mark.asyncio
    async def test_run_when_already_cancelled(self):
        """Test an already fired signal never lets the awaitable run."""
        token = CancellationToken()
        token.cancel()
        ran = False

        async def work():
            nonlocal ran
            ran = True

        with pytest.raises(OperationCancelledError):
            await token.run(work())

        assert not ran

    @pytest.mark.asyncio
    async def test_run_with_timer(self):
        """Test cancel_after expresses a timeout."""
        token = CancellationToken()
        token.cancel_after(0.01)

        with pytest.raises(OperationCancelledError):
            await asyncio.wait_for(token.run(asyncio.sleep(10)), timeout=1)

    @pytest.mark.asyncio
    async def test_task_cancellation_propagates(self):
        """Test cancelling the surrounding task raises CancelledError."""
        token = CancellationToken()
        inner_cancelled = asyncio.Event()

        async def work():
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                inner_cancelled.set()
                raise

        task = asyncio.create_task(token.run(work()))
        await asyncio.sleep(0.01)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        assert inner_cancelled.is_set()
        assert not token.cancelled
