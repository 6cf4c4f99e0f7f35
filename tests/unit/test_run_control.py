"""Unit tests for pause/resume/cancel signalling."""
import asyncio

from table_enrich.run_control import RunControl


async def _park_until_waiting(control: RunControl) -> asyncio.Task:
    waiter = asyncio.create_task(control.wait_for_resume())
    while not control.is_waiting:
        await asyncio.sleep(0)
    return waiter


class TestRunControl:
    """Single-slot continuation released by resume or cancel."""

    def test_wait_returns_immediately_when_not_paused(self):
        """Test waiting without a pause returns at once."""
        control = RunControl()
        asyncio.run(asyncio.wait_for(control.wait_for_resume(), timeout=1))
        assert not control.is_waiting

    def test_resume_releases_waiter(self):
        """Test resume wakes a paused waiter."""
        async def scenario():
            control = RunControl()
            control.pause()
            waiter = await _park_until_waiting(control)
            control.resume()
            await asyncio.wait_for(waiter, timeout=1)
            return control

        control = asyncio.run(scenario())
        assert not control.paused
        assert not control.cancelled
        assert not control.is_waiting

    def test_cancel_releases_waiter(self):
        """Test cancel wakes a paused waiter and clears the pause."""
        async def scenario():
            control = RunControl()
            control.pause()
            waiter = await _park_until_waiting(control)
            control.cancel()
            await asyncio.wait_for(waiter, timeout=1)
            return control

        control = asyncio.run(scenario())
        assert control.cancelled
        assert not control.paused

    def test_double_release_is_noop(self):
        """Test releasing twice is harmless."""
        async def scenario():
            control = RunControl()
            control.pause()
            waiter = await _park_until_waiting(control)
            control.resume()
            control.resume()
            control.cancel()
            await asyncio.wait_for(waiter, timeout=1)

        asyncio.run(scenario())

    def test_pause_ignored_after_cancel(self):
        """Test pause has no effect once cancelled."""
        control = RunControl()
        control.cancel()
        control.pause()
        assert not control.paused

    def test_reset_clears_everything(self):
        """Test reset clears flags and the waiter."""
        control = RunControl()
        control.pause()
        control.cancel()
        control.reset()
        assert not control.cancelled
        assert not control.paused
        assert not control.is_waiting
