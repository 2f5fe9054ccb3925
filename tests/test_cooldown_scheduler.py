import asyncio
from unittest.mock import MagicMock

import pytest

from linkguard.moderation.cooldown_ledger import CooldownLedger
from linkguard.scheduler.cooldown_scheduler import CooldownSweepScheduler


def test_sweep_once_uses_clock() -> None:
    ledger = CooldownLedger(5000)
    ledger.record_warning(1, 1, 0)
    ledger.record_warning(1, 2, 9000)
    scheduler = CooldownSweepScheduler(ledger, 3600, clock=lambda: 10_000)

    assert scheduler.sweep_once() == 1
    assert (1, 2) in ledger


@pytest.mark.asyncio
async def test_periodic_task_sweeps_until_shutdown() -> None:
    ledger = MagicMock()
    scheduler = CooldownSweepScheduler(ledger, 0.01, clock=lambda: 123)

    scheduler.start()
    assert scheduler.running
    await asyncio.sleep(0.05)
    await scheduler.shutdown()

    assert not scheduler.running
    assert ledger.sweep.call_count >= 1
    ledger.sweep.assert_called_with(123)


@pytest.mark.asyncio
async def test_errors_do_not_stop_the_loop() -> None:
    ledger = MagicMock()
    ledger.sweep.side_effect = [RuntimeError("bad"), 0, 0, 0, 0, 0, 0, 0, 0, 0]
    scheduler = CooldownSweepScheduler(ledger, 0.005, clock=lambda: 0)

    scheduler.start()
    await asyncio.sleep(0.04)

    assert scheduler.running
    assert ledger.sweep.call_count >= 2
    await scheduler.shutdown()


@pytest.mark.asyncio
async def test_start_twice_keeps_single_task() -> None:
    scheduler = CooldownSweepScheduler(MagicMock(), 60, clock=lambda: 0)

    scheduler.start()
    first_task = scheduler._task
    scheduler.start()

    assert scheduler._task is first_task
    await scheduler.shutdown()
