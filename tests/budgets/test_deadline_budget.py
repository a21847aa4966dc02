import asyncio
import dataclasses

import pytest

from cloudpoll._core.actions.budgets import BudgetError, DeadlineBudget


@pytest.mark.parametrize('kwargs', [
    pytest.param(dict(timeout=0, interval=10), id='zero-timeout'),
    pytest.param(dict(timeout=-1, interval=10), id='negative-timeout'),
    pytest.param(dict(timeout=100, interval=0), id='zero-interval'),
    pytest.param(dict(timeout=100, interval=-1), id='negative-interval'),
])
def test_misconfigured_budgets_are_refused(kwargs):
    with pytest.raises(BudgetError):
        DeadlineBudget(**kwargs)


def test_budget_is_frozen():
    budget = DeadlineBudget(timeout=100, interval=10)
    with pytest.raises(dataclasses.FrozenInstanceError):
        budget.timeout = 200  # type: ignore


async def test_deadline_is_counted_from_the_start(looptime):
    await asyncio.sleep(50)
    countdown = DeadlineBudget(timeout=100, interval=10).start()
    assert countdown.deadline == 150


async def test_remaining_until_the_deadline(looptime):
    countdown = DeadlineBudget(timeout=100, interval=10).start()
    await asyncio.sleep(99)
    assert countdown.remaining()
    await asyncio.sleep(1)
    assert not countdown.remaining()


async def test_attempts_do_not_exhaust_the_budget(looptime):
    countdown = DeadlineBudget(timeout=100, interval=10).start()
    for _ in range(1000):
        countdown.record_attempt(transient=True)
    assert countdown.remaining()
    assert countdown.attempts == 1000


async def test_interval_is_fixed_regardless_of_transient_failures(looptime):
    countdown = DeadlineBudget(timeout=100, interval=10).start()
    delays = []
    for _ in range(3):
        countdown.record_attempt(transient=True)
        delays.append(countdown.next_delay())
    assert delays == [10, 10, 10]


async def test_last_sleep_is_clipped_to_the_deadline(looptime):
    countdown = DeadlineBudget(timeout=25, interval=10).start()
    await asyncio.sleep(20)
    assert countdown.next_delay() == 5


async def test_no_sleep_beyond_the_passed_deadline(looptime):
    countdown = DeadlineBudget(timeout=25, interval=10).start()
    await asyncio.sleep(30)
    assert countdown.next_delay() == 0


@pytest.mark.parametrize('at_least, expected', [
    pytest.param(None, 10, id='none'),
    pytest.param(5, 10, id='shorter'),
    pytest.param(45, 45, id='longer'),
    pytest.param(500, 100, id='beyond-deadline'),
])
async def test_server_suggested_delays_prolong_the_sleep(looptime, at_least, expected):
    countdown = DeadlineBudget(timeout=100, interval=10).start()
    assert countdown.next_delay(at_least=at_least) == expected


def test_string_representation():
    assert str(DeadlineBudget(timeout=100, interval=10)) == "100s"
