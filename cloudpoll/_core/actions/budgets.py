"""
Budgets: how long and how often a polling session may keep trying.

A budget is a frozen policy, which can be safely shared between sessions
and stored in the recipes. Every session starts its own countdown from it,
so that the counters are never shared between the sessions.

There are two strategies:

* :class:`AttemptsBudget` -- a fixed number of attempts, with the sleep
  growing on every transient failure (but not on a merely pending state).
* :class:`DeadlineBudget` -- a fixed poll interval until the deadline passes.

Both kinds of sessions can be stopped from outside (see the engine).
"""
import asyncio
import dataclasses
from typing import Optional, Union

from typing_extensions import Protocol


class BudgetError(ValueError):
    """ A budget is misconfigured: e.g. zero or negative values. """


class Countdown(Protocol):
    """ A per-session tracker of the budget's consumption. """
    attempts: int

    def remaining(self) -> bool: ...

    def next_delay(self, at_least: Optional[float] = None) -> float: ...

    def record_attempt(self, *, transient: bool) -> None: ...


@dataclasses.dataclass(frozen=True)
class AttemptsBudget:
    """
    A fixed number of attempts with a possibly growing sleep between them.

    The first sleep is ``delay``. Every transient failure multiplies the next
    sleep by ``factor`` (i.e. doubles it by default): with 5 attempts and 20s,
    the sleeps are 20, 40, 80, 160 seconds. Pending states sleep ``delay``.
    """
    attempts: int
    delay: float
    factor: float = 2.0
    max_delay: Optional[float] = None

    def __post_init__(self) -> None:
        if self.attempts <= 0:
            raise BudgetError(f"The attempts must be positive, got {self.attempts!r}.")
        if self.delay <= 0:
            raise BudgetError(f"The delay must be positive, got {self.delay!r}.")
        if self.factor < 1:
            raise BudgetError(f"The growth factor must be at least 1, got {self.factor!r}.")
        if self.max_delay is not None and self.max_delay <= 0:
            raise BudgetError(f"The maximal delay must be positive, got {self.max_delay!r}.")

    def __str__(self) -> str:
        return f"{self.attempts} attempts"

    def start(self) -> "AttemptsCountdown":
        return AttemptsCountdown(self)


class AttemptsCountdown:

    def __init__(self, budget: AttemptsBudget) -> None:
        super().__init__()
        self.budget = budget
        self.attempts = 0
        self._transients = 0
        self._last_transient = False

    def remaining(self) -> bool:
        return self.attempts < self.budget.attempts

    def record_attempt(self, *, transient: bool) -> None:
        self.attempts += 1
        self._last_transient = transient
        if transient:
            self._transients += 1

    def next_delay(self, at_least: Optional[float] = None) -> float:
        delay = self.budget.delay
        if self._last_transient:
            delay *= self.budget.factor ** (self._transients - 1)
        if self.budget.max_delay is not None:
            delay = min(delay, self.budget.max_delay)
        if at_least is not None:
            delay = max(delay, at_least)
        return delay


@dataclasses.dataclass(frozen=True)
class DeadlineBudget:
    """
    A fixed poll interval until the deadline (``timeout`` after the start) passes.

    The time is measured by the event loop's clock. The last sleep is clipped
    to the deadline, so that the session never sleeps beyond it.
    """
    timeout: float
    interval: float

    def __post_init__(self) -> None:
        if self.timeout <= 0:
            raise BudgetError(f"The timeout must be positive, got {self.timeout!r}.")
        if self.interval <= 0:
            raise BudgetError(f"The interval must be positive, got {self.interval!r}.")

    def __str__(self) -> str:
        return f"{self.timeout}s"

    def start(self) -> "DeadlineCountdown":
        return DeadlineCountdown(self)


class DeadlineCountdown:

    def __init__(self, budget: DeadlineBudget) -> None:
        super().__init__()
        self.budget = budget
        self.attempts = 0
        self._loop = asyncio.get_running_loop()
        self.deadline = self._loop.time() + budget.timeout

    def remaining(self) -> bool:
        return self._loop.time() < self.deadline

    def record_attempt(self, *, transient: bool) -> None:
        self.attempts += 1

    def next_delay(self, at_least: Optional[float] = None) -> float:
        delay = self.budget.interval if at_least is None else max(self.budget.interval, at_least)
        return max(0.0, min(delay, self.deadline - self._loop.time()))


Budget = Union[AttemptsBudget, DeadlineBudget]
