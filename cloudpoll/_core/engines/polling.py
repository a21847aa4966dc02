"""
The convergence-polling engine: call, classify, evaluate, sleep, repeat.

One polling session runs in the caller's own task and blocks it until
the remote state converges or the session fails. There are no background
tasks and no shared state: every session owns its countdown and its last
observations, so concurrent sessions cannot interfere with each other.

The calls within one session are strictly sequential. The only suspension
point is the sleep between the attempts, which is also the only place where
the session can be stopped from outside (by the ``stopper`` event or by
cancelling the caller's task).

Transport errors (connectivity, timeouts of individual requests) are never
retried here: they escape from the operation as is. Only the remote-reported
transient failures are retried, and only within the budget.
"""
import asyncio
from typing import Any, Optional

from cloudpoll._cogs.aiokits import aiotime
from cloudpoll._cogs.clients import api, errors
from cloudpoll._cogs.configs import configuration
from cloudpoll._cogs.helpers import typedefs
from cloudpoll._cogs.structs import snapshots
from cloudpoll._core.actions import budgets, classifiers, loggers, operations
from cloudpoll._core.intents import predicates


class PollSession:
    """
    An ephemeral state of one polling session: never persisted, never shared.
    """

    def __init__(
            self,
            operation: operations.Operation,
            classifier: classifiers.Classifier,
            budget: budgets.Budget,
            *,
            stopper: Optional[asyncio.Event] = None,
            settings: Optional[configuration.ClientSettings] = None,
            logger: Optional[typedefs.Logger] = None,
    ) -> None:
        super().__init__()
        self.operation = operation
        self.classifier = classifier
        self.budget = budget
        self.stopper = stopper
        self.settings = settings if settings is not None else configuration.ClientSettings()
        self.logger = logger if logger is not None else loggers.SessionLogger(
            method=operation.request.verb,
            path=operation.request.path,
        )
        self.last_response: Optional[api.Response] = None
        self.last_snapshot: Any = None
        self._loop = asyncio.get_running_loop()
        self._started = self._loop.time()
        self._countdown = budget.start()

    @property
    def attempts(self) -> int:
        return self._countdown.attempts

    @property
    def elapsed(self) -> float:
        return self._loop.time() - self._started

    async def run(self, predicate: predicates.Predicate) -> Any:
        """
        Repeat the operation until the predicate converges or the session fails.

        Returns the snapshot that has satisfied the predicate (not a re-fetched one).
        """
        deadline_bound = isinstance(self.budget, budgets.DeadlineBudget)
        if predicates.requires_deadline(predicate) and not deadline_bound:
            name = getattr(predicate, "__name__", repr(predicate))
            raise budgets.BudgetError(f"{name} can only be polled with a deadline budget.")

        request = self.operation.request
        while True:
            idx = self.attempts + 1
            self.logger.debug(f"Polling attempt #{idx}: {request}")

            # Transport errors escape from here as is: they are not our business.
            response = await self.operation()
            self.last_response = response

            classification = self.classifier(response)
            retry_after: Optional[float] = None
            match classification:
                case classifiers.FatalFailure(reason=reason):
                    self.logger.error(f"Polling attempt #{idx} failed permanently: "
                                      f"{request} -> {response.status}: {reason}")
                    raise errors.FatalRemoteError(reason, status=response.status,
                                                  failure=response.failure)

                case classifiers.TransientFailure(reason=reason, retry_after=retry_after):
                    self.logger.debug(f"Polling attempt #{idx} failed temporarily: "
                                      f"{request} -> {response.status}: {reason}")
                    transient = True

                case classifiers.Success(absent=absent):
                    snapshot = snapshots.ABSENT if absent else self.operation.decode(response.data)
                    self.last_snapshot = snapshot
                    verdict = predicate(snapshot)
                    match verdict:
                        case predicates.Converged():
                            self.logger.debug(f"Polling attempt #{idx} has converged: {request}")
                            return snapshot
                        case predicates.BusinessFailure(message=message):
                            self.logger.error(f"Polling attempt #{idx} reports a failure: "
                                              f"{request} -> {message}")
                            raise errors.BusinessFailureError(message)
                        case predicates.Pending():
                            self.logger.debug(f"Polling attempt #{idx} is still pending: {request}")
                            transient = False
                        case _:
                            raise TypeError(f"Unsupported verdict: {verdict!r}")

                case _:
                    raise TypeError(f"Unsupported classification: {classification!r}")

            # Pending & transient states consume the same budget; only transients grow the delays.
            self._countdown.record_attempt(transient=transient)
            if not self._countdown.remaining():
                raise self._exceeded()

            delay = self._countdown.next_delay(at_least=self._limit_retry_after(retry_after))
            self.logger.debug(f"Sleeping for {delay:.3g}s before the attempt #{idx + 1}.")
            await self._sleep(delay)

            # The deadline could have passed while sleeping (the last sleep is clipped to it).
            if not self._countdown.remaining():
                raise self._exceeded()

    async def _sleep(self, delay: float) -> None:
        unslept = await aiotime.sleep(delay, wakeup=self.stopper)
        if unslept is not None or (self.stopper is not None and self.stopper.is_set()):
            self.logger.debug(f"Polling is stopped after {self.attempts} attempt(s).")
            raise errors.PollCancelledError(
                f"Polling of {self.operation.request} is stopped "
                f"after {self.attempts} attempt(s) in {self.elapsed:.3g}s.",
                attempts=self.attempts,
                elapsed=self.elapsed,
            )

    def _limit_retry_after(self, retry_after: Optional[float]) -> Optional[float]:
        if retry_after is None:
            return None
        return min(retry_after, self.settings.polling.max_retry_after)

    def _exceeded(self) -> errors.TimeoutExceededError:
        self.logger.warning(f"Polling gives up after {self.attempts} attempt(s) "
                            f"within the budget of {self.budget}: {self.operation.request}")
        return errors.TimeoutExceededError(
            f"Polling of {self.operation.request} has not converged "
            f"after {self.attempts} attempt(s) in {self.elapsed:.3g}s.",
            attempts=self.attempts,
            elapsed=self.elapsed,
        )


async def poll_until_converged(
        operation: operations.Operation,
        classifier: classifiers.Classifier,
        predicate: predicates.Predicate,
        budget: budgets.Budget,
        *,
        stopper: Optional[asyncio.Event] = None,
        settings: Optional[configuration.ClientSettings] = None,
        logger: Optional[typedefs.Logger] = None,
) -> Any:
    """
    Block until the remote state converges, and return the converged snapshot.

    Raises :class:`FatalRemoteError`, :class:`BusinessFailureError`,
    :class:`TimeoutExceededError`, or :class:`PollCancelledError` otherwise.
    The transport errors of the operation are escalated as is.
    """
    session = PollSession(
        operation=operation,
        classifier=classifier,
        budget=budget,
        stopper=stopper,
        settings=settings,
        logger=logger,
    )
    return await session.run(predicate)


async def trigger(
        operation: operations.Operation,
        classifier: classifiers.Classifier,
        budget: budgets.Budget,
        *,
        stopper: Optional[asyncio.Event] = None,
        settings: Optional[configuration.ClientSettings] = None,
        logger: Optional[typedefs.Logger] = None,
) -> api.Response:
    """
    Perform the call that triggers the change, and return its raw response.

    The call is retried on the transient failures within the budget, the same
    way as the reads are. The fatal failures (e.g. a refusal with a business
    error code) are raised immediately -- so no convergence polling follows.
    """
    session = PollSession(
        operation=operation,
        classifier=classifier,
        budget=budget,
        stopper=stopper,
        settings=settings,
        logger=logger,
    )
    await session.run(predicates.accepted)
    if session.last_response is None:  # for type-checking!
        raise RuntimeError("A triggering session has finished without a response.")
    return session.last_response

