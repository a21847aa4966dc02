"""
Classification of the raw responses into the outcomes of interest.

Every response is either a success (and its body is then a state observation),
or a transient failure (worth repeating the call), or a fatal failure
(stop immediately). The decision is made by a small table of rules,
derived from the observed behaviour of the control plane.

The rules are tried in order; the first one that recognises the response wins.
The per-resource overrides are prepended to the default table, so that they
take precedence: e.g. for the resources where "not found" means "removed".
"""
import dataclasses
from typing import Callable, Collection, Iterable, Optional

from cloudpoll._cogs.clients import api
from cloudpoll._cogs.configs import configuration

SUCCESS_STATUSES = frozenset({200, 201, 202, 204})


@dataclasses.dataclass(frozen=True)
class Classification:
    pass


@dataclasses.dataclass(frozen=True)
class Success(Classification):
    absent: bool = False  # the body is not a state, the absence of the resource is.


@dataclasses.dataclass(frozen=True)
class TransientFailure(Classification):
    reason: str
    retry_after: Optional[float] = None


@dataclasses.dataclass(frozen=True)
class FatalFailure(Classification):
    reason: str


# A rule either recognises the response and classifies it, or passes (returns None).
Rule = Callable[[api.Response], Optional[Classification]]


def on_status(statuses: Collection[int], classification: Classification) -> Rule:
    """ Classify the responses by their statuses alone, regardless of their bodies. """
    def rule(response: api.Response) -> Optional[Classification]:
        return classification if response.status in statuses else None
    return rule


def on_success(statuses: Collection[int] = SUCCESS_STATUSES) -> Rule:
    def rule(response: api.Response) -> Optional[Classification]:
        return Success() if response.status in statuses else None
    return rule


def on_marker(marker: str, statuses: Collection[int] = (400, 503)) -> Rule:
    """ The backend reports a retryable timeout talking to its internal dependency. """
    def rule(response: api.Response) -> Optional[Classification]:
        if response.status in statuses and response.error == marker:
            return TransientFailure(marker)
        return None
    return rule


def on_error_code(
        codes: Collection[int],
        *,
        transient: bool = False,
        statuses: Collection[int] = (400,),
) -> Rule:
    """ The failure body carries one of the specific numeric error codes. """
    def rule(response: api.Response) -> Optional[Classification]:
        if response.status in statuses and response.error_code in codes:
            reason = response.message or response.error or f"error code {response.error_code}"
            return TransientFailure(reason) if transient else FatalFailure(reason)
        return None
    return rule


def on_not_found(statuses: Collection[int] = (404,)) -> Rule:
    def rule(response: api.Response) -> Optional[Classification]:
        return FatalFailure("not found") if response.status in statuses else None
    return rule


def on_absence(statuses: Collection[int] = (404, 410)) -> Rule:
    """ For the resources where the tear-down equals the absence: "not found" is a state. """
    def rule(response: api.Response) -> Optional[Classification]:
        return Success(absent=True) if response.status in statuses else None
    return rule


def on_rate_limit(statuses: Collection[int] = (429,)) -> Rule:
    def rule(response: api.Response) -> Optional[Classification]:
        if response.status in statuses:
            return TransientFailure("rate limit exceeded", retry_after=response.retry_after)
        return None
    return rule


def on_locked(statuses: Collection[int] = (423,)) -> Rule:
    def rule(response: api.Response) -> Optional[Classification]:
        if response.status in statuses:
            return TransientFailure(response.message or "resource is locked")
        return None
    return rule


def unexpected(response: api.Response) -> Classification:
    message = response.message or response.error
    reason = f"unexpected status {response.status}"
    return FatalFailure(f"{reason}: {message}" if message else reason)


@dataclasses.dataclass(frozen=True)
class Classifier:
    rules: tuple[Rule, ...] = ()

    def __call__(self, response: api.Response) -> Classification:
        for rule in self.rules:
            classification = rule(response)
            if classification is not None:
                return classification
        return unexpected(response)

    def override(self, *rules: Rule) -> "Classifier":
        """ Make a new classifier with the given rules taking precedence. """
        return dataclasses.replace(self, rules=tuple(rules) + self.rules)


def default(
        settings: Optional[configuration.ClientSettings] = None,
        *,
        extra: Iterable[Rule] = (),
) -> Classifier:
    """
    The default rule table, as observed from the control plane's behaviour.

    The extra rules go right before the catch-all "unexpected status" fallback,
    so they can only classify what the default table leaves unrecognised.
    """
    settings = settings if settings is not None else configuration.ClientSettings()
    rules: list[Rule] = [
        on_success(),
        on_marker(settings.polling.transient_marker),
        on_error_code(settings.polling.business_codes),
        on_not_found(),
    ]
    if settings.polling.retry_rate_limits:
        rules.append(on_rate_limit())
    rules.extend(extra)
    return Classifier(rules=tuple(rules))
