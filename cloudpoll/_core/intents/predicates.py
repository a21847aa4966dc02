"""
Convergence predicates: has the remote state reached the target, or not yet?

A predicate is a pure function over the latest observed snapshot. It returns
one of three verdicts: the target is reached (:class:`Converged`), not yet
(:class:`Pending`), or never will be -- the entity reports its own terminal
failure (:class:`BusinessFailure`), e.g. a job has finished as "failed".

The parametrised predicates (e.g. for node actions) are made by factories,
which are called once per session with the caller's expectations.
"""
import dataclasses
from typing import Any, Callable, TypeVar

from cloudpoll._cogs.structs import snapshots


@dataclasses.dataclass(frozen=True)
class Verdict:
    pass


@dataclasses.dataclass(frozen=True)
class Pending(Verdict):
    pass


@dataclasses.dataclass(frozen=True)
class Converged(Verdict):
    pass


@dataclasses.dataclass(frozen=True)
class BusinessFailure(Verdict):
    message: str


PENDING = Pending()
CONVERGED = Converged()

Predicate = Callable[[Any], Verdict]
_PredicateT = TypeVar('_PredicateT', bound=Predicate)

NODE_ACTIONS_RUNNING = frozenset({'start', 'restart', 'reboot', 'mgmt.restart'})
NODE_ACTIONS_STOPPED = frozenset({'stop'})


def deadline_bound(fn: _PredicateT) -> _PredicateT:
    """
    Mark the predicate as usable only in the sessions with a deadline budget.

    Such predicates can stay pending for an unpredictably long time (e.g. jobs),
    so the sessions without a wall-clock deadline have no way to bound the wait.
    """
    setattr(fn, 'requires_deadline', True)
    return fn


def requires_deadline(fn: Predicate) -> bool:
    return bool(getattr(fn, 'requires_deadline', False))


def accepted(snapshot: Any) -> Verdict:
    """ Any successful response is the target: for triggers and plain reads. """
    return CONVERGED


def removed(snapshot: Any) -> Verdict:
    return CONVERGED if snapshot is snapshots.ABSENT else PENDING


def instance_ready(snapshot: snapshots.Instance) -> Verdict:
    return CONVERGED if snapshot.ready else PENDING


def all_nodes_configured(snapshot: snapshots.Nodes) -> Verdict:
    return CONVERGED if all(node.configured for node in snapshot.items) else PENDING


def node_action(action: str) -> Predicate:
    """ The node is running or stopped, as expected after the requested action. """
    if action in NODE_ACTIONS_RUNNING:
        expected = True
    elif action in NODE_ACTIONS_STOPPED:
        expected = False
    else:
        raise ValueError(f"Unknown node action: {action!r}")

    def predicate(snapshot: Any) -> Verdict:
        if snapshot is snapshots.ABSENT:
            return PENDING
        return CONVERGED if snapshot.running is expected else PENDING
    return predicate


def custom_domain_configured(expected: bool) -> Predicate:
    """ The custom domain is configured (after creation) or not (after deletion). """
    def predicate(snapshot: Any) -> Verdict:
        configured = False if snapshot is snapshots.ABSENT else snapshot.configured
        return CONVERGED if configured == expected else PENDING
    return predicate


def feature_enabled(snapshot: snapshots.Feature) -> Verdict:
    """ A network feature (PrivateLink, VPC-Connect) is enabled; "pending" is on the way. """
    if snapshot.status == 'enabled':
        return CONVERGED
    elif snapshot.status == 'pending':
        return PENDING
    else:
        return BusinessFailure(f"unexpected feature status: {snapshot.status!r}")


def peering_accepted(snapshot: snapshots.Peering) -> Verdict:
    if snapshot.status in ('active', 'pending-acceptance'):
        return CONVERGED
    elif snapshot.status == 'deleted':
        return BusinessFailure("peering has been deleted")
    else:
        return PENDING


@deadline_bound
def job_completed(snapshot: snapshots.Job) -> Verdict:
    if snapshot.status == 'completed':
        return CONVERGED
    elif snapshot.status == 'failed':
        return BusinessFailure(snapshot.error_message or "job failed")
    else:
        return PENDING


def plugins_removed(snapshot: Any) -> Verdict:
    if snapshot is snapshots.ABSENT:
        return CONVERGED
    return CONVERGED if len(snapshot.items) == 0 else PENDING


def plugin_changed(name: str, enabled: bool) -> Predicate:
    """ The plugin is enabled/disabled as requested; the required plugins never change. """
    def predicate(snapshot: snapshots.Plugins) -> Verdict:
        plugin = snapshot.find(name)
        if plugin is None:
            return CONVERGED if not enabled else PENDING
        if plugin.required or plugin.enabled == enabled:
            return CONVERGED
        return PENDING
    return predicate
