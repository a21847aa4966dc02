"""
The main cloudpoll module for all the exported functions & classes.
"""
# isort: skip_file

# Unlike all other places, where we import other modules and refer
# the functions via the modules, this is the library's top-level interface,
# as it is seen by the users. So, we export the individual functions.

from cloudpoll._cogs.clients.api import (
    Response,
    request,
)
from cloudpoll._cogs.clients.auth import (
    APIContext,
)
from cloudpoll._cogs.clients.errors import (
    RawFailure,
    PollingError,
    FatalRemoteError,
    SnapshotError,
    BusinessFailureError,
    TimeoutExceededError,
    PollCancelledError,
)
from cloudpoll._cogs.configs.configuration import (
    ClientSettings,
    NetworkingSettings,
    PollingSettings,
)
from cloudpoll._cogs.helpers.typedefs import (
    Logger,
)
from cloudpoll._cogs.helpers.versions import (
    version as __version__,
)
from cloudpoll._cogs.structs.credentials import (
    ConnectionInfo,
)
from cloudpoll._cogs.structs.snapshots import (
    ABSENT,
    Absent,
    Instance,
    Node,
    Nodes,
    CustomDomain,
    Feature,
    Peering,
    Job,
    Plugin,
    Plugins,
)
from cloudpoll._core.actions.budgets import (
    Budget,
    BudgetError,
    AttemptsBudget,
    DeadlineBudget,
)
from cloudpoll._core.actions.classifiers import (
    Classification,
    Success,
    TransientFailure,
    FatalFailure,
    Classifier,
    Rule,
    on_status,
    on_success,
    on_marker,
    on_error_code,
    on_not_found,
    on_absence,
    on_rate_limit,
    on_locked,
)
from cloudpoll._core.actions.classifiers import (
    default as default_classifier,
)
from cloudpoll._core.actions.loggers import (
    LogFormat,
    configure,
)
from cloudpoll._core.actions.operations import (
    Operation,
    OperationRequest,
    APIOperation,
)
from cloudpoll._core.engines.converging import (
    converge,
)
from cloudpoll._core.engines.polling import (
    PollSession,
    poll_until_converged,
    trigger,
)
from cloudpoll._core.intents.predicates import (
    Verdict,
    Pending,
    Converged,
    BusinessFailure,
    Predicate,
    deadline_bound,
)
from cloudpoll._core.intents import (
    predicates,
)
from cloudpoll._core.intents.recipes import (
    Recipe,
    RecipeRegistry,
    get_default_registry,
    set_default_registry,
)

__all__ = [
    'Response', 'request',
    'APIContext',
    'RawFailure',
    'PollingError',
    'FatalRemoteError',
    'SnapshotError',
    'BusinessFailureError',
    'TimeoutExceededError',
    'PollCancelledError',
    'ClientSettings',
    'NetworkingSettings',
    'PollingSettings',
    'Logger',
    'ConnectionInfo',
    'ABSENT', 'Absent',
    'Instance', 'Node', 'Nodes', 'CustomDomain', 'Feature',
    'Peering', 'Job', 'Plugin', 'Plugins',
    'Budget', 'BudgetError', 'AttemptsBudget', 'DeadlineBudget',
    'Classification', 'Success', 'TransientFailure', 'FatalFailure',
    'Classifier', 'Rule', 'default_classifier',
    'on_status', 'on_success', 'on_marker', 'on_error_code',
    'on_not_found', 'on_absence', 'on_rate_limit', 'on_locked',
    'LogFormat', 'configure',
    'Operation', 'OperationRequest', 'APIOperation',
    'converge',
    'PollSession', 'poll_until_converged', 'trigger',
    'Verdict', 'Pending', 'Converged', 'BusinessFailure',
    'Predicate', 'deadline_bound', 'predicates',
    'Recipe', 'RecipeRegistry', 'get_default_registry', 'set_default_registry',
]
