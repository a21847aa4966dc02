"""
Recipes: the preconfigured polling sessions for the known kinds of resources.

A recipe bundles everything that a session needs except the context:
the path to read (a template), the decoder of the bodies into snapshots,
the per-resource classification rules, the convergence predicate,
and the default budget (as observed to be sufficient in practice).

The parametrised parts (the path, the predicate, the decoder) are formatted
or made per session from the caller's keyword arguments, e.g. ``instance_id``
for the path, or ``action`` & ``node_name`` for the node actions.
Every factory accepts all the arguments and picks only those it needs.

The recipes are kept in a registry, so that the callers can override
the defaults or add their own recipes without changing the library.
"""
import dataclasses
import string
from typing import Any, Callable, Iterable, Iterator, Optional

from cloudpoll._cogs.structs import snapshots
from cloudpoll._core.actions import budgets, classifiers
from cloudpoll._core.intents import predicates

PredicateFactory = Callable[..., predicates.Predicate]
DecoderFactory = Callable[..., snapshots.Decoder]


def fixed(obj: Any) -> Callable[..., Any]:
    """ A factory of the unparametrised predicates & decoders: ignore the arguments. """
    def factory(**_: Any) -> Any:
        return obj
    return factory


@dataclasses.dataclass(frozen=True)
class Recipe:
    name: str
    path: str  # a template, e.g. "/api/instances/{instance_id}/nodes"
    predicate: PredicateFactory
    budget: budgets.Budget
    decoder: DecoderFactory = fixed(snapshots.as_is)
    rules: tuple[classifiers.Rule, ...] = ()
    noop_statuses: frozenset[int] = frozenset()  # of the trigger: "nothing to wait for".

    @property
    def parameters(self) -> frozenset[str]:
        """ The names of the path's parameters, which the callers must provide. """
        fields = (field for _, field, _, _ in string.Formatter().parse(self.path))
        return frozenset(field for field in fields if field)

    def format_path(self, **params: Any) -> str:
        missing = self.parameters - set(params)
        if missing:
            raise TypeError(f"Recipe {self.name!r} requires the parameters: "
                            f"{', '.join(sorted(missing))}")
        return self.path.format(**params)

    def make_predicate(self, **params: Any) -> predicates.Predicate:
        return self.predicate(**params)

    def make_decoder(self, **params: Any) -> snapshots.Decoder:
        return self.decoder(**params)


class RecipeRegistry:
    """
    A named collection of recipes.

    The names are unique: a recipe can be replaced only explicitly.
    """

    def __init__(self, recipes: Iterable[Recipe] = ()) -> None:
        super().__init__()
        self._recipes: dict[str, Recipe] = {}
        for recipe in recipes:
            self.register(recipe)

    def __contains__(self, name: str) -> bool:
        return name in self._recipes

    def __iter__(self) -> Iterator[Recipe]:
        return iter(self._recipes.values())

    def __len__(self) -> int:
        return len(self._recipes)

    def register(self, recipe: Recipe, *, replace: bool = False) -> None:
        if recipe.name in self._recipes and not replace:
            raise ValueError(f"Recipe {recipe.name!r} is already registered.")
        self._recipes[recipe.name] = recipe

    def get(self, name: str) -> Recipe:
        try:
            return self._recipes[name]
        except KeyError:
            raise LookupError(f"Unknown recipe: {name!r}") from None

    def names(self) -> list[str]:
        return sorted(self._recipes)


def _node_action(*, action: str, **_: Any) -> predicates.Predicate:
    return predicates.node_action(action)


def _node_named(*, node_name: str, **_: Any) -> snapshots.Decoder:
    return snapshots.node_named(node_name)


def _plugin_changed(*, plugin_name: str, enabled: bool, **_: Any) -> predicates.Predicate:
    return predicates.plugin_changed(plugin_name, enabled)


INSTANCE = '/api/instances/{instance_id}'
NODES = '/api/instances/{instance_id}/nodes'
CUSTOM_DOMAIN = '/api/instances/{instance_id}/custom-domain'
PLUGINS = '/api/instances/{instance_id}/plugins'

# Firewall rules are still being configured (40001); the peering is not visible yet (40003).
PEERING_RULES = (classifiers.on_error_code((40001, 40003), transient=True),)

# The VPC info is not readable while the VPC is being provisioned.
VPC_RULES = (classifiers.on_status((400,), classifiers.TransientFailure("VPC is not ready yet")),)


def make_default_recipes() -> list[Recipe]:
    """ The recipes for the known resources, with the budgets known to be sufficient. """
    return [
        Recipe(
            name='instance-ready',
            path=INSTANCE,
            decoder=fixed(snapshots.Instance.from_payload),
            predicate=fixed(predicates.instance_ready),
            budget=budgets.DeadlineBudget(timeout=1800, interval=10),
        ),
        Recipe(
            name='instance-deleted',
            path=INSTANCE,
            predicate=fixed(predicates.removed),
            rules=(classifiers.on_absence(),),
            budget=budgets.DeadlineBudget(timeout=1800, interval=10),
        ),
        Recipe(
            name='nodes-ready',
            path=NODES,
            decoder=fixed(snapshots.Nodes.from_payload),
            predicate=fixed(predicates.all_nodes_configured),
            budget=budgets.DeadlineBudget(timeout=1800, interval=15),
        ),
        Recipe(
            name='node-action',
            path=NODES,
            decoder=_node_named,
            predicate=_node_action,
            budget=budgets.DeadlineBudget(timeout=1800, interval=20),
        ),
        Recipe(
            name='disk-resized',
            path=NODES,
            decoder=fixed(snapshots.Nodes.from_payload),
            predicate=fixed(predicates.all_nodes_configured),
            budget=budgets.DeadlineBudget(timeout=1800, interval=30),
        ),
        Recipe(
            name='custom-domain-configured',
            path=CUSTOM_DOMAIN,
            decoder=fixed(snapshots.CustomDomain.from_payload),
            predicate=fixed(predicates.custom_domain_configured(True)),
            budget=budgets.DeadlineBudget(timeout=600, interval=1),
        ),
        Recipe(
            name='custom-domain-removed',
            path=CUSTOM_DOMAIN,
            decoder=fixed(snapshots.CustomDomain.from_payload),
            predicate=fixed(predicates.custom_domain_configured(False)),
            rules=(classifiers.on_absence(),),
            noop_statuses=frozenset({200}),
            budget=budgets.DeadlineBudget(timeout=600, interval=1),
        ),
        Recipe(
            name='vpc-ready',
            path='/api/vpcs/{vpc_id}/vpc-peering/info',
            predicate=fixed(predicates.accepted),
            rules=VPC_RULES,
            budget=budgets.DeadlineBudget(timeout=1800, interval=10),
        ),
        Recipe(
            name='privatelink-enabled',
            path='/api/instances/{instance_id}/privatelink',
            decoder=fixed(snapshots.Feature.from_payload),
            predicate=fixed(predicates.feature_enabled),
            budget=budgets.DeadlineBudget(timeout=1800, interval=10),
        ),
        Recipe(
            name='vpc-connect-enabled',
            path='/api/instances/{instance_id}/vpc-connect',
            decoder=fixed(snapshots.Feature.from_payload),
            predicate=fixed(predicates.feature_enabled),
            budget=budgets.DeadlineBudget(timeout=1800, interval=10),
        ),
        Recipe(
            name='peering-accepted',
            path='/api/instances/{instance_id}/vpc-peering/status/{peering_id}',
            decoder=fixed(snapshots.Peering.from_payload),
            predicate=fixed(predicates.peering_accepted),
            rules=PEERING_RULES,
            budget=budgets.DeadlineBudget(timeout=1800, interval=10),
        ),
        Recipe(
            name='vpc-peering-accepted',
            path='/api/vpcs/{vpc_id}/vpc-peering/status/{peering_id}',
            decoder=fixed(snapshots.Peering.from_payload),
            predicate=fixed(predicates.peering_accepted),
            rules=PEERING_RULES,
            budget=budgets.DeadlineBudget(timeout=1800, interval=10),
        ),
        Recipe(
            name='job-completed',
            path='/api/instances/{instance_id}/jobs/{job_id}',
            decoder=fixed(snapshots.Job.from_payload),
            predicate=fixed(predicates.job_completed),
            budget=budgets.DeadlineBudget(timeout=3600, interval=5),
        ),
        Recipe(
            name='plugin-changed',
            path=PLUGINS,
            decoder=fixed(snapshots.Plugins.from_payload),
            predicate=_plugin_changed,
            rules=(classifiers.on_locked(),),
            budget=budgets.DeadlineBudget(timeout=1800, interval=10),
        ),
        Recipe(
            name='plugins-removed',
            path=PLUGINS,
            decoder=fixed(snapshots.Plugins.from_payload),
            predicate=fixed(predicates.plugins_removed),
            rules=(classifiers.on_locked(), classifiers.on_absence()),
            budget=budgets.DeadlineBudget(timeout=1800, interval=10),
        ),
        Recipe(
            name='rabbitmq-upgraded-latest',
            path=NODES,
            decoder=fixed(snapshots.Nodes.from_payload),
            predicate=fixed(predicates.all_nodes_configured),
            noop_statuses=frozenset({200}),  # "Already at highest possible version"
            budget=budgets.DeadlineBudget(timeout=3600, interval=10),
        ),
        Recipe(
            name='rabbitmq-upgraded-version',  # 200 means the upgrade has started.
            path=NODES,
            decoder=fixed(snapshots.Nodes.from_payload),
            predicate=fixed(predicates.all_nodes_configured),
            budget=budgets.DeadlineBudget(timeout=3600, interval=10),
        ),
        Recipe(
            name='lavinmq-upgraded',
            path=NODES,
            decoder=fixed(snapshots.Nodes.from_payload),
            predicate=fixed(predicates.all_nodes_configured),
            noop_statuses=frozenset({200}),
            budget=budgets.DeadlineBudget(timeout=3600, interval=10),
        ),
        Recipe(
            name='configuration-read',
            path='{path}',
            predicate=fixed(predicates.accepted),
            budget=budgets.AttemptsBudget(attempts=5, delay=20),
        ),
    ]


_default_registry: Optional[RecipeRegistry] = None


def get_default_registry() -> RecipeRegistry:
    """
    Get the default registry to be used by :func:`converge`
    unless the explicit registry is provided to it.
    """
    global _default_registry
    if _default_registry is None:
        _default_registry = RecipeRegistry(make_default_recipes())
    return _default_registry


def set_default_registry(registry: RecipeRegistry) -> None:
    """
    Set the default registry to be used by :func:`converge`
    unless the explicit registry is provided to it.
    """
    global _default_registry
    _default_registry = registry
