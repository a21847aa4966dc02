"""
Convergence by recipes: trigger a change, then wait until it takes effect.

This is the main entry point for the callers which work with the known
resources: they only name the recipe and give the parameters, while
the classification, the predicates, and the budgets come from the recipe.
"""
import asyncio
from typing import Any, Optional

from cloudpoll._cogs.clients import auth
from cloudpoll._cogs.configs import configuration
from cloudpoll._cogs.helpers import typedefs
from cloudpoll._core.actions import budgets, classifiers, loggers, operations
from cloudpoll._core.engines import polling
from cloudpoll._core.intents import predicates, recipes


async def converge(
        context: auth.APIContext,
        name: str,
        *,
        trigger: Optional[operations.OperationRequest] = None,
        budget: Optional[budgets.Budget] = None,
        stopper: Optional[asyncio.Event] = None,
        settings: Optional[configuration.ClientSettings] = None,
        logger: Optional[typedefs.Logger] = None,
        registry: Optional[recipes.RecipeRegistry] = None,
        **params: Any,
) -> Any:
    """
    Run the optional triggering call, and poll until the recipe's target state.

    Returns the converged snapshot, or ``None`` if the trigger has reported
    that there was nothing to change (one of the recipe's no-op statuses).

    The recipe's default budget is used unless an explicit one is given.
    The same budget (restarted) bounds both the trigger and the polling.
    """
    registry = registry if registry is not None else recipes.get_default_registry()
    settings = settings if settings is not None else configuration.ClientSettings()
    recipe = registry.get(name)
    budget = budget if budget is not None else recipe.budget

    # Fail on the missing or wrong parameters before any call is made.
    path = recipe.format_path(**params)
    predicate = recipe.make_predicate(**params)
    decoder = recipe.make_decoder(**params)
    if predicates.requires_deadline(predicate) and not isinstance(budget, budgets.DeadlineBudget):
        raise budgets.BudgetError(f"Recipe {name!r} can only be polled with a deadline budget.")

    classifier = classifiers.default(settings).override(*recipe.rules)

    if trigger is not None:
        trigger_logger = loggers.SessionLogger(
            recipe=name, method=trigger.verb, path=trigger.path, base=logger)
        response = await polling.trigger(
            operation=operations.APIOperation(
                request=trigger,
                context=context,
                settings=settings,
                logger=trigger_logger,
            ),
            classifier=classifier,
            budget=budget,
            stopper=stopper,
            settings=settings,
            logger=trigger_logger,
        )
        if response.status in recipe.noop_statuses:
            trigger_logger.info(f"Nothing to wait for: {trigger} -> {response.status}")
            return None

    request = operations.OperationRequest(verb='get', path=path)
    poll_logger = loggers.SessionLogger(
        recipe=name, method=request.verb, path=request.path, base=logger)
    return await polling.poll_until_converged(
        operation=operations.APIOperation(
            request=request,
            context=context,
            decoder=decoder,
            settings=settings,
            logger=poll_logger,
        ),
        classifier=classifier,
        predicate=predicate,
        budget=budget,
        stopper=stopper,
        settings=settings,
        logger=poll_logger,
    )
