import logging
from typing import List

from enhancers import enhance_cart
from models import ActionResult, Cart, Promotion
from registry import maybe_await

logger = logging.getLogger(__name__)


async def trigger_handler(context, cart: Cart, promotion: Promotion) -> bool:
    """True when at least one of the promotion's triggers fires."""
    for trigger in promotion.triggers:
        trigger_fn = context.registry.get_trigger(trigger.triggerKey)
        if trigger_fn is None:
            logger.debug("Unknown trigger '%s' on promotion %s, skipping", trigger.triggerKey, promotion.id)
            continue
        fired = await maybe_await(trigger_fn(context, cart, promotion=promotion, trigger_parameters=trigger.triggerParameters))
        if fired:
            return True
    return False


async def action_handler(context, cart: Cart, promotion: Promotion) -> ActionResult:
    """Run every action of `promotion` against `cart`, in order."""
    affected = False
    temporary_affected = False
    for action in promotion.actions:
        registered = context.registry.get_action(action.actionKey)
        if registered is None:
            logger.debug("Unknown action '%s' on promotion %s, skipping", action.actionKey, promotion.id)
            continue
        result = await maybe_await(
            registered.handler(context, cart, promotion=promotion, action_parameters=action.actionParameters)
        )
        if result is None:
            continue
        affected = affected or result.affected
        temporary_affected = temporary_affected or result.temporaryAffected
    return ActionResult(affected=affected, temporaryAffected=temporary_affected)


async def run_action_cleanups(context, cart: Cart) -> None:
    for registered in context.registry.actions.values():
        if registered.cleanup is not None:
            await maybe_await(registered.cleanup(context, cart))


async def apply_combination_promotions(context, cart: Cart, promotions: List[Promotion]) -> Cart:
    """Apply `promotions` to `cart` in order and record them as applied.

    The cart is re-enhanced after every non-temporary effect so the next
    action sees up to date derived fields. Returns the resulting cart.
    """
    for promotion in promotions:
        result = await action_handler(context, cart, promotion)
        if all(applied.id != promotion.id for applied in cart.appliedPromotions):
            cart.appliedPromotions.append(promotion.model_copy(deep=True))
        if result.affected and not result.temporaryAffected:
            cart = enhance_cart(context, context.registry.enhancers, cart)
    return cart
