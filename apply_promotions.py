"""
Resolve the promotions applied to a cart.

A pass loads the candidate promotions for the cart's shop, drops the ones
that are disabled, expired or not triggered, searches the best combination of
the rest, applies it to a working copy of the cart and finally commits that
copy onto the caller's cart.
"""
import asyncio
import logging
from datetime import datetime, timezone
from typing import List, Optional

from combinations import get_applicable_promotions
from config import PROMOTION_PREVIEW_HEADER
from enhancers import enhance_cart
from errors import InvalidParamsError
from handlers import apply_combination_promotions, run_action_cleanups, trigger_handler
from messages import (
    EXPIRED,
    NO_LONGER_AVAILABLE,
    NOT_ELIGIBLE,
    PROMOTION_SUBJECT,
    REPLACED,
    can_add_to_cart_messages,
    create_cart_message,
    find_cart_message,
    is_promotion_disabled,
    is_promotion_expired,
)
from models import Cart, CartMessage, Promotion
from registry import maybe_await

logger = logging.getLogger(__name__)


async def get_implicit_promotions(context, shop_id: str, current_time: datetime) -> List[Promotion]:
    selector = {
        "shopId": shop_id,
        "triggerType": "implicit",
        "startDate": {"$lte": current_time},
        "state": {"$in": ["created", "active"]},
    }
    promotions = await asyncio.to_thread(context.promotions.find, selector)
    logger.info("Fetched %d applicable promotions for shop %s", len(promotions), shop_id)
    return promotions


async def get_explicit_promotions_by_ids(context, shop_id: str, promotion_ids: List[str], current_time: datetime) -> List[Promotion]:
    if not promotion_ids:
        return []
    selector = {
        "id": {"$in": promotion_ids},
        "shopId": shop_id,
        "enabled": True,
        "triggerType": "explicit",
        "startDate": {"$lt": current_time},
    }
    return await asyncio.to_thread(context.promotions.find, selector)


def get_custom_current_time(context) -> Optional[str]:
    for name, value in (context.headers or {}).items():
        if name.lower() == PROMOTION_PREVIEW_HEADER.lower():
            return value
    return None


async def get_current_time(context, shop_id: str) -> datetime:
    """System time, unless a permitted caller previews another time."""
    now = datetime.now(timezone.utc)
    custom_current_time = get_custom_current_time(context)

    if not custom_current_time:
        return now
    if not await maybe_await(context.user_has_permission("promotions", "preview", shop_id)):
        return now

    try:
        current_time = datetime.fromisoformat(custom_current_time.strip().replace("Z", "+00:00"))
    except ValueError:
        logger.warning("Invalid custom current time provided. Returning system time.")
        return now
    if current_time.tzinfo is None:
        current_time = current_time.replace(tzinfo=timezone.utc)
    return current_time


def restore_transient_fields(cart: Cart, promotions: List[Promotion]) -> List[Promotion]:
    previously_applied = {promotion.id: promotion for promotion in cart.appliedPromotions}
    for promotion in promotions:
        existing = previously_applied.get(promotion.id)
        if existing is None:
            continue
        promotion.relatedCoupon = existing.relatedCoupon
        if existing.newlyAdded is not None:
            promotion.newlyAdded = existing.newlyAdded
    return promotions


async def apply_promotions(context, cart: Cart) -> Cart:
    """Apply the best combination of promotions to `cart`.

    The cart is only updated once the pass succeeds. Raises
    InvalidParamsError when the promotion the shopper just added could not be
    applied, leaving `cart` untouched.
    """
    current_time = await get_current_time(context, cart.shopId)
    promotions = await get_implicit_promotions(context, cart.shopId, current_time)

    applied_explicit_ids = [promotion.id for promotion in cart.appliedPromotions if promotion.triggerType == "explicit"]
    explicit_promotions = await get_explicit_promotions_by_ids(context, cart.shopId, applied_explicit_ids, current_time)
    unqualified_promotions = [*promotions, *restore_transient_fields(cart, explicit_promotions)]

    newly_added_promotion_id = next((promotion.id for promotion in unqualified_promotions if promotion.newlyAdded), None)

    working_cart = cart.model_copy(deep=True)
    await run_action_cleanups(context, working_cart)
    enhanced_cart = enhance_cart(context, context.registry.enhancers, working_cart)
    enhanced_cart.appliedPromotions = []

    attached: List[CartMessage] = []

    def add_message(promotion: Promotion, title: str, severity: str = "warning") -> None:
        if can_add_to_cart_messages(cart, enhanced_cart, promotion, title):
            message = create_cart_message(title, promotion.id, severity)
            enhanced_cart.messages.append(message)
            attached.append(message)
        else:
            # the same reason is already on the cart
            existing = find_cart_message(enhanced_cart, promotion.id, title)
            if existing is not None:
                attached.append(existing)

    applicable_promotions = []
    for promotion in unqualified_promotions:
        if is_promotion_disabled(promotion):
            add_message(promotion, NO_LONGER_AVAILABLE)
            continue

        if is_promotion_expired(promotion, current_time):
            logger.info("Promotion %s is expired, skipping", promotion.id)
            add_message(promotion, EXPIRED)
            continue

        if not await trigger_handler(context, enhanced_cart, promotion):
            logger.info("Promotion %s is not eligible, skipping", promotion.id)
            add_message(promotion, NOT_ELIGIBLE)
            continue

        applicable_promotions.append(promotion)

    highest_promotions = await get_applicable_promotions(context, enhanced_cart, applicable_promotions)

    highest_ids = {promotion.id for promotion in highest_promotions}
    for promotion in applicable_promotions:
        if promotion.id not in highest_ids:
            logger.info("Promotion %s replaced by a higher discount combination", promotion.id)
            add_message(promotion, REPLACED, severity="info")

    enhanced_cart = await apply_combination_promotions(context, enhanced_cart, highest_promotions)
    enhanced_cart.appliedPromotions = [
        promotion.model_copy(update={"newlyAdded": None}) for promotion in enhanced_cart.appliedPromotions
    ]

    # A coupon the shopper just submitted must not fail silently
    if newly_added_promotion_id:
        message = next((m for m in attached if m.metaFields.promotionId == newly_added_promotion_id), None)
        if message is not None:
            raise InvalidParamsError(message.message or message.title)

    applied_implicit_ids = {
        promotion.id for promotion in enhanced_cart.appliedPromotions if promotion.triggerType == "implicit"
    }
    enhanced_cart.messages = [
        message
        for message in enhanced_cart.messages
        if message.subject != PROMOTION_SUBJECT or message.metaFields.promotionId not in applied_implicit_ids
    ]

    cleaned_cart = context.clean_cart(enhanced_cart)
    cart.assign_from(cleaned_cart)

    logger.info("Applied %d promotions to cart %s", len(cart.appliedPromotions), cart.id)
    return cart
