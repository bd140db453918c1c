from enhancers import recalculate_item_subtotals, total_cart_discount
from models import ActionResult, Cart, Promotion
from registry import PromotionRegistry


async def noop(context, cart: Cart, *, promotion: Promotion, action_parameters: dict) -> ActionResult:
    return ActionResult(affected=False)


async def item_discount(context, cart: Cart, *, promotion: Promotion, action_parameters: dict) -> ActionResult:
    """Discount every item by a percentage or a fixed amount per unit.

    The discount on an item never exceeds its subtotal amount.
    """
    discount_type = action_parameters.get("discountType", "percentage")
    discount_value = float(action_parameters.get("discountValue", 0))
    if discount_value <= 0:
        return ActionResult(affected=False)

    affected = False
    for item in cart.items:
        amount = item.price * item.qty
        if discount_type == "percentage":
            discount = amount * discount_value / 100
        else:
            discount = discount_value * item.qty
        discount = min(discount, amount - item.subtotal.discount)
        if discount <= 0:
            continue
        item.subtotal.discount = round(item.subtotal.discount + discount, 2)
        affected = True
    return ActionResult(affected=affected)


async def reset_item_discounts(context, cart: Cart) -> None:
    for item in cart.items:
        item.subtotal.discount = 0


async def cart_subtotal(context, cart: Cart, *, promotion: Promotion, trigger_parameters: dict) -> bool:
    minimum = float(trigger_parameters.get("minimumAmount", 0))
    subtotal = sum(item.price * item.qty for item in cart.items)
    return subtotal >= minimum


async def coupon(context, cart: Cart, *, promotion: Promotion, trigger_parameters: dict) -> bool:
    code = (trigger_parameters.get("couponCode") or "").strip().upper()
    related = promotion.relatedCoupon or {}
    return bool(code) and (related.get("code") or "").strip().upper() == code


def build_default_registry() -> PromotionRegistry:
    registry = PromotionRegistry()
    registry.register_action("noop", noop)
    registry.register_action("item-discount", item_discount, cleanup=reset_item_discounts)
    registry.register_trigger("cart-subtotal", cart_subtotal)
    registry.register_trigger("coupon", coupon)
    registry.register_enhancer(recalculate_item_subtotals)
    registry.register_enhancer(total_cart_discount)
    return registry
