from typing import Callable, Iterable

from models import Cart


def enhance_cart(context, enhancers: Iterable[Callable], cart: Cart) -> Cart:
    """Return a copy of `cart` with every derived field recomputed."""
    enhanced = cart.model_copy(deep=True)
    for enhancer in enhancers:
        enhanced = enhancer(context, enhanced)
    return enhanced


def recalculate_item_subtotals(context, cart: Cart) -> Cart:
    for item in cart.items:
        item.subtotal.amount = round(item.price * item.qty, 2)
    return cart


def total_cart_discount(context, cart: Cart) -> Cart:
    cart.discount = round(sum(item.subtotal.discount or 0 for item in cart.items), 2)
    return cart
