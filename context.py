from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional

from models import Cart
from qualifiers import can_be_applied
from registry import PromotionRegistry


def clean_cart(cart: Cart) -> Cart:
    """Default schema clean: round-trip the cart through its model."""
    return Cart.model_validate(cart.model_dump())


async def deny_all(permission: str, action: str, shop_id: Optional[str] = None) -> bool:
    return False


@dataclass
class PromotionContext:
    """Everything a resolution pass needs from the surrounding application."""

    promotions: Any  # store with find(selector) -> list[Promotion]
    registry: PromotionRegistry = field(default_factory=PromotionRegistry)
    carts: Any = None  # store with get / save / find_ids
    can_be_applied: Callable = can_be_applied
    clean_cart: Callable[[Cart], Cart] = clean_cart
    user_has_permission: Callable = deny_all
    headers: Mapping[str, str] = field(default_factory=dict)
    add_job: Optional[Callable] = None
