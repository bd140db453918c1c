from datetime import datetime, timedelta, timezone

import pytest

from context import PromotionContext
from enhancers import recalculate_item_subtotals, total_cart_discount
from models import ActionResult, Cart, CartItem, Promotion
from registry import PromotionRegistry
from stores import MemoryCartStore, MemoryPromotionStore

NOW = datetime.now(timezone.utc)
YESTERDAY = NOW - timedelta(days=1)
TOMORROW = NOW + timedelta(days=1)


def make_promotion(promotion_id, trigger_type="implicit", discount=1, stackability="all", trigger_key="always", **fields):
    data = {
        "id": promotion_id,
        "shopId": "shop",
        "triggerType": trigger_type,
        "startDate": YESTERDAY,
        "triggers": [{"triggerKey": trigger_key}],
        "actions": [{"actionKey": "add-discount", "actionParameters": {"amount": discount}}],
        "stackability": {"key": stackability},
    }
    data.update(fields)
    return Promotion.model_validate(data)


def make_cart(item_count=1, applied=None, **fields):
    items = [CartItem(id=f"item{i}", name=f"Item {i}", price=10, qty=1) for i in range(item_count)]
    return Cart(id="cart", shopId="shop", items=items, appliedPromotions=applied or [], **fields)


def ids(promotions):
    return [promotion.id for promotion in promotions]


async def always(context, cart, *, promotion, trigger_parameters):
    return True


async def never(context, cart, *, promotion, trigger_parameters):
    return False


async def add_discount(context, cart, *, promotion, action_parameters):
    for item in cart.items:
        item.subtotal.discount += action_parameters["amount"]
    return ActionResult(affected=True)


def reset_discounts(context, cart):
    for item in cart.items:
        item.subtotal.discount = 0


def make_registry():
    registry = PromotionRegistry()
    registry.register_trigger("always", always)
    registry.register_trigger("never", never)
    registry.register_action("add-discount", add_discount, cleanup=reset_discounts)
    registry.register_enhancer(recalculate_item_subtotals)
    registry.register_enhancer(total_cart_discount)
    return registry


@pytest.fixture
def registry():
    return make_registry()


@pytest.fixture
def context(registry):
    return PromotionContext(promotions=MemoryPromotionStore(), carts=MemoryCartStore(), registry=registry)
