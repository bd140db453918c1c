"""
Selector matching and in-memory stores.

Selectors follow the document-store query shape used for promotions: plain
values match by equality, dicts hold `$in`, `$lt`, `$lte`, `$gt`, `$gte`.
"""
from typing import Any, Dict, Iterable, List, Optional

from models import Cart, Promotion

_OPERATORS = {
    "$in": lambda value, expected: value in expected,
    "$lt": lambda value, expected: value is not None and value < expected,
    "$lte": lambda value, expected: value is not None and value <= expected,
    "$gt": lambda value, expected: value is not None and value > expected,
    "$gte": lambda value, expected: value is not None and value >= expected,
}


def matches_selector(document: Dict[str, Any], selector: Dict[str, Any]) -> bool:
    for field, condition in selector.items():
        value = document.get(field)
        if isinstance(condition, dict) and condition and all(op.startswith("$") for op in condition):
            for op, expected in condition.items():
                if op not in _OPERATORS:
                    raise ValueError(f"Unsupported selector operator: {op}")
                if not _OPERATORS[op](value, expected):
                    return False
        elif value != condition:
            return False
    return True


def filter_promotions(promotions: Iterable[Promotion], selector: Dict[str, Any]) -> List[Promotion]:
    return [promotion for promotion in promotions if matches_selector(promotion.model_dump(), selector)]


class MemoryPromotionStore:
    def __init__(self, promotions: Optional[Iterable[Promotion]] = None):
        self._promotions: Dict[str, Promotion] = {}
        for promotion in promotions or []:
            self.save(promotion)

    def save(self, promotion: Promotion) -> None:
        self._promotions[promotion.id] = promotion.model_copy(deep=True)

    def find(self, selector: Dict[str, Any]) -> List[Promotion]:
        return [promotion.model_copy(deep=True) for promotion in filter_promotions(self._promotions.values(), selector)]


class MemoryCartStore:
    def __init__(self, carts: Optional[Iterable[Cart]] = None):
        self._carts: Dict[str, Cart] = {}
        for cart in carts or []:
            self.save(cart)

    def get(self, cart_id: str) -> Optional[Cart]:
        cart = self._carts.get(cart_id)
        return cart.model_copy(deep=True) if cart is not None else None

    def save(self, cart: Cart) -> None:
        self._carts[cart.id] = cart.model_copy(deep=True)

    def find_ids(self) -> List[str]:
        return list(self._carts)
