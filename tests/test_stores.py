from datetime import datetime, timezone

import pytest

from stores import MemoryCartStore, MemoryPromotionStore, matches_selector
from conftest import NOW, TOMORROW, YESTERDAY, ids, make_cart, make_promotion


def test_matches_equality_and_operators() -> None:
    document = {"shopId": "shop", "state": "active", "startDate": YESTERDAY, "enabled": True}

    assert matches_selector(document, {"shopId": "shop", "enabled": True})
    assert matches_selector(document, {"state": {"$in": ["created", "active"]}})
    assert matches_selector(document, {"startDate": {"$lte": NOW, "$gt": datetime(2000, 1, 1, tzinfo=timezone.utc)}})
    assert not matches_selector(document, {"startDate": {"$lt": YESTERDAY}})
    assert not matches_selector(document, {"startDate": {"$gte": TOMORROW}})
    assert not matches_selector(document, {"shopId": "other"})


def test_missing_fields_never_match_comparisons() -> None:
    assert not matches_selector({}, {"endDate": {"$gt": NOW}})


def test_unsupported_operator() -> None:
    with pytest.raises(ValueError, match=r"\$regex"):
        matches_selector({"code": "SAVE"}, {"code": {"$regex": "S.*"}})


def test_promotion_store_returns_copies() -> None:
    store = MemoryPromotionStore([make_promotion("A"), make_promotion("B", shopId="other")])

    [found] = store.find({"shopId": "shop"})
    found.relatedCoupon = {"code": "CHANGED"}

    assert ids(store.find({"shopId": "shop"})) == ["A"]
    assert store.find({"id": {"$in": ["A"]}})[0].relatedCoupon is None


def test_cart_store() -> None:
    store = MemoryCartStore([make_cart()])

    cart = store.get("cart")
    cart.discount = 5

    assert store.get("cart").discount == 0
    assert store.get("missing") is None
    assert store.find_ids() == ["cart"]
