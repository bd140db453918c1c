import logging
from typing import Any, Dict, List, Optional

import firebase_admin
from firebase_admin import credentials, db, exceptions

from config import FIREBASE_CRED_PATH, FIREBASE_DB_URL
from models import Cart, Promotion
from stores import filter_promotions

logger = logging.getLogger(__name__)


def get_db_ref():
    """Firebase root DB reference, initialising the app on first use."""
    if not firebase_admin._apps:
        try:
            cred = credentials.Certificate(FIREBASE_CRED_PATH)
            firebase_admin.initialize_app(cred, {
                'databaseURL': FIREBASE_DB_URL
            })
        except Exception as e:
            logger.warning("Firebase initialization failed: %s", e)
            raise RuntimeError(f"Firebase initialization failed: {e}") from e
    return db.reference("/")


def _documents(snapshot: Optional[Dict[str, Any]]):
    for key, value in (snapshot or {}).items():
        if isinstance(value, dict):
            yield {"id": key, **value}


class FirebasePromotionStore:
    """Promotions under /promotions/<id>, queried by shop then filtered locally.

    The shop query needs `".indexOn": ["shopId"]` on `promotions` (see
    database.rules.json). Without it the whole node is read instead.
    """

    def __init__(self, db_ref=None):
        self._db_ref = db_ref

    @property
    def ref(self):
        if self._db_ref is None:
            self._db_ref = get_db_ref()
        return self._db_ref.child("promotions")

    def find(self, selector: Dict[str, Any]) -> List[Promotion]:
        query = self.ref
        shop_id = selector.get("shopId")
        if isinstance(shop_id, str):
            try:
                snapshot = query.order_by_child("shopId").equal_to(shop_id).get()
            except exceptions.InvalidArgumentError as e:
                logger.warning("Promotion shop query failed, reading all promotions: %s", e)
                snapshot = query.get()
        else:
            snapshot = query.get()
        promotions = [Promotion.model_validate(doc) for doc in _documents(snapshot)]
        return filter_promotions(promotions, selector)

    def save(self, promotion: Promotion) -> None:
        data = promotion.model_dump(mode="json", exclude={"id", "relatedCoupon", "newlyAdded"})
        self.ref.child(promotion.id).set(data)


class FirebaseCartStore:
    """Carts under /carts/<id>."""

    def __init__(self, db_ref=None):
        self._db_ref = db_ref

    @property
    def ref(self):
        if self._db_ref is None:
            self._db_ref = get_db_ref()
        return self._db_ref.child("carts")

    def get(self, cart_id: str) -> Optional[Cart]:
        data = self.ref.child(cart_id).get()
        if not data:
            return None
        return Cart.model_validate({"id": cart_id, **data})

    def save(self, cart: Cart) -> None:
        self.ref.child(cart.id).set(cart.model_dump(mode="json", exclude={"id"}))

    def find_ids(self) -> List[str]:
        # shallow read: only the keys are fetched
        snapshot = self.ref.get(shallow=True)
        return list((snapshot or {}).keys())
