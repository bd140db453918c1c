from datetime import datetime
from typing import Optional

from models import Cart, CartMessage, CartMessageMetaFields, Promotion

PROMOTION_SUBJECT = "promotion"

NO_LONGER_AVAILABLE = "The promotion is no longer available"
EXPIRED = "The promotion has expired"
NOT_ELIGIBLE = "The promotion is not eligible"
REPLACED = "The promotion has been replaced by another promotion with the highest discount"


def create_cart_message(title: str, promotion_id: str, severity: str = "warning") -> CartMessage:
    return CartMessage(
        title=title,
        message=title,
        subject=PROMOTION_SUBJECT,
        severity=severity,
        metaFields=CartMessageMetaFields(promotionId=promotion_id),
    )


def find_cart_message(cart: Cart, promotion_id: str, title: str) -> Optional[CartMessage]:
    for message in cart.messages:
        if message.metaFields.promotionId == promotion_id and message.title == title:
            return message
    return None


def can_add_to_cart_messages(cart: Cart, working_cart: Cart, promotion: Promotion, title: str) -> bool:
    """Only promotions the shopper already saw on the cart get a message, once per reason."""
    if all(applied.id != promotion.id for applied in cart.appliedPromotions):
        return False
    return find_cart_message(working_cart, promotion.id, title) is None


def is_promotion_disabled(promotion: Promotion) -> bool:
    return not promotion.enabled or promotion.state == "disabled"


def is_promotion_expired(promotion: Promotion, current_time: datetime) -> bool:
    if promotion.state == "expired":
        return True
    return promotion.endDate is not None and promotion.endDate < current_time
