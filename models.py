from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

TriggerType = Literal["explicit", "implicit"]
PromotionState = Literal["created", "active", "expired", "disabled"]
MessageSeverity = Literal["info", "warning"]


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Trigger(BaseModel):
    triggerKey: str
    triggerParameters: Dict[str, Any] = Field(default_factory=dict)


class Action(BaseModel):
    actionKey: str
    actionParameters: Dict[str, Any] = Field(default_factory=dict)


class Stackability(BaseModel):
    key: str = "all"  # "all" combines with anything, "none" stands alone
    parameters: Dict[str, Any] = Field(default_factory=dict)


class Promotion(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    shopId: str
    triggerType: TriggerType = "implicit"
    enabled: bool = True
    state: PromotionState = "created"
    startDate: datetime
    endDate: Optional[datetime] = None
    triggers: List[Trigger] = Field(default_factory=list)
    actions: List[Action] = Field(default_factory=list)
    stackability: Stackability = Field(default_factory=Stackability)
    # Carried over from the cart's applied record, never persisted on the promotion
    relatedCoupon: Optional[Dict[str, Any]] = None
    newlyAdded: Optional[bool] = None

    @field_validator("startDate", "endDate")
    @classmethod
    def assume_utc(cls, value):
        return _as_utc(value)


class CartItemSubtotal(BaseModel):
    amount: float = 0
    discount: float = 0


class CartItem(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    name: str = ""
    price: float
    qty: int
    subtotal: CartItemSubtotal = Field(default_factory=CartItemSubtotal)


class CartMessageMetaFields(BaseModel):
    promotionId: Optional[str] = None


class CartMessage(BaseModel):
    id: str = Field(default_factory=lambda: uuid4().hex)
    title: str
    message: Optional[str] = None
    subject: str = "promotion"
    severity: MessageSeverity = "info"
    acknowledged: bool = False
    metaFields: CartMessageMetaFields = Field(default_factory=CartMessageMetaFields)


class Cart(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    shopId: str
    items: List[CartItem] = Field(default_factory=list)
    appliedPromotions: List[Promotion] = Field(default_factory=list)
    messages: List[CartMessage] = Field(default_factory=list)
    discount: float = 0

    def assign_from(self, other: "Cart") -> None:
        """Overwrite this cart with the state of `other` in one step.

        Extra fields that `other` does not carry are dropped.
        """
        if self.__pydantic_extra__ is not None:
            self.__pydantic_extra__.clear()
        state = {name: getattr(other, name) for name in type(other).model_fields}
        state.update(other.model_extra or {})
        for name, value in state.items():
            setattr(self, name, value)


class ActionResult(BaseModel):
    affected: bool = False
    temporaryAffected: bool = False


class Qualification(BaseModel):
    qualifies: bool
    reason: Optional[str] = None


class ApplyPromotionsResponse(BaseModel):
    cart: Cart


class ChangedStateResponse(BaseModel):
    totalCarts: int
