from typing import List

from models import Cart, Promotion, Qualification
from registry import maybe_await

STACKABLE_WITH_ALL = "all"
STACKABLE_WITH_NONE = "none"


def check_stackability(applied_promotions: List[Promotion], promotion: Promotion) -> Qualification:
    if not applied_promotions:
        return Qualification(qualifies=True)
    if promotion.stackability.key == STACKABLE_WITH_NONE:
        return Qualification(qualifies=False, reason=f"Promotion {promotion.id} cannot be combined with other promotions")
    for applied in applied_promotions:
        if applied.stackability.key == STACKABLE_WITH_NONE:
            return Qualification(qualifies=False, reason=f"Promotion {applied.id} cannot be combined with other promotions")
    return Qualification(qualifies=True)


async def can_be_applied(context, cart: Cart, *, applied_promotions: List[Promotion], promotion: Promotion) -> Qualification:
    """Decide whether `promotion` may join `applied_promotions`.

    Stackability is checked first, then every registered qualifier in
    registration order; the first rejection is returned. Inputs are not
    mutated, so the enumerator can call this once per edge.
    """
    result = check_stackability(applied_promotions, promotion)
    if not result.qualifies:
        return result

    for qualifier in context.registry.qualifiers:
        result = await maybe_await(qualifier(context, cart, applied_promotions=applied_promotions, promotion=promotion))
        if result is not None and not result.qualifies:
            return result
    return Qualification(qualifies=True)
