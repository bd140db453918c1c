"""
Combination search for promotions.

`get_combination_of_promotions` enumerates every maximal set of promotions
that may be applied together, `get_highest_combination` simulates each set on
its own copy of the cart and keeps the one yielding the largest discount.
"""
import asyncio
import logging
from typing import List

from enhancers import enhance_cart
from handlers import action_handler
from models import Cart, Promotion
from registry import maybe_await

logger = logging.getLogger(__name__)

Combination = List[Promotion]


def remove_subset_combinations(combinations: List[Combination]) -> List[Combination]:
    """Keep only maximal combinations, compared by promotion id.

    A combination whose ids are a strict subset of another's is dropped, as
    is any repeat of an id set already kept.
    """
    id_sets = [frozenset(promotion.id for promotion in combination) for combination in combinations]
    maximal = []
    for index, ids in enumerate(id_sets):
        if any(ids < other for other in id_sets):
            continue
        if ids in id_sets[:index]:
            continue
        maximal.append(combinations[index])
    return maximal


async def get_combination_of_promotions(context, cart: Cart, promotions: List[Promotion]) -> List[Combination]:
    """Enumerate the combinations of `promotions` worth simulating.

    Explicit promotions always ride together as the root combination. Implicit
    promotions are added depth first, each only after the last one already in
    the combination, so a set is never reached twice in a different order.
    A promotion rejected by the qualification predicate is still offered on
    its own as a singleton.
    """
    explicit_promotions = [promotion for promotion in promotions if promotion.triggerType == "explicit"]
    implicit_promotions = [promotion for promotion in promotions if promotion.triggerType == "implicit"]
    implicit_positions = {promotion.id: position for position, promotion in enumerate(implicit_promotions)}

    stack: List[Combination] = [explicit_promotions]
    combinations: List[Combination] = []

    while stack:
        combination = stack.pop()
        combinations.append(combination)

        next_position = 0
        if combination and combination[-1].id in implicit_positions:
            next_position = implicit_positions[combination[-1].id] + 1

        for promotion in implicit_promotions[next_position:]:
            qualification = await maybe_await(
                context.can_be_applied(context, cart, applied_promotions=combination, promotion=promotion)
            )
            if qualification.qualifies:
                stack.append([*combination, promotion])
                continue

            if not any(len(existing) == 1 and existing[0].id == promotion.id for existing in combinations):
                combinations.append([promotion])

    return remove_subset_combinations(combinations)


def get_total_discount_on_cart(cart: Cart) -> float:
    return round(sum(item.subtotal.discount or 0 for item in cart.items), 2)


async def simulate_combination(context, cart: Cart, combination: Combination) -> float:
    copied_cart = cart.model_copy(deep=True)
    for promotion in combination:
        result = await action_handler(context, copied_cart, promotion)
        if not result.affected or result.temporaryAffected:
            continue
        copied_cart = enhance_cart(context, context.registry.enhancers, copied_cart)
    return get_total_discount_on_cart(copied_cart)


async def get_highest_combination(context, cart: Cart, combinations: List[Combination]) -> Combination:
    """Return the combination with the highest simulated discount.

    Ties go to the combination enumerated first.
    """
    if not combinations:
        return []

    scores = await asyncio.gather(*(simulate_combination(context, cart, combination) for combination in combinations))

    best = 0
    for index, score in enumerate(scores):
        if score > scores[best]:
            best = index

    logger.debug("Highest combination %s with discount %s", [p.id for p in combinations[best]], scores[best])
    return combinations[best]


def is_combination_exempt(context, promotion: Promotion) -> bool:
    return any(combination_filter.handler(context, promotion) for combination_filter in context.registry.combination_filters)


async def get_applicable_promotions(context, cart: Cart, promotions: List[Promotion]) -> List[Promotion]:
    """Pick the promotions to apply: the best combination plus exempt ones."""
    filtered_promotions = [promotion for promotion in promotions if not is_combination_exempt(context, promotion)]
    filtered_ids = {promotion.id for promotion in filtered_promotions}
    excepted_promotions = [promotion for promotion in promotions if promotion.id not in filtered_ids]

    combinations = await get_combination_of_promotions(context, cart, filtered_promotions)
    highest_promotions = await get_highest_combination(context, cart, combinations)
    return [*highest_promotions, *excepted_promotions]
