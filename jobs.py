import asyncio
import logging
from typing import Any, Iterable, List, Optional

from apply_promotions import apply_promotions
from config import CART_BATCH_SIZE
from errors import InvalidParamsError
from models import Cart
from registry import maybe_await

logger = logging.getLogger(__name__)

EMITTED_BY_PROMOTIONS = "promotions"
CHECK_EXISTING_CARTS = "checkExistingCarts"


def batch_ids(ids: Iterable[str], size: int = CART_BATCH_SIZE) -> List[List[str]]:
    batches, batch = [], []
    for cart_id in ids:
        batch.append(cart_id)
        if len(batch) >= size:
            batches.append(batch)
            batch = []
    if batch:
        batches.append(batch)
    return batches


async def handle_promotion_changed_state(context) -> dict:
    """Queue every existing cart for re-evaluation after a promotion changed state."""
    logger.info("Reprocessing all existing carts because promotion has changed state")
    total_carts = 0
    # ids only, carts are loaded again by the worker
    cart_ids = await asyncio.to_thread(context.carts.find_ids)
    for batch in batch_ids(cart_ids):
        await maybe_await(context.add_job(CHECK_EXISTING_CARTS, batch))
        total_carts += len(batch)
    logger.info("Completed processing %d existing carts for promotions", total_carts)
    return {"totalCarts": total_carts}


async def check_existing_carts(context, cart_ids: List[str]) -> int:
    """Queue worker entry point: resolve and save each cart. Returns carts saved."""
    saved = 0
    for cart_id in cart_ids:
        cart = await asyncio.to_thread(context.carts.get, cart_id)
        if cart is None:
            continue
        if await on_cart_mutated(context, cart, emitted_by="checkExistingCarts"):
            saved += 1
    return saved


async def on_cart_mutated(context, cart: Cart, emitted_by: Optional[str] = None) -> bool:
    """Re-run resolution after a cart was created or updated.

    Mutations emitted by this resolver are ignored so saving a resolved cart
    does not trigger another pass.
    """
    if emitted_by == EMITTED_BY_PROMOTIONS:
        return False
    try:
        await apply_promotions(context, cart)
    except InvalidParamsError as error:
        # nobody is waiting on this request, the cart is left as it was
        logger.info("Cart %s kept its promotions: %s", cart.id, error.message)
        return False
    await asyncio.to_thread(context.carts.save, cart)
    return True


JOB_HANDLERS = {
    CHECK_EXISTING_CARTS: check_existing_carts,
}


async def run_job(context, name: str, payload) -> Any:
    """Run the worker registered for job `name`."""
    handler = JOB_HANDLERS.get(name)
    if handler is None:
        raise ValueError(f"Unknown job: {name}")
    return await handler(context, payload)
