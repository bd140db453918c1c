import asyncio
import dataclasses
from functools import lru_cache
from typing import Optional

from fastapi import BackgroundTasks, Depends, FastAPI, Header, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware

from apply_promotions import apply_promotions
from config import ADMIN_KEY, CORS_ORIGINS
from context import PromotionContext
from errors import InvalidParamsError
from firebase_util import FirebaseCartStore, FirebasePromotionStore
from jobs import handle_promotion_changed_state, run_job
from models import ApplyPromotionsResponse, ChangedStateResponse
from plugins import build_default_registry

app = FastAPI()

# 🔐 Allow frontend CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@lru_cache
def get_context() -> PromotionContext:
    return PromotionContext(
        promotions=FirebasePromotionStore(),
        carts=FirebaseCartStore(),
        registry=build_default_registry(),
    )


# 🔐 Admin API key check
def check_admin(api_key: str = Header(..., alias="x-api-key")):
    if not ADMIN_KEY or api_key != ADMIN_KEY:
        raise HTTPException(status_code=401, detail="Invalid API key")


def request_context(request: Request, base: PromotionContext = Depends(get_context)) -> PromotionContext:
    api_key = request.headers.get("x-api-key")

    # Previewing promotions at another time is an admin privilege
    async def user_has_permission(permission: str, action: str, shop_id: Optional[str] = None) -> bool:
        return bool(ADMIN_KEY) and api_key == ADMIN_KEY

    return dataclasses.replace(base, headers=dict(request.headers), user_has_permission=user_has_permission)


# 🎯 1. APPLY PROMOTIONS TO A CART
@app.post("/api/carts/{cart_id}/promotions/apply", response_model=ApplyPromotionsResponse)
async def apply_cart_promotions(cart_id: str, context: PromotionContext = Depends(request_context)):
    cart = await asyncio.to_thread(context.carts.get, cart_id)
    if cart is None:
        raise HTTPException(status_code=404, detail="Cart not found")

    try:
        await apply_promotions(context, cart)
    except InvalidParamsError as e:
        raise HTTPException(status_code=400, detail=e.message)

    await asyncio.to_thread(context.carts.save, cart)
    return {"cart": cart}


# 🎯 2. RE-EVALUATE ALL CARTS AFTER A PROMOTION CHANGED STATE
@app.post("/api/promotions/changed-state", response_model=ChangedStateResponse, dependencies=[Depends(check_admin)])
async def promotion_changed_state(background_tasks: BackgroundTasks, context: PromotionContext = Depends(get_context)):
    def add_job(name: str, cart_ids):
        background_tasks.add_task(run_job, context, name, cart_ids)

    return await handle_promotion_changed_state(dataclasses.replace(context, add_job=add_job))

