# backend/routes/orders.py
from typing import List
from fastapi import APIRouter, Depends, HTTPException

from queries.orders import ORDER_BY_ORDER_ID_QUERY, ORDERS_BY_CLERK_USER_QUERY
from schemas.order import OrderDetail, OrderSummary
from utils.clerk_auth import require_user_id
from utils.sanity_client import CMSError, SanityClient, get_sanity_client

router = APIRouter(prefix="/orders", tags=["Orders"])


# List the signed-in user's orders, newest first
@router.get("", response_model=List[OrderSummary])
async def list_my_orders(
    user_id: str = Depends(require_user_id),
    cms: SanityClient = Depends(get_sanity_client),
):
    try:
        return await cms.fetch(ORDERS_BY_CLERK_USER_QUERY, {"clerkUserId": user_id}) or []
    except CMSError:
        raise HTTPException(status_code=502, detail="Orders unavailable")


# Get details of a specific order
@router.get("/{order_id}", response_model=OrderDetail)
async def get_order_detail(
    order_id: str,
    user_id: str = Depends(require_user_id),
    cms: SanityClient = Depends(get_sanity_client),
):
    try:
        order = await cms.fetch(ORDER_BY_ORDER_ID_QUERY, {"orderId": order_id})
    except CMSError:
        raise HTTPException(status_code=502, detail="Orders unavailable")

    if not order or order.get("clerkUserId") != user_id:
        raise HTTPException(status_code=404, detail="Order not found or forbidden")
    return order
