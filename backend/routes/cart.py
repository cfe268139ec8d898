# backend/routes/cart.py
from fastapi import APIRouter, Depends, HTTPException

from schemas.cart import StockCheckRequest, StockReport
from services.stock import check_stock
from utils.sanity_client import CMSError, SanityClient, get_sanity_client

router = APIRouter(prefix="/cart", tags=["Cart"])


# Live stock status for the products of a client-held cart
@router.post("/stock", response_model=StockReport)
async def cart_stock(
    payload: StockCheckRequest,
    cms: SanityClient = Depends(get_sanity_client),
):
    try:
        return await check_stock(payload.items, cms.fetch_products_by_ids)
    except CMSError:
        # Client keeps showing its last known stock state
        raise HTTPException(status_code=502, detail="Stock information unavailable")
