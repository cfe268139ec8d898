# backend/routes/checkout.py
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from database import get_db
from schemas.checkout import CheckoutRequest, CheckoutResult, CheckoutSessionResult
from services.checkout import CheckoutService
from utils.audit import client_ip, write_log
from utils.clerk_auth import clerk_client, get_current_user_id
from utils.sanity_client import sanity_client
from utils.stripe_client import stripe_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/checkout", tags=["Checkout"])


def get_checkout_service() -> CheckoutService:
    return CheckoutService(cms=sanity_client, payments=stripe_client, identity=clerk_client)


def _audit(db: Session, **entry) -> None:
    # The checkout outcome is already decided; a failed audit write must not hide it
    try:
        write_log(db, **entry)
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Failed to write audit log for %s: %s", entry.get("action"), e)


# Validate the cart against live product data and open a Stripe session
@router.post("/session", response_model=CheckoutResult, response_model_exclude_none=True)
async def create_checkout_session(
    payload: CheckoutRequest,
    request: Request,
    db: Session = Depends(get_db),
    user_id: Optional[str] = Depends(get_current_user_id),
    service: CheckoutService = Depends(get_checkout_service),
):
    result = await service.create_checkout_session(payload.items, user_id)

    _audit(
        db,
        user_id=user_id,
        action="CHECKOUT_CREATE",
        resource="checkout",
        status="SUCCESS" if result.success else "FAIL",
        ip=client_ip(request),
        meta={
            "items": len(payload.items),
            "failure": result.failure.value if result.failure else None,
            "error": result.error,
        },
    )
    return result


# Session summary for the checkout success page
@router.get("/session/{session_id}", response_model=CheckoutSessionResult, response_model_exclude_none=True)
async def get_checkout_session(
    session_id: str,
    request: Request,
    db: Session = Depends(get_db),
    user_id: Optional[str] = Depends(get_current_user_id),
    service: CheckoutService = Depends(get_checkout_service),
):
    result = await service.get_checkout_session(session_id, user_id)

    _audit(
        db,
        user_id=user_id,
        action="CHECKOUT_SESSION_VIEW",
        resource="checkout",
        status="SUCCESS" if result.success else "FAIL",
        ip=client_ip(request),
        meta={"session_id": session_id},
    )
    return result
