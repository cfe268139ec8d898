# backend/utils/stripe_client.py
import logging
from typing import List, Optional

import stripe
from fastapi.concurrency import run_in_threadpool

from config import settings

logger = logging.getLogger(__name__)


class StripeClient:
    """Async facade over the blocking Stripe SDK calls used by checkout."""

    def __init__(self, api_key=None, api_version=None):
        self.api_key = api_key or settings.STRIPE_SECRET_KEY
        self.api_version = api_version or settings.STRIPE_API_VERSION

    def _opts(self) -> dict:
        return {"api_key": self.api_key, "stripe_version": self.api_version}

    async def create_checkout_session(
        self,
        *,
        line_items: List[dict],
        customer_id: str,
        metadata: dict,
        success_url: str,
        cancel_url: str,
    ):
        try:
            return await run_in_threadpool(
                stripe.checkout.Session.create,
                mode="payment",
                payment_method_types=["card"],
                customer=customer_id,
                line_items=line_items,
                metadata=metadata,
                success_url=success_url,
                cancel_url=cancel_url,
                **self._opts(),
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe create session error: {e.user_message or e}")
            raise

    async def retrieve_checkout_session(self, session_id: str):
        try:
            return await run_in_threadpool(
                stripe.checkout.Session.retrieve,
                session_id,
                expand=["line_items"],
                **self._opts(),
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe retrieve session error: {e.user_message or e}")
            raise

    async def find_customer_by_email(self, email: str) -> Optional[stripe.Customer]:
        customers = await run_in_threadpool(stripe.Customer.list, email=email, limit=1, **self._opts())
        return customers.data[0] if customers.data else None

    async def create_customer(self, *, email: str, name: str, metadata: dict) -> stripe.Customer:
        return await run_in_threadpool(
            stripe.Customer.create, email=email, name=name, metadata=metadata, **self._opts()
        )


stripe_client = StripeClient()
