# backend/services/customers.py
import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from queries.customers import CUSTOMER_BY_EMAIL_QUERY
from utils.sanity_client import SanityClient
from utils.stripe_client import StripeClient

logger = logging.getLogger(__name__)


@dataclass
class CustomerRecord:
    stripe_customer_id: str
    sanity_customer_id: str


async def get_or_create_stripe_customer(
    cms: SanityClient, payments: StripeClient, email: str, name: str, user_id: str
) -> CustomerRecord:
    """
    Resolves the billing customer for a Clerk user.
    The CMS customer document is keyed by e-mail and carries the Stripe id once known.
    """
    existing = await cms.fetch(CUSTOMER_BY_EMAIL_QUERY, {"email": email})

    # 1. Known customer with a Stripe account
    if existing and existing.get("stripeCustomerId"):
        if not existing.get("clerkUserId"):
            await cms.mutate([{"patch": {"id": existing["_id"], "set": {"clerkUserId": user_id}}}])
        return CustomerRecord(existing["stripeCustomerId"], existing["_id"])

    # 2. Reuse a Stripe customer created elsewhere for the same e-mail, or create one
    stripe_customer = await payments.find_customer_by_email(email)
    if stripe_customer is None:
        stripe_customer = await payments.create_customer(
            email=email, name=name, metadata={"clerkUserId": user_id}
        )
        logger.info("Created Stripe customer %s for user %s", stripe_customer["id"], user_id)

    # 3. Link the Stripe id back to the CMS
    if existing:
        await cms.mutate([{
            "patch": {
                "id": existing["_id"],
                "set": {"stripeCustomerId": stripe_customer["id"], "clerkUserId": user_id},
            }
        }])
        return CustomerRecord(stripe_customer["id"], existing["_id"])

    results = await cms.mutate([{
        "create": {
            "_type": "customer",
            "email": email,
            "name": name,
            "clerkUserId": user_id,
            "stripeCustomerId": stripe_customer["id"],
            "createdAt": datetime.now(timezone.utc).isoformat(),
        }
    }])
    sanity_customer_id = results[0]["id"]
    logger.info("Created CMS customer %s for user %s", sanity_customer_id, user_id)
    return CustomerRecord(stripe_customer["id"], sanity_customer_id)
