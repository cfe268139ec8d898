# backend/services/checkout.py
import enum
import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional, Sequence, Tuple

from config import settings
from schemas.cart import CartItem
from schemas.checkout import (
    CheckoutResult, CheckoutSessionDetails, CheckoutSessionItem, CheckoutSessionResult,
)
from schemas.product import ProductSnapshot
from services.customers import get_or_create_stripe_customer
from services.stock import distinct_product_ids

logger = logging.getLogger(__name__)

SIGN_IN_REQUIRED = "Please sign in to checkout"
CART_EMPTY = "Your cart is empty"
GENERIC_FAILURE = "Something went wrong"


# Why a checkout attempt ended without a payment session
class CheckoutFailure(str, enum.Enum):
    AUTH_REQUIRED = "auth_required"
    EMPTY_CART = "empty_cart"
    VALIDATION = "validation"
    PROVIDER_FAILURE = "provider_failure"


# Per-line validation problems
class StockIssue(str, enum.Enum):
    ITEM_UNAVAILABLE = "item_unavailable"
    OUT_OF_STOCK = "out_of_stock"
    QUANTITY_EXCEEDS_STOCK = "quantity_exceeds_stock"


@dataclass
class LineIssue:
    kind: StockIssue
    product_id: str
    message: str


@dataclass
class ValidatedLine:
    product: ProductSnapshot
    quantity: int


def validate_cart(
    items: Sequence[CartItem], products: Sequence[ProductSnapshot]
) -> Tuple[List[ValidatedLine], List[LineIssue]]:
    """Check every cart line against the authoritative snapshots.

    All lines are checked; problems are collected rather than stopping at
    the first one so the shopper can fix the whole cart in one pass.
    """
    by_id: Dict[str, ProductSnapshot] = {p.id: p for p in products}
    lines: List[ValidatedLine] = []
    issues: List[LineIssue] = []

    for item in items:
        product = by_id.get(item.product_id)
        if product is None:
            issues.append(LineIssue(StockIssue.ITEM_UNAVAILABLE, item.product_id,
                                    f'"{item.name}" is no longer available'))
            continue

        stock = product.stock
        if stock <= 0:
            issues.append(LineIssue(StockIssue.OUT_OF_STOCK, item.product_id,
                                    f'"{product.title}" is out of stock'))
            continue

        if item.quantity > stock:
            issues.append(LineIssue(StockIssue.QUANTITY_EXCEEDS_STOCK, item.product_id,
                                    f'Only {stock} of "{product.title}" available'))
            continue

        lines.append(ValidatedLine(product=product, quantity=item.quantity))

    return lines, issues


def to_unit_amount(price: Optional[float]) -> int:
    # Stripe expects integer minor units; halves round away from zero
    amount = Decimal(str(price or 0)) * 100
    return int(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def build_line_items(lines: Sequence[ValidatedLine], currency: str) -> List[dict]:
    # Prices and names come from the CMS snapshot, never from the client cart
    return [
        {
            "price_data": {
                "currency": currency,
                "product_data": {
                    "name": line.product.title or "Product",
                    "images": list(line.product.images),
                    "metadata": {"productId": line.product.id},
                },
                "unit_amount": to_unit_amount(line.product.price),
            },
            "quantity": line.quantity,
        }
        for line in lines
    ]


def _rejected(failure: CheckoutFailure, message: str) -> CheckoutResult:
    return CheckoutResult(success=False, error=message, failure=failure)


class CheckoutService:
    """Server-side checkout: revalidates the cart and opens a Stripe session."""

    def __init__(self, cms, payments, identity, resolve_customer=get_or_create_stripe_customer,
                 currency=None, base_url=None):
        self.cms = cms
        self.payments = payments
        self.identity = identity
        self.resolve_customer = resolve_customer
        self.currency = currency or settings.CHECKOUT_CURRENCY
        self.base_url = (base_url or settings.storefront_url).rstrip("/")

    @property
    def success_url(self) -> str:
        # Stripe substitutes the placeholder with the session id on redirect
        return f"{self.base_url}/checkout/success?session_id={{CHECKOUT_SESSION_ID}}"

    @property
    def cancel_url(self) -> str:
        return f"{self.base_url}/checkout"

    async def create_checkout_session(self, items: List[CartItem], user_id: Optional[str]) -> CheckoutResult:
        try:
            return await self._create_checkout_session(items, user_id)
        except Exception as e:
            logger.exception("Checkout error for user %s: %s", user_id, e)
            return _rejected(CheckoutFailure.PROVIDER_FAILURE, GENERIC_FAILURE)

    async def _create_checkout_session(self, items: List[CartItem], user_id: Optional[str]) -> CheckoutResult:
        # 1. Auth
        if not user_id:
            return _rejected(CheckoutFailure.AUTH_REQUIRED, SIGN_IN_REQUIRED)
        user = await self.identity.get_user(user_id)
        if user is None:
            return _rejected(CheckoutFailure.AUTH_REQUIRED, SIGN_IN_REQUIRED)

        if not items:
            return _rejected(CheckoutFailure.EMPTY_CART, CART_EMPTY)

        # 2. Authoritative product data, one batched query
        products = await self.cms.fetch_products_by_ids(distinct_product_ids(items))

        # 3. Validate every line before touching Stripe
        lines, issues = validate_cart(items, products)
        if issues:
            logger.info("Checkout rejected for user %s: %s", user_id, [i.kind.value for i in issues])
            return _rejected(CheckoutFailure.VALIDATION, ". ".join(i.message for i in issues))

        line_items = build_line_items(lines, self.currency)

        # 4. Billing customer
        customer = await self.resolve_customer(
            self.cms, self.payments, user.email, user.display_name, user.id
        )

        # 5. Payment session
        session = await self.payments.create_checkout_session(
            line_items=line_items,
            customer_id=customer.stripe_customer_id,
            metadata={
                "clerkUserId": user.id,
                "sanityCustomerId": customer.sanity_customer_id,
            },
            success_url=self.success_url,
            cancel_url=self.cancel_url,
        )
        logger.info("Created checkout session %s for user %s", session.get("id"), user_id)
        return CheckoutResult(success=True, url=session.get("url"))

    async def get_checkout_session(self, session_id: str, user_id: Optional[str]) -> CheckoutSessionResult:
        if not user_id:
            return CheckoutSessionResult(success=False)

        try:
            session = await self.payments.retrieve_checkout_session(session_id)
        except Exception as e:
            logger.exception("Get session error for %s: %s", session_id, e)
            return CheckoutSessionResult(success=False)

        # Sessions are only visible to the account that created them
        metadata = session.get("metadata") or {}
        if metadata.get("clerkUserId") != user_id:
            logger.warning("User %s requested checkout session %s of another account", user_id, session_id)
            return CheckoutSessionResult(success=False)

        details = session.get("customer_details") or {}
        line_items = session.get("line_items")
        items = [
            CheckoutSessionItem(
                name=li.get("description"),
                quantity=li.get("quantity"),
                amount=li.get("amount_total"),
            )
            for li in (line_items.get("data") if line_items else None) or []
        ]
        return CheckoutSessionResult(
            success=True,
            session=CheckoutSessionDetails(
                id=session.get("id"),
                email=details.get("email"),
                name=details.get("name"),
                amount=session.get("amount_total"),
                status=session.get("payment_status"),
                items=items,
            ),
        )
