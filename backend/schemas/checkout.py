from pydantic import Field
from typing import Any, List, Optional

from schemas.base import CamelModel
from schemas.cart import CartItem


# Input schema for starting a checkout
class CheckoutRequest(CamelModel):
    items: List[CartItem]


# Terminal value of a checkout attempt
class CheckoutResult(CamelModel):
    success: bool
    url: Optional[str] = None
    error: Optional[str] = None
    # Failure kind for logging and auditing; never sent to clients
    failure: Optional[Any] = Field(default=None, exclude=True)


class CheckoutSessionItem(CamelModel):
    name: Optional[str] = None
    quantity: Optional[int] = None
    amount: Optional[int] = None


# Summary of a payment session shown on the success page
class CheckoutSessionDetails(CamelModel):
    id: str
    email: Optional[str] = None
    name: Optional[str] = None
    amount: Optional[int] = None
    status: Optional[str] = None
    items: List[CheckoutSessionItem] = []


class CheckoutSessionResult(CamelModel):
    success: bool
    session: Optional[CheckoutSessionDetails] = None
