from pydantic import AliasChoices, Field
from typing import List, Optional
from datetime import datetime

from schemas.base import CamelModel


# Output schema for an order line as stored in the CMS
class OrderItemOut(CamelModel):
    title: Optional[str] = None
    price: Optional[float] = None
    quantity: Optional[int] = None
    product_id: Optional[str] = None
    product_slug: Optional[str] = None


# Order row in the customer's order history
class OrderSummary(CamelModel):
    id: str = Field(validation_alias=AliasChoices("_id", "id"))
    order_id: Optional[str] = None
    status: Optional[str] = None
    total_amount: Optional[float] = None
    created_at: Optional[datetime] = None


# Output schema representing the full order details
class OrderDetail(OrderSummary):
    subtotal: Optional[float] = None
    shipping_cost: Optional[float] = None
    items: List[OrderItemOut] = []
