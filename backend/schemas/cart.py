from pydantic import Field
from typing import Dict, List, Optional

from schemas.base import CamelModel

# A product/quantity selection held in the client cart
class CartItem(CamelModel):
    product_id: str = Field(min_length=1)
    name: str
    price: float = Field(ge=0)
    quantity: int = Field(ge=1)
    image: Optional[str] = None

# Live availability of one cart product
class StockInfo(CamelModel):
    product_id: str
    current_stock: int = Field(ge=0)
    is_out_of_stock: bool
    exceeds_stock: bool
    available_quantity: int

    @property
    def has_issue(self) -> bool:
        return self.is_out_of_stock or self.exceeds_stock

# Request schema for a one-shot stock check
class StockCheckRequest(CamelModel):
    items: List[CartItem]

# Response schema mapping product ids to their stock status
class StockReport(CamelModel):
    stock: Dict[str, StockInfo]
    has_stock_issues: bool
