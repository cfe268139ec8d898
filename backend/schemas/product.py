# backend/schemas/product.py
from pydantic import AliasChoices, Field, field_validator
from typing import List, Optional

from schemas.base import CamelModel


def _drop_empty(values):
    # Image references without an uploaded asset come back as null
    return [v for v in (values or []) if v]


# Authoritative product record used for stock checks and checkout
class ProductSnapshot(CamelModel):
    id: str = Field(validation_alias=AliasChoices("_id", "id"))
    title: Optional[str] = None
    price: Optional[float] = None
    quantity: Optional[int] = None
    images: List[str] = []

    @field_validator("images", mode="before")
    @classmethod
    def _images(cls, v):
        return _drop_empty(v)

    @property
    def stock(self) -> int:
        return self.quantity or 0


class CategoryRef(CamelModel):
    id: str = Field(validation_alias=AliasChoices("_id", "id"))
    title: Optional[str] = None
    slug: Optional[str] = None


class Category(CategoryRef):
    image: Optional[str] = None


# Product representation for catalog listings and detail pages
class ProductCard(CamelModel):
    id: str = Field(validation_alias=AliasChoices("_id", "id"))
    title: Optional[str] = None
    slug: Optional[str] = None
    price: Optional[float] = None
    discount_price: Optional[float] = None
    in_stock: Optional[bool] = None
    quantity: Optional[int] = None
    featured: Optional[bool] = None
    description: Optional[str] = None
    categories: List[CategoryRef] = []
    images: List[str] = []

    @field_validator("categories", "images", mode="before")
    @classmethod
    def _lists(cls, v):
        return _drop_empty(v)


# Paginated response for product listings
class ProductPage(CamelModel):
    items: List[ProductCard]
    total: int
    page: int
    page_size: int
