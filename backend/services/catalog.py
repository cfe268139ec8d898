# backend/services/catalog.py
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from queries.products import PRODUCT_PROJECTION

PAGE_SIZE = 12

SORT_ORDERS = {
    "name": "order(title asc)",
    "price_asc": "order(price asc)",
    "price_desc": "order(price desc)",
}


@dataclass
class ProductFilters:
    search: str = ""
    category: str = ""
    min_price: float = 0
    max_price: float = 999999
    in_stock: bool = False
    featured: bool = False
    discounted: bool = False
    sort: str = "name"
    page: int = 1
    page_size: int = PAGE_SIZE

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


def build_product_search(filters: ProductFilters) -> Tuple[str, Dict[str, Any]]:
    """Builds a GROQ query returning one page of products plus the total match count."""
    conditions = ['_type == "product"', "price >= $minPrice", "price <= $maxPrice"]
    params: Dict[str, Any] = {
        "minPrice": filters.min_price,
        "maxPrice": filters.max_price,
        "start": filters.offset,
        "end": filters.offset + filters.page_size,
    }

    search = filters.search.strip()
    if search:
        conditions.append('title match $search + "*"')
        params["search"] = search
    if filters.category:
        conditions.append("$category in categories[]->slug.current")
        params["category"] = filters.category
    if filters.in_stock:
        conditions.append("quantity > 0")
    if filters.featured:
        conditions.append("featured == true")
    if filters.discounted:
        conditions.append("defined(discountPrice)")

    where = " && ".join(conditions)

    # Relevance ranking only makes sense for a search term
    if search and filters.sort == "relevance":
        ordering = 'score(title match $search + "*", description match $search) | order(_score desc)'
    else:
        ordering = SORT_ORDERS.get(filters.sort, SORT_ORDERS["name"])

    query = (
        "{\n"
        f'  "items": *[{where}] | {ordering} [$start...$end] {PRODUCT_PROJECTION},\n'
        f'  "total": count(*[{where}])\n'
        "}"
    )
    return query, params


def page_payload(result: Optional[dict], filters: ProductFilters) -> Dict[str, Any]:
    result = result or {}
    return {
        "items": result.get("items") or [],
        "total": result.get("total") or 0,
        "page": filters.page,
        "page_size": filters.page_size,
    }
