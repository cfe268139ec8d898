from typing import List, Literal, Optional
from fastapi import APIRouter, Depends, HTTPException, Query

from queries.categories import ALL_CATEGORIES_QUERY, CATEGORY_BY_SLUG_QUERY
from queries.products import FEATURED_PRODUCTS_QUERY, PRODUCT_BY_SLUG_QUERY
from schemas.product import Category, ProductCard, ProductPage
from services.catalog import PAGE_SIZE, ProductFilters, build_product_search, page_payload
from utils.sanity_client import CMSError, SanityClient, get_sanity_client

router = APIRouter(
    prefix="/shop",
    tags=["Shop"]
)


async def _fetch(cms: SanityClient, query: str, params: Optional[dict] = None):
    try:
        return await cms.fetch(query, params)
    except CMSError:
        raise HTTPException(status_code=502, detail="Catalog unavailable")


# Retrieve all product categories
@router.get("/categories", response_model=List[Category])
async def list_categories(cms: SanityClient = Depends(get_sanity_client)):
    return await _fetch(cms, ALL_CATEGORIES_QUERY) or []


@router.get("/categories/{slug}", response_model=Category)
async def get_category(slug: str, cms: SanityClient = Depends(get_sanity_client)):
    category = await _fetch(cms, CATEGORY_BY_SLUG_QUERY, {"slug": slug})
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    return category


@router.get("/products", response_model=ProductPage)
async def list_products_for_shop(
    # Search and filter parameters
    q: Optional[str] = Query(None, description="Search by product title"),
    category: Optional[str] = Query(None, description="Filter by category slug"),
    min_price: float = Query(0, ge=0),
    max_price: float = Query(999999, ge=0),
    in_stock: bool = False,
    featured: bool = False,
    discounted: bool = False,
    sort: Literal["name", "price_asc", "price_desc", "relevance"] = "name",
    page: int = Query(1, ge=1),
    cms: SanityClient = Depends(get_sanity_client),
):
    filters = ProductFilters(
        search=q or "",
        category=category or "",
        min_price=min_price,
        max_price=max_price,
        in_stock=in_stock,
        featured=featured,
        discounted=discounted,
        sort=sort,
        page=page,
        page_size=PAGE_SIZE,
    )
    query, params = build_product_search(filters)
    result = await _fetch(cms, query, params)
    return page_payload(result, filters)


@router.get("/products/featured", response_model=List[ProductCard])
async def list_featured_products(cms: SanityClient = Depends(get_sanity_client)):
    return await _fetch(cms, FEATURED_PRODUCTS_QUERY) or []


@router.get("/products/{slug}", response_model=ProductCard)
async def get_product(slug: str, cms: SanityClient = Depends(get_sanity_client)):
    product = await _fetch(cms, PRODUCT_BY_SLUG_QUERY, {"slug": slug})
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product
