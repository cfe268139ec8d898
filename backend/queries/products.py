# backend/queries/products.py
# GROQ queries for the Sanity product catalog

# Reusable product card projection
PRODUCT_PROJECTION = """
{
  _id,
  title,
  "slug": slug.current,
  price,
  discountPrice,
  inStock,
  quantity,
  featured,
  description,
  "categories": categories[]->{
    _id,
    title,
    "slug": slug.current
  },
  "images": images[].asset->url
}
"""

# Authoritative stock and price for a batch of product ids
PRODUCTS_BY_IDS_QUERY = """
*[_type == "product" && _id in $ids] {
  _id,
  title,
  price,
  quantity,
  "images": images[].asset->url
}
"""

PRODUCT_BY_SLUG_QUERY = f"""
*[_type == "product" && slug.current == $slug][0]
{PRODUCT_PROJECTION}
"""

FEATURED_PRODUCTS_QUERY = f"""
*[_type == "product" && featured == true]
| order(_createdAt desc)
{PRODUCT_PROJECTION}
"""
