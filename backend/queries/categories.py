# backend/queries/categories.py

CATEGORY_PROJECTION = """
{
  _id,
  title,
  "slug": slug.current,
  "image": image.asset->url
}
"""

ALL_CATEGORIES_QUERY = f"""
*[_type == "category"] | order(title asc)
{CATEGORY_PROJECTION}
"""

CATEGORY_BY_SLUG_QUERY = f"""
*[_type == "category" && slug.current == $slug][0]
{CATEGORY_PROJECTION}
"""
