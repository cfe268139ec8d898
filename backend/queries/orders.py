# backend/queries/orders.py

# Order history of one Clerk user
ORDERS_BY_CLERK_USER_QUERY = """
*[_type == "order" && clerkUserId == $clerkUserId]
| order(createdAt desc) {
  _id,
  orderId,
  status,
  totalAmount,
  createdAt
}
"""

# Ownership is checked by the caller against clerkUserId
ORDER_BY_ORDER_ID_QUERY = """
*[_type == "order" && orderId == $orderId][0] {
  _id,
  orderId,
  clerkUserId,
  status,
  subtotal,
  shippingCost,
  totalAmount,
  createdAt,
  "items": coalesce(items[]{
    title,
    price,
    quantity,
    "productId": product->_id,
    "productSlug": product->slug.current
  }, [])
}
"""
