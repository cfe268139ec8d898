# backend/queries/customers.py

CUSTOMER_PROJECTION = """
{
  _id,
  email,
  name,
  clerkUserId,
  stripeCustomerId,
  createdAt
}
"""

CUSTOMER_BY_EMAIL_QUERY = f"""
*[_type == "customer" && email == $email][0]
{CUSTOMER_PROJECTION}
"""
