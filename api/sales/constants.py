"""
Constants for sales operations.
"""

# Firestore collections
SALES_COLLECTION = "sales"
PRODUCTS_COLLECTION = "products"
SELLERS_COLLECTION = "sellers"

# Role allowed to use the sales endpoints
SELLER_ROLE = "seller"

DEFAULT_ADDRESS = "No especificada"
NOT_SPECIFIED = "No especificado"
NOT_AVAILABLE = "N/A"

# Values of the hasSeller flag treated as "yes"
TRUTHY_FLAGS = {"sí", "si", "true", "1", "yes"}
