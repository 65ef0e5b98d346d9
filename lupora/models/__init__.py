from lupora.models.user import User
from lupora.models.product import Product, Media
from lupora.models.cart import Cart, CartItem
from lupora.models.order import Order, OrderItem, CheckoutRequest
from lupora.models.review import Review

__all__ = [
    "User",
    "Product",
    "Media",
    "Cart",
    "CartItem",
    "Order",
    "OrderItem",
    "CheckoutRequest",
    "Review",
]
