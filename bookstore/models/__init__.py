from bookstore.models.user import User, UserRole
from bookstore.models.product import Product, product_categories
from bookstore.models.category import Category
from bookstore.models.cart import Cart, CartItem
from bookstore.models.order import Order, OrderDetail, OrderStatus, OrderPaymentStatus, PaymentMethod
from bookstore.models.payment import Payment, PaymentStatus
from bookstore.models.review import Review
from bookstore.models.wishlist import Wishlist

__all__ = [
    "User",
    "UserRole",
    "Product",
    "product_categories",
    "Category",
    "Cart",
    "CartItem",
    "Order",
    "OrderDetail",
    "OrderStatus",
    "OrderPaymentStatus",
    "PaymentMethod",
    "Payment",
    "PaymentStatus",
    "Review",
    "Wishlist",
]
