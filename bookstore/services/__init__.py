# Services layer for business logic

from bookstore.services.user_service import UserService
from bookstore.services.catalog_service import CatalogService
from bookstore.services.cart_service import CartService
from bookstore.services.order_service import OrderService
from bookstore.services.payment_service import PaymentService
from bookstore.services.review_service import ReviewService
from bookstore.services.wishlist_service import WishlistService
from bookstore.services.dashboard_service import DashboardService
