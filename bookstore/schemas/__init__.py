from bookstore.schemas.base import parse_input
from bookstore.schemas.user import Address, Preferences, UserCreate, UserUpdate
from bookstore.schemas.catalog import CategoryCreate, CategoryUpdate, ProductCreate, ProductUpdate
from bookstore.schemas.order import OrderItemIn, ShippingAddress, OrderOptions, OrderTrackingUpdate, PaymentCreate
from bookstore.schemas.review import ReviewCreate, ReviewUpdate
