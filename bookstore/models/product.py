"""
Product model and the product/category association table

product_categories replaced the single products.category_id column
(migration 20250701000000). Both foreign keys cascade, so deleting either a
product or a category only removes the association rows.
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, Table, ForeignKey, CheckConstraint, Index
from sqlalchemy.orm import relationship, validates

from bookstore.core.database import Base
from bookstore.core.exceptions import ValidationError
from bookstore.core.types import Money
from bookstore.core.utils import utcnow
from bookstore.utils.db_sanitizer import sanitize_integer, sanitize_money, sanitize_string

product_categories = Table(
    "product_categories",
    Base.metadata,
    Column("product_id", Integer, ForeignKey("products.id", ondelete="CASCADE"), primary_key=True),
    Column("category_id", Integer, ForeignKey("categories.id", ondelete="CASCADE"), primary_key=True),
)


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False, index=True)
    author = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)

    # Pricing - exact decimals, see bookstore.core.types.Money
    price = Column(Money, nullable=False)
    sale_price = Column(Money, nullable=True)

    # Inventory
    stock = Column(Integer, nullable=False, default=0)
    sales_count = Column(Integer, nullable=False, default=0)

    # Media / merchandising
    image = Column(String(2048), nullable=True)
    featured = Column(Boolean, nullable=False, default=False)

    # Book metadata
    publisher = Column(String(255), nullable=True)
    publication_year = Column(Integer, nullable=True)
    language = Column(String(50), nullable=True)
    pages = Column(Integer, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # Relationships
    categories = relationship(
        "Category",
        secondary=product_categories,
        back_populates="products",
        passive_deletes=True,
        order_by="Category.name",
    )
    reviews = relationship("Review", back_populates="product", cascade="all, delete-orphan", passive_deletes=True)
    wishlists = relationship("Wishlist", back_populates="product", cascade="all, delete-orphan", passive_deletes=True)
    cart_items = relationship("CartItem", back_populates="product", cascade="all, delete-orphan", passive_deletes=True)
    # Ordered products cannot be deleted (order_details.product_id RESTRICT)
    order_details = relationship("OrderDetail", back_populates="product", passive_deletes="all")

    __table_args__ = (
        CheckConstraint("price > 0", name="ck_products_price_positive"),
        CheckConstraint("sale_price IS NULL OR sale_price >= 0", name="ck_products_sale_price_non_negative"),
        CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
        CheckConstraint("sales_count >= 0", name="ck_products_sales_count_non_negative"),
        Index("ix_products_featured", "featured"),
    )

    def __repr__(self):
        return f"<Product(id={self.id}, title='{self.title}')>"

    @validates("title", "author", "description")
    def _validate_required_text(self, key, value):
        return sanitize_string(value, key, required=True)

    @validates("price")
    def _validate_price(self, key, value):
        result = sanitize_money(value, key, allow_none=False)
        if result <= 0:
            raise ValidationError("price must be greater than 0", field=key)
        return result

    @validates("sale_price")
    def _validate_sale_price(self, key, value):
        return sanitize_money(value, key, min_value=0)

    @validates("stock", "sales_count")
    def _validate_counter(self, key, value):
        return sanitize_integer(value, key, min_value=0, allow_none=False)

    @validates("publication_year", "pages")
    def _validate_optional_positive(self, key, value):
        return sanitize_integer(value, key, min_value=1)

    @property
    def effective_price(self):
        """Price a customer pays right now."""
        return self.sale_price if self.sale_price is not None else self.price

    @property
    def on_sale(self) -> bool:
        return self.sale_price is not None and self.sale_price < self.price
