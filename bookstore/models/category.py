"""
Category model
"""
from sqlalchemy import Column, Integer, String, DateTime, Text
from sqlalchemy.orm import relationship, validates

from bookstore.core.database import Base
from bookstore.core.utils import utcnow
from bookstore.models.product import product_categories
from bookstore.utils.db_sanitizer import sanitize_string


class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), unique=True, nullable=False, index=True)
    description = Column(Text, nullable=True)
    image = Column(String(2048), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    products = relationship(
        "Product",
        secondary=product_categories,
        back_populates="categories",
        passive_deletes=True,
        order_by="Product.title",
    )

    def __repr__(self):
        return f"<Category(id={self.id}, name='{self.name}')>"

    @validates("name")
    def _validate_name(self, key, value):
        return sanitize_string(value, key, max_length=255, required=True)
