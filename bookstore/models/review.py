"""
Review model
"""
from sqlalchemy import Column, Integer, DateTime, Text, ForeignKey, CheckConstraint, UniqueConstraint
from sqlalchemy.orm import relationship, validates

from bookstore.core.database import Base
from bookstore.core.utils import utcnow
from bookstore.utils.db_sanitizer import sanitize_integer, sanitize_string

MIN_RATING = 1
MAX_RATING = 5


class Review(Base):
    """One rating per (user, product). Out-of-range ratings are rejected, never clamped."""
    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    user = relationship("User", back_populates="reviews")
    product = relationship("Product", back_populates="reviews")

    __table_args__ = (
        UniqueConstraint("user_id", "product_id", name="uq_reviews_user_product"),
        CheckConstraint(f"rating >= {MIN_RATING} AND rating <= {MAX_RATING}", name="ck_reviews_rating_range"),
    )

    def __repr__(self):
        return f"<Review(id={self.id}, product_id={self.product_id}, rating={self.rating})>"

    @validates("rating")
    def _validate_rating(self, key, value):
        return sanitize_integer(value, key, min_value=MIN_RATING, max_value=MAX_RATING, allow_none=False)

    @validates("comment")
    def _validate_comment(self, key, value):
        return sanitize_string(value, key)
