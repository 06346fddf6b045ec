"""
User model

The password column only ever holds a bcrypt digest. Raw passwords assigned to
User.password are hashed by hash_password_on_write, a before_flush session
interceptor that runs for every flush of every Session, so neither inserts nor
updates can persist cleartext.
"""
import logging
from enum import Enum as PyEnum

from sqlalchemy import Column, Integer, String, DateTime, JSON, CheckConstraint, event, inspect
from sqlalchemy.orm import relationship, validates, Session

from bookstore.core.database import Base
from bookstore.core.exceptions import ValidationError
from bookstore.core.security import MAX_PASSWORD_BYTES, hash_password, verify_password
from bookstore.core.utils import utcnow
from bookstore.utils.db_sanitizer import sanitize_choice, sanitize_email, sanitize_string

logger = logging.getLogger(__name__)


class UserRole(str, PyEnum):
    USER = "user"
    ADMIN = "admin"


def default_address() -> dict:
    return {"street": "", "city": "", "state": "", "zipCode": "", "country": ""}


def default_preferences() -> dict:
    return {"emailNotifications": True, "smsNotifications": False, "newsletter": True}


class User(Base):
    """
    Customer or administrator account.

    Owns orders (delete RESTRICT), reviews, wishlist entries and the cart
    (delete CASCADE). Payments keep their row with user_id set to NULL.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password = Column(String(60), nullable=False)
    role = Column(String(20), nullable=False, default=UserRole.USER.value)
    phone = Column(String(50), nullable=True)
    address = Column(JSON, nullable=False, default=default_address)
    preferences = Column(JSON, nullable=False, default=default_preferences)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # Relationships - deletes are left to the database rules
    orders = relationship("Order", back_populates="user", passive_deletes="all")
    reviews = relationship("Review", back_populates="user", cascade="all, delete-orphan", passive_deletes=True)
    wishlists = relationship("Wishlist", back_populates="user", cascade="all, delete-orphan", passive_deletes=True)
    cart = relationship("Cart", back_populates="user", uselist=False, cascade="all, delete-orphan", passive_deletes=True)
    payments = relationship("Payment", back_populates="user", passive_deletes=True)

    __table_args__ = (
        CheckConstraint("role IN ('user', 'admin')", name="ck_users_role"),
    )

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"

    @validates("email")
    def _validate_email(self, key, value):
        return sanitize_email(value, key)

    @validates("name")
    def _validate_name(self, key, value):
        return sanitize_string(value, key, max_length=255, required=True)

    @validates("role")
    def _validate_role(self, key, value):
        return sanitize_choice(value, [r.value for r in UserRole], key)

    @validates("password")
    def _validate_password(self, key, value):
        if not isinstance(value, str) or value == "":
            raise ValidationError("Password is required", field=key)
        if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValidationError(f"Password longer than {MAX_PASSWORD_BYTES} bytes", field=key)
        return value

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    def validate_password(self, candidate: str) -> bool:
        """Compare a candidate against the stored digest."""
        return verify_password(candidate, self.password)


@event.listens_for(Session, "before_flush")
def hash_password_on_write(session, flush_context, instances):
    """
    Pre-persist interceptor: hash new or changed User.password values.

    Runs on insert and on update. Every value assigned to User.password is
    treated as cleartext, even one shaped like a digest. A persistent user is
    only rehashed when the attribute changed since the last flush, so
    flushing again never double-hashes.
    """
    for obj in list(session.new) + list(session.dirty):
        if not isinstance(obj, User):
            continue

        value = obj.password
        if value is None:
            continue

        if obj not in session.new and not inspect(obj).attrs.password.history.has_changes():
            continue

        obj.password = hash_password(value)
        logger.debug(f"Hashed password for user email={obj.email}")
