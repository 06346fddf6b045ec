"""
User Service

Account lifecycle: create, look up, partial update, credential check and
delete. Passwords are handed to the model as entered; the before_flush
interceptor on User hashes them.
"""
import logging
from typing import List, Optional

from pydantic import BaseModel
from sqlalchemy import select, func

from bookstore.core.exceptions import ReferentialIntegrityError, UniquenessConflict
from bookstore.models.order import Order
from bookstore.models.user import User
from bookstore.schemas.base import parse_input
from bookstore.schemas.user import UserCreate, UserUpdate
from bookstore.services.base import BaseService
from bookstore.utils.db_sanitizer import sanitize_choice

logger = logging.getLogger(__name__)


class UserService(BaseService):
    """
    Service for user management operations.

    Features:
    - User CRUD (hard delete, restricted while orders exist)
    - Email uniqueness checked before the insert, enforced by the unique index
    - Password verification against the stored bcrypt digest
    """

    # ============================================================
    # Lookups
    # ============================================================

    async def get_user(self, user_id: int) -> User:
        """Get user by ID or raise NotFoundError."""
        return await self._get_or_raise(User, user_id)

    async def get_user_by_email(self, email: str) -> Optional[User]:
        """Get user by email (case-insensitive)."""
        result = await self.db.execute(
            select(User).where(func.lower(User.email) == email.strip().lower())
        )
        return result.scalar_one_or_none()

    async def list_users(
        self,
        role: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[User]:
        query = select(User)
        if role is not None:
            query = query.where(User.role == sanitize_choice(role, ["user", "admin"], "role"))
        query = query.order_by(User.id.asc()).limit(limit).offset(offset)

        result = await self.db.execute(query)
        return list(result.scalars().all())

    # ============================================================
    # Writes
    # ============================================================

    async def create_user(
        self,
        name: str,
        email: str,
        password: str,
        role: str = "user",
        phone: Optional[str] = None,
        address: Optional[dict] = None,
        preferences: Optional[dict] = None,
    ) -> User:
        """
        Create a new user.

        Raises:
            ValidationError: Malformed email, empty name/password, unknown role
            UniquenessConflict: Email already registered
        """
        data = parse_input(UserCreate, {
            "name": name,
            "email": email,
            "password": password,
            "role": role,
            "phone": phone,
            "address": address,
            "preferences": preferences,
        })

        if await self.get_user_by_email(data.email):
            raise UniquenessConflict("Email already registered", details={"field": "email"})

        user = User(
            name=data.name,
            email=data.email,
            password=data.password,
            role=data.role,
            phone=data.phone,
        )
        if data.address is not None:
            user.address = data.address.model_dump()
        if data.preferences is not None:
            user.preferences = data.preferences.model_dump()

        self.db.add(user)
        await self._commit("Email already registered")

        logger.info(f"Created user id={user.id} email={user.email} role={user.role}")
        return user

    async def update_user(self, user_id: int, **fields) -> User:
        """
        Partial profile update.

        A new password is rehashed on flush; a new email is re-validated and
        re-checked for uniqueness.
        """
        data = parse_input(UserUpdate, fields)
        changes = {}
        for key in data.model_fields_set:
            value = getattr(data, key)
            changes[key] = value.model_dump() if isinstance(value, BaseModel) else value

        user = await self.get_user(user_id)

        new_email = changes.get("email")
        if new_email is not None and new_email != user.email:
            existing = await self.get_user_by_email(new_email)
            if existing is not None and existing.id != user.id:
                raise UniquenessConflict("Email already registered", details={"field": "email"})

        for key, value in changes.items():
            if value is None and key in ("name", "email", "password", "role", "address", "preferences"):
                continue
            setattr(user, key, value)

        await self._commit("Email already registered")

        logger.info(f"Updated user id={user.id} fields={sorted(changes)}")
        return user

    async def validate_password(self, user_id: int, candidate: str) -> bool:
        user = await self.get_user(user_id)
        return user.validate_password(candidate)

    async def delete_user(self, user_id: int) -> None:
        """
        Delete a user.

        Reviews, wishlist entries and the cart go with the account; payments
        stay with user_id cleared.

        Raises:
            NotFoundError: No such user
            ReferentialIntegrityError: The user has orders
        """
        user = await self.get_user(user_id)

        order_count = await self.db.scalar(
            select(func.count(Order.id)).where(Order.user_id == user_id)
        )
        if order_count:
            raise ReferentialIntegrityError(
                f"User {user_id} has {order_count} order(s) and cannot be deleted",
                details={"user_id": user_id, "order_count": order_count},
            )

        await self.db.delete(user)
        await self._commit(f"User {user_id} is still referenced")

        logger.info(f"Deleted user id={user_id}")
