"""
Service base class

Every service wraps one AsyncSession. Write operations end in _commit(),
which turns storage integrity failures into bookstore errors after rolling
the transaction back.
"""
import logging
from typing import Any, Optional, Type

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from bookstore.core.exceptions import NotFoundError, translate_integrity_error

logger = logging.getLogger(__name__)


async def commit_or_translate(db: AsyncSession, message: Optional[str] = None) -> None:
    """Commit, or roll back and raise the bookstore error for an integrity failure."""
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        error = translate_integrity_error(e, message)
        logger.warning(f"Write rejected by database: {error.code} {error.details.get('storage_error')}")
        raise error from e


class BaseService:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _commit(self, message: Optional[str] = None) -> None:
        await commit_or_translate(self.db, message)

    async def _get_or_raise(self, model: Type[Any], entity_id: Any, entity: Optional[str] = None):
        """Load a row by primary key or raise NotFoundError."""
        obj = await self.db.get(model, entity_id)
        if obj is None:
            raise NotFoundError(entity or model.__name__, entity_id)
        return obj
