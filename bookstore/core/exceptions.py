"""
Bookstore Exception Hierarchy

Structured exception classes surfaced by the service layer. Every exception
carries a code, message, and details for logging and for callers that need to
branch on the failure kind.

Exception Hierarchy:
    BookstoreError
    ├── ValidationError
    │   ├── InsufficientStockError
    │   └── PurchaseRequiredError
    ├── UniquenessConflict
    ├── ReferentialIntegrityError
    ├── NotFoundError
    └── MigrationError
"""
import logging
from typing import Optional, Dict, Any

from sqlalchemy.exc import IntegrityError

logger = logging.getLogger(__name__)


class BookstoreError(Exception):
    """
    Base exception for all bookstore errors.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code for programmatic handling
        details: Additional context for debugging
    """

    default_code: str = "BOOKSTORE_ERROR"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


class ValidationError(BookstoreError):
    """Malformed or missing field, out-of-range value."""
    default_code = "VALIDATION_ERROR"

    def __init__(self, message: str, field: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", {})
        if field is not None:
            details["field"] = field
        super().__init__(message, details=details, **kwargs)


class InsufficientStockError(ValidationError):
    """Order line asks for more units than the product has in stock."""
    default_code = "INSUFFICIENT_STOCK"

    def __init__(
        self,
        message: str,
        product_id: Optional[int] = None,
        requested_qty: Optional[int] = None,
        available_qty: Optional[int] = None,
        **kwargs
    ):
        details = kwargs.pop("details", {})
        details.update({
            "product_id": product_id,
            "requested_qty": requested_qty,
            "available_qty": available_qty,
        })
        super().__init__(message, details=details, **kwargs)


class PurchaseRequiredError(ValidationError):
    """Review attempted on a product the user never received."""
    default_code = "PURCHASE_REQUIRED"


class OrderStateError(ValidationError):
    """Operation not allowed for the order's current status."""
    default_code = "INVALID_ORDER_STATUS"


class UniquenessConflict(BookstoreError):
    """Duplicate value for a unique key (email, payment intent, category name...)."""
    default_code = "UNIQUENESS_CONFLICT"


class ReferentialIntegrityError(BookstoreError):
    """Foreign key violation or delete blocked by a RESTRICT rule."""
    default_code = "REFERENTIAL_INTEGRITY"


class NotFoundError(BookstoreError):
    """Lookup by id with no matching row."""
    default_code = "NOT_FOUND"

    def __init__(self, entity: str, entity_id: Any, **kwargs):
        details = kwargs.pop("details", {})
        details.update({"entity": entity, "id": entity_id})
        super().__init__(f"{entity} {entity_id} not found", details=details, **kwargs)


class MigrationError(BookstoreError):
    """A schema migration step failed; the schema stays at the last applied step."""
    default_code = "MIGRATION_FAILED"


# =============================================================================
# STORAGE ERROR TRANSLATION
# =============================================================================

# PostgreSQL SQLSTATE codes (integrity constraint violation class 23)
_SQLSTATE_MAP = {
    "23505": UniquenessConflict,
    "23503": ReferentialIntegrityError,
    "23514": ValidationError,
    "23502": ValidationError,
}

# SQLite reports constraint failures only through the message text
_MESSAGE_MAP = (
    ("unique constraint", UniquenessConflict),
    ("duplicate key", UniquenessConflict),
    ("foreign key constraint", ReferentialIntegrityError),
    ("check constraint", ValidationError),
    ("not null constraint", ValidationError),
    ("null value in column", ValidationError),
)


def translate_integrity_error(exc: IntegrityError, message: Optional[str] = None) -> BookstoreError:
    """Map a storage-layer IntegrityError onto the bookstore error kinds."""
    orig = getattr(exc, "orig", None)
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    raw = str(orig if orig is not None else exc)

    error_cls = _SQLSTATE_MAP.get(sqlstate)
    if error_cls is None:
        lowered = raw.lower()
        for pattern, candidate in _MESSAGE_MAP:
            if pattern in lowered:
                error_cls = candidate
                break
        else:
            error_cls = BookstoreError

    details = {"storage_error": raw.splitlines()[0] if raw else ""}
    if error_cls is ValidationError:
        return ValidationError(message or "Constraint violated", details=details)
    return error_cls(message or "Integrity constraint violated", details=details)
