"""
Database Input Sanitizer

Validation layer between caller input and database writes. Model validators
and the Money column type call into these helpers so that a bad value fails
before it reaches the INSERT/UPDATE, with a ValidationError naming the field.
"""
import logging
import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Iterable, Optional

from pydantic import EmailStr, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from bookstore.core.exceptions import ValidationError

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")

_email_adapter = TypeAdapter(EmailStr)


def sanitize_money(
    value: Any,
    field_name: str = "amount",
    min_value: Optional[Decimal] = None,
    allow_none: bool = True,
) -> Optional[Decimal]:
    """
    Parse a currency amount into a Decimal with exactly two places.

    Floats are converted through their shortest repr (19.99 -> Decimal('19.99')),
    never through their binary value.

    Args:
        value: Raw value (Decimal, int, float, str, None)
        field_name: Name of field (for error messages)
        min_value: Minimum allowed value (inclusive)
        allow_none: If False, None and '' are rejected

    Returns:
        Decimal quantized to cents, or None

    Raises:
        ValidationError: If value cannot be parsed or is out of range
    """
    if isinstance(value, str):
        value = value.strip()
        if value == '':
            value = None
        else:
            # Remove currency symbols and thousands separators
            value = re.sub(r'[$,\s]', '', value)

    if value is None:
        if allow_none:
            return None
        raise ValidationError(f"{field_name} is required", field=field_name)

    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a number", field=field_name)

    try:
        if isinstance(value, Decimal):
            result = value
        elif isinstance(value, (int, float)):
            result = Decimal(str(value))
        elif isinstance(value, str):
            result = Decimal(value)
        else:
            raise ValidationError(f"Unexpected type for {field_name}: {type(value).__name__}", field=field_name)
    except (InvalidOperation, ValueError):
        raise ValidationError(f"Cannot parse {field_name}: {value!r}", field=field_name)

    if not result.is_finite():
        raise ValidationError(f"{field_name} must be finite", field=field_name)

    result = result.quantize(CENTS, rounding=ROUND_HALF_UP)

    if min_value is not None and result < min_value:
        raise ValidationError(f"{field_name} below minimum: {result} < {min_value}", field=field_name)

    return result


def sanitize_string(
    value: Any,
    field_name: str = "string",
    max_length: Optional[int] = None,
    required: bool = False,
) -> Optional[str]:
    """
    Strip a string value, rejecting blanks for required fields.

    Raises:
        ValidationError: If required and missing/blank, or longer than max_length
    """
    if value is None:
        if required:
            raise ValidationError(f"{field_name} is required", field=field_name)
        return None

    result = str(value).strip()

    if result == '':
        if required:
            raise ValidationError(f"{field_name} is required", field=field_name)
        return None

    if max_length and len(result) > max_length:
        raise ValidationError(f"{field_name} longer than {max_length} characters", field=field_name)

    return result


def sanitize_integer(
    value: Any,
    field_name: str = "integer",
    min_value: Optional[int] = None,
    max_value: Optional[int] = None,
    allow_none: bool = True,
) -> Optional[int]:
    """
    Validate an integer value and its range.

    Out-of-range values fail; they are never clamped.

    Raises:
        ValidationError: If value is not an integer or out of range
    """
    if value is None:
        if allow_none:
            return None
        raise ValidationError(f"{field_name} is required", field=field_name)

    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{field_name} must be an integer", field=field_name)

    if min_value is not None and value < min_value:
        raise ValidationError(f"{field_name} below minimum: {value} < {min_value}", field=field_name)

    if max_value is not None and value > max_value:
        raise ValidationError(f"{field_name} above maximum: {value} > {max_value}", field=field_name)

    return value


def sanitize_email(value: Any, field_name: str = "email") -> str:
    """
    Validate an email address and normalize it to lowercase.

    Raises:
        ValidationError: If the address is missing or malformed
    """
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("Please enter a valid email address", field=field_name)

    try:
        email = _email_adapter.validate_python(value.strip())
    except PydanticValidationError:
        raise ValidationError("Please enter a valid email address", field=field_name)

    return email.lower()


def sanitize_choice(value: Any, choices: Iterable[str], field_name: str = "value") -> str:
    """
    Validate membership in a closed set of string values.

    Accepts enum members (str subclasses) as well as plain strings.

    Raises:
        ValidationError: If value is not one of choices
    """
    allowed = list(choices)
    candidate = getattr(value, "value", value)
    if candidate not in allowed:
        raise ValidationError(
            f"Invalid {field_name}: {candidate!r}",
            field=field_name,
            details={"allowed": allowed},
        )
    return candidate
