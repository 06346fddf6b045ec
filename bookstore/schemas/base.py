"""
Input schema helpers
"""
from typing import Any, Dict, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from bookstore.core.exceptions import ValidationError

SchemaT = TypeVar("SchemaT", bound=BaseModel)


def parse_input(schema: Type[SchemaT], data: Dict[str, Any]) -> SchemaT:
    """
    Validate raw service input against a pydantic schema.

    Pydantic errors are re-raised as bookstore ValidationError; the first
    failing field becomes the message and the full error list goes in details.
    """
    try:
        return schema.model_validate(data)
    except PydanticValidationError as e:
        errors = [
            {
                "loc": ".".join(str(part) for part in err["loc"]),
                "msg": err["msg"],
                "type": err["type"],
            }
            for err in e.errors(include_url=False)
        ]
        first = errors[0]
        raise ValidationError(
            f"{first['loc']}: {first['msg']}" if first["loc"] else first["msg"],
            field=first["loc"] or None,
            details={"errors": errors},
        ) from None
