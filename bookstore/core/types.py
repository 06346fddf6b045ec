"""
Custom column types
"""
from decimal import Decimal

from sqlalchemy import Numeric
from sqlalchemy.types import TypeDecorator

from bookstore.utils.db_sanitizer import sanitize_money


class Money(TypeDecorator):
    """
    Fixed-point currency column: NUMERIC(10, 2) on the wire, Decimal in Python.

    Values are parsed and quantized to cents when bound and again when loaded,
    so a price never round-trips through a binary float.
    """

    impl = Numeric(10, 2, asdecimal=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return sanitize_money(value)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if not isinstance(value, Decimal):
            value = Decimal(str(value))
        return sanitize_money(value)

    @property
    def python_type(self):
        return Decimal
