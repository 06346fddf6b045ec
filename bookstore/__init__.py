"""Bookstore backend core: data model, services, migrations and seed data."""

__version__ = "1.0.0"
