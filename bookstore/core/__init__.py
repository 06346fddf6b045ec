from bookstore.core.config import settings
from bookstore.core.database import Base, get_db_session
from bookstore.core.security import (
    verify_password,
    hash_password,
    is_password_hash,
)
