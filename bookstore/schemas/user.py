"""
User Schemas

Pydantic models for account creation and profile updates.
"""
from typing import Annotated, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, EmailStr, Field, field_validator

from bookstore.core.security import MAX_PASSWORD_BYTES
from bookstore.models.user import UserRole


def _check_password_length(v: str) -> str:
    if len(v.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    return v


RawPassword = Annotated[str, Field(min_length=1), AfterValidator(_check_password_length)]


class Address(BaseModel):
    """Postal address stored as JSON on the user row."""
    street: str = ""
    city: str = ""
    state: str = ""
    zipCode: str = ""
    country: str = ""


class Preferences(BaseModel):
    """Notification preferences."""
    emailNotifications: bool = True
    smsNotifications: bool = False
    newsletter: bool = True


class UserCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: RawPassword
    role: UserRole = UserRole.USER
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[Address] = None
    preferences: Optional[Preferences] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v):
        return v.lower()


class UserUpdate(BaseModel):
    """Partial update; only fields explicitly passed are applied."""
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    password: Optional[RawPassword] = None
    role: Optional[UserRole] = None
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[Address] = None
    preferences: Optional[Preferences] = None

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v):
        return v.lower() if v else v
