"""
Catalog Schemas

Pydantic models for categories and products. Money fields accept Decimal,
int, float or numeric strings; the Money column quantizes them to cents.
"""
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


# ==================== Category Schemas ====================


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    image: Optional[str] = Field(None, max_length=2048)


class CategoryUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    image: Optional[str] = Field(None, max_length=2048)


# ==================== Product Schemas ====================


class ProductCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    author: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    price: Decimal = Field(..., gt=0, allow_inf_nan=False)
    sale_price: Optional[Decimal] = Field(None, ge=0, allow_inf_nan=False)
    stock: int = Field(0, ge=0)
    image: Optional[str] = Field(None, max_length=2048)
    featured: bool = False
    publisher: Optional[str] = Field(None, max_length=255)
    publication_year: Optional[int] = Field(None, ge=1)
    language: Optional[str] = Field(None, max_length=50)
    pages: Optional[int] = Field(None, ge=1)
    category_ids: List[int] = []


class ProductUpdate(BaseModel):
    """Partial update; category links go through the association operations."""
    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    author: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, min_length=1)
    price: Optional[Decimal] = Field(None, gt=0, allow_inf_nan=False)
    sale_price: Optional[Decimal] = Field(None, ge=0, allow_inf_nan=False)
    stock: Optional[int] = Field(None, ge=0)
    image: Optional[str] = Field(None, max_length=2048)
    featured: Optional[bool] = None
    publisher: Optional[str] = Field(None, max_length=255)
    publication_year: Optional[int] = Field(None, ge=1)
    language: Optional[str] = Field(None, max_length=50)
    pages: Optional[int] = Field(None, ge=1)
