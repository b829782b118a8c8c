"""Product form validation."""

from typing import Optional

from pydantic import Field, field_validator

from .base import CamelModel


class CreateProductInput(CamelModel):
    name: str = Field(min_length=2, max_length=100)
    description: Optional[str] = Field(default=None, max_length=1000)
    default_price: float = Field(ge=0, le=999_999_999)
    sku: Optional[str] = Field(default=None, max_length=50)
    category: Optional[str] = Field(default=None, max_length=50)
    notes: Optional[str] = Field(default=None, max_length=500)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v


class UpdateProductInput(CreateProductInput):
    """Partial update: every field optional."""
    name: Optional[str] = Field(default=None, min_length=2, max_length=100)
    default_price: Optional[float] = Field(default=None, ge=0, le=999_999_999)
