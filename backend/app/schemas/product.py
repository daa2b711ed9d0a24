"""Product request/response schemas"""
import math
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class ProductCreate(BaseModel):
    """Create payload (multipart form or JSON)"""
    sku: Optional[str] = Field(None, max_length=64, examples=["SKU12345"])
    name: str = Field(..., min_length=1, max_length=255, examples=["Product Name"])
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2, examples=[100.0])
    description: Optional[str] = Field(None, examples=["Product Description"])


class ProductUpdate(BaseModel):
    """Full overwrite of the mutable fields; image is handled separately"""
    id: str = Field(..., examples=["uuid"])
    sku: str = Field(..., max_length=64, examples=["SKU12345"])
    name: str = Field(..., min_length=1, max_length=255, examples=["Updated Product Name"])
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2, examples=[150.0])
    description: Optional[str] = Field(None, examples=["Updated Product Description"])


class ProductRead(BaseModel):
    """
    Public product shape.

    Optional strings are never null: missing values read back as "".
    A lookup that found nothing is represented by ``ProductRead.empty()``
    (no id, empty strings, NaN price).
    """
    id: Optional[str] = None
    sku: str = ""
    name: str = ""
    price: float
    description: str = ""
    image: str = ""

    @property
    def exists(self) -> bool:
        return self.id is not None

    @classmethod
    def empty(cls) -> "ProductRead":
        return cls(id=None, price=math.nan)


class OperationResult(BaseModel):
    """Outcome of a create/update: soft failures carry success=False"""
    success: bool
    message: Optional[str] = None


class MessageResponse(BaseModel):
    message: str
