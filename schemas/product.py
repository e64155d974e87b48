from pydantic import BaseModel, Field
from typing import Optional


class ProductCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    sku: Optional[str] = None
    price_per_unit: float = Field(gt=0)
    unit: str = "kg"
    moq: int = Field(default=1, ge=1)
    stock_quantity: int = Field(default=0, ge=0)
    origin_country: Optional[str] = None
    description: Optional[str] = None
    featured: bool = False


class ProductUpdate(BaseModel):
    name: Optional[str] = None
    price_per_unit: Optional[float] = Field(default=None, gt=0)
    unit: Optional[str] = None
    moq: Optional[int] = Field(default=None, ge=1)
    stock_quantity: Optional[int] = Field(default=None, ge=0)
    origin_country: Optional[str] = None
    description: Optional[str] = None
    available: Optional[bool] = None
    featured: Optional[bool] = None


class ProductOut(BaseModel):
    id: int
    name: str
    sku: Optional[str] = None
    price_per_unit: float
    unit: str
    moq: int
    stock_quantity: int
    origin_country: Optional[str] = None
    description: Optional[str] = None
    available: bool
    featured: bool

    class Config:
        from_attributes = True
