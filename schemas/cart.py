from pydantic import BaseModel, Field
from typing import List, Optional

from schemas.product import ProductOut


class CartItemAdd(BaseModel):
    product_id: int
    quantity: Optional[int] = Field(default=None, ge=1)


class CartItemUpdate(BaseModel):
    quantity: int


class CartItemOut(BaseModel):
    id: int
    product_id: int
    quantity: int
    product: ProductOut

    class Config:
        from_attributes = True


class CartOut(BaseModel):
    id: int
    items: List[CartItemOut]
    total: float
