from pydantic import BaseModel, Field
from typing import Optional


class PromoRuleCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    threshold_total_spent: float = Field(ge=0)
    delivery_discount_amount: float = Field(default=0, ge=0)
    percent_discount: float = Field(default=0, ge=0, le=100)
    active: bool = True


class PromoRuleUpdate(BaseModel):
    name: Optional[str] = None
    threshold_total_spent: Optional[float] = Field(default=None, ge=0)
    delivery_discount_amount: Optional[float] = Field(default=None, ge=0)
    percent_discount: Optional[float] = Field(default=None, ge=0, le=100)
    active: Optional[bool] = None


class PromoRuleOut(BaseModel):
    id: int
    name: str
    threshold_total_spent: float
    delivery_discount_amount: float
    percent_discount: float
    active: bool

    class Config:
        from_attributes = True


class PromoStatusOut(BaseModel):
    total_spent: float
    current_tier: Optional[PromoRuleOut] = None
    next_tier: Optional[PromoRuleOut] = None
    remaining_to_next: Optional[float] = None
