from datetime import datetime
from pydantic import BaseModel, Field
from typing import List, Optional

from models.delivery_tracking import TrackingStatus
from models.order import DeliveryZoneCode, OrderStatus, PaymentStatus
from services.orders import Decision, PaymentMethod


class CheckoutRequest(BaseModel):
    delivery_zone: DeliveryZoneCode = DeliveryZoneCode.LOCAL
    delivery_address: str = Field(min_length=1, max_length=255)
    delivery_city: str = Field(min_length=1, max_length=100)
    delivery_postal_code: str = Field(min_length=1, max_length=20)
    delivery_time_slot: Optional[str] = None
    payment_method: PaymentMethod = PaymentMethod.CARD


class QuoteOut(BaseModel):
    delivery_zone: DeliveryZoneCode
    zone_name: str
    subtotal: float
    delivery_fee: float
    total: float
    free_shipping_threshold: float
    time_slots: List[str]


class ValidationRequest(BaseModel):
    decision: Decision
    note: Optional[str] = None


class OrderItemOut(BaseModel):
    id: int
    product_id: int
    quantity: int
    unit_price: float
    subtotal: float

    class Config:
        from_attributes = True


class TrackingSummary(BaseModel):
    id: int
    status: TrackingStatus
    carrier: str
    driver_id: Optional[int] = None

    class Config:
        from_attributes = True


class OrderOut(BaseModel):
    id: int
    order_number: Optional[str] = None
    buyer_user_id: int
    organization_id: Optional[int] = None
    status: OrderStatus
    payment_status: PaymentStatus
    subtotal: float
    delivery_fee: float
    total_amount: float
    delivery_zone: DeliveryZoneCode
    delivery_address: str
    delivery_city: str
    delivery_postal_code: str
    delivery_time_slot: Optional[str] = None
    admin_notes: Optional[str] = None
    validated_by: Optional[int] = None
    validated_at: Optional[datetime] = None
    created_at: datetime
    items: List[OrderItemOut]
    tracking: Optional[TrackingSummary] = None

    class Config:
        from_attributes = True
