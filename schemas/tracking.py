from datetime import datetime
from pydantic import BaseModel, Field
from typing import List, Optional

from models.delivery_tracking import TrackingStatus
from schemas.users import UserBrief


class DriverAssignment(BaseModel):
    driver_id: int


class StatusUpdate(BaseModel):
    status: TrackingStatus


class TrackingUpdate(BaseModel):
    carrier: Optional[str] = None
    tracking_number: Optional[str] = None
    current_location: Optional[str] = None
    gps_latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    gps_longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    estimated_delivery: Optional[datetime] = None
    notes: Optional[str] = None


class TrackingOut(BaseModel):
    id: int
    order_id: int
    status: TrackingStatus
    status_label: str
    carrier: str
    tracking_number: Optional[str] = None
    driver_id: Optional[int] = None
    current_location: Optional[str] = None
    gps_latitude: Optional[float] = None
    gps_longitude: Optional[float] = None
    estimated_delivery: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    notes: Optional[str] = None
    updated_at: datetime

    class Config:
        from_attributes = True


class ProgressStepOut(BaseModel):
    status: TrackingStatus
    label: str
    complete: bool


class TrackingProgressOut(BaseModel):
    tracking: TrackingOut
    steps: List[ProgressStepOut]


class DeliveryOrderOut(BaseModel):
    id: int
    order_number: Optional[str] = None
    total_amount: float
    delivery_address: str
    delivery_city: str
    delivery_postal_code: str
    delivery_time_slot: Optional[str] = None
    buyer: UserBrief

    class Config:
        from_attributes = True


class DeliveryOut(TrackingOut):
    order: DeliveryOrderOut
