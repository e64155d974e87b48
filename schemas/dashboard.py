from pydantic import BaseModel
from typing import List, Optional

from core.roles import Role
from schemas.order import OrderOut
from schemas.tracking import DeliveryOut
from schemas.visit import VisitReportOut


class BuyerDashboardOut(BaseModel):
    total_orders: int
    pending_orders: int
    delivered_orders: int
    total_spent: float
    recent_orders: List[OrderOut]

    class Config:
        from_attributes = True


class DriverDashboardOut(BaseModel):
    total_deliveries: int
    pending_deliveries: int
    in_progress_deliveries: int
    completed_today: int
    active_deliveries: List[DeliveryOut]

    class Config:
        from_attributes = True


class StaffDashboardOut(BaseModel):
    total_revenue: float
    total_orders: int
    pending_orders: int
    available_products: int
    customer_organizations: int
    pending_orders_list: List[OrderOut]
    recent_visits: List[VisitReportOut]

    class Config:
        from_attributes = True


class DashboardOut(BaseModel):
    role: Role
    buyer: Optional[BuyerDashboardOut] = None
    driver: Optional[DriverDashboardOut] = None
    staff: Optional[StaffDashboardOut] = None
