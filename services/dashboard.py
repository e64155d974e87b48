"""Per-role landing summaries.

Each role gets the counters its home screen needs, computed from the live
tables on every request.
"""
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from core.roles import Capability, Role, has_capability
from models.delivery_tracking import DeliveryTracking, TrackingStatus
from models.order import Order, OrderStatus
from models.organization import Organization
from models.product import Product
from models.user import User
from models.visit_report import VisitReport
from services.pricing import to_money

RECENT_LIMIT = 5

# Deliveries a driver still has to pick up, as opposed to ones on the road
WAITING_TRACKING_STATUSES = frozenset({
    TrackingStatus.PENDING,
    TrackingStatus.CONFIRMED,
    TrackingStatus.PREPARING,
})


@dataclass
class BuyerDashboard:
    total_orders: int
    pending_orders: int
    delivered_orders: int
    total_spent: Decimal
    recent_orders: list[Order] = field(default_factory=list)


@dataclass
class DriverDashboard:
    total_deliveries: int
    pending_deliveries: int
    in_progress_deliveries: int
    completed_today: int
    active_deliveries: list[DeliveryTracking] = field(default_factory=list)


@dataclass
class StaffDashboard:
    total_revenue: Decimal
    total_orders: int
    pending_orders: int
    available_products: int
    customer_organizations: int
    pending_orders_list: list[Order] = field(default_factory=list)
    recent_visits: list[VisitReport] = field(default_factory=list)


def _revenue(orders) -> Decimal:
    return to_money(sum(
        (Decimal(str(o.total_amount)) for o in orders if o.status != OrderStatus.CANCELLED),
        Decimal("0"),
    ))


def buyer_dashboard(db: Session, buyer: User) -> BuyerDashboard:
    orders = (
        db.query(Order)
        .options(selectinload(Order.items), selectinload(Order.tracking))
        .filter(Order.buyer_user_id == buyer.id)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .all()
    )
    return BuyerDashboard(
        total_orders=len(orders),
        pending_orders=sum(1 for o in orders if o.status == OrderStatus.PENDING),
        delivered_orders=sum(1 for o in orders if o.status == OrderStatus.DELIVERED),
        total_spent=_revenue(orders),
        recent_orders=orders[:RECENT_LIMIT],
    )


def driver_dashboard(db: Session, driver: User, now: Optional[datetime] = None) -> DriverDashboard:
    """Counters over the driver's assignments; "today" starts at midnight UTC."""
    now = now or datetime.utcnow()
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    trackings = (
        db.query(DeliveryTracking)
        .options(selectinload(DeliveryTracking.order).selectinload(Order.buyer))
        .filter(DeliveryTracking.driver_id == driver.id)
        .order_by(DeliveryTracking.created_at.desc(), DeliveryTracking.id.desc())
        .all()
    )
    active = [
        t for t in trackings
        if t.status != TrackingStatus.DELIVERED and t.order.status != OrderStatus.CANCELLED
    ]
    return DriverDashboard(
        total_deliveries=len(trackings),
        pending_deliveries=sum(1 for t in active if t.status in WAITING_TRACKING_STATUSES),
        in_progress_deliveries=sum(1 for t in active if t.status == TrackingStatus.OUT_FOR_DELIVERY),
        completed_today=sum(
            1 for t in trackings
            if t.status == TrackingStatus.DELIVERED and t.delivered_at is not None and t.delivered_at >= midnight
        ),
        active_deliveries=active,
    )


def staff_dashboard(db: Session, staff: User) -> StaffDashboard:
    """Sales overview; visit reports are limited to the user's own unless they may read all."""
    orders = db.query(Order.total_amount, Order.status).all()
    pending = (
        db.query(Order)
        .options(selectinload(Order.items), selectinload(Order.tracking))
        .filter(Order.status == OrderStatus.PENDING)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .limit(RECENT_LIMIT)
        .all()
    )
    visits = db.query(VisitReport).options(selectinload(VisitReport.commercial))
    if not has_capability(staff.role, Capability.READ_ALL_VISIT_REPORTS):
        visits = visits.filter(VisitReport.commercial_id == staff.id)
    customers = (
        db.query(func.count(func.distinct(Organization.id)))
        .join(User, User.organization_id == Organization.id)
        .filter(User.role == Role.BUYER)
        .scalar()
    )
    return StaffDashboard(
        total_revenue=_revenue(orders),
        total_orders=len(orders),
        pending_orders=sum(1 for o in orders if o.status == OrderStatus.PENDING),
        available_products=db.query(Product).filter(Product.available.is_(True)).count(),
        customer_organizations=customers or 0,
        pending_orders_list=pending,
        recent_visits=visits.order_by(VisitReport.visit_date.desc(), VisitReport.id.desc()).limit(RECENT_LIMIT).all(),
    )


def dashboard_for(db: Session, user: User) -> dict:
    """The summary matching the user's role, keyed by section."""
    role = Role(user.role)
    if has_capability(role, Capability.VIEW_ALL_ORDERS):
        return {"role": role, "staff": staff_dashboard(db, user)}
    if has_capability(role, Capability.DELIVER_ORDERS):
        return {"role": role, "driver": driver_dashboard(db, user)}
    return {"role": role, "buyer": buyer_dashboard(db, user)}
