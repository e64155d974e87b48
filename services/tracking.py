"""Delivery tracking state machine.

Drivers walk an order forward one step at a time. Dispatchers (admin and
commercial staff) may correct a tracking record to any other status unless
``TRACKING_STRICT_TRANSITIONS`` is enabled, in which case they follow the
same one-step forward table. ``delivered`` is terminal for everyone.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session, selectinload

from core.config import settings
from core.db import commit_or_fail
from core.errors import Forbidden, InvalidTransition, NotFound, ValidationFailure
from core.roles import Capability, Role, has_capability
from models.delivery_tracking import TRACKING_LABELS, DeliveryTracking, TrackingStatus
from models.order import Order, OrderStatus
from models.user import User
from services.orders import mirror_tracking_status

logger = logging.getLogger(__name__)

TRACKING_STEPS: tuple[tuple[TrackingStatus, str], ...] = tuple(TRACKING_LABELS.items())

FORWARD_TRANSITIONS: dict[TrackingStatus, frozenset[TrackingStatus]] = {
    TrackingStatus.PENDING: frozenset({TrackingStatus.CONFIRMED}),
    TrackingStatus.CONFIRMED: frozenset({TrackingStatus.PREPARING}),
    TrackingStatus.PREPARING: frozenset({TrackingStatus.OUT_FOR_DELIVERY}),
    TrackingStatus.OUT_FOR_DELIVERY: frozenset({TrackingStatus.DELIVERED}),
    TrackingStatus.DELIVERED: frozenset(),
}

# Correction override: any other status, except leaving the terminal state.
DISPATCHER_TRANSITIONS: dict[TrackingStatus, frozenset[TrackingStatus]] = {
    src: frozenset(s for s in TrackingStatus if s != src) if src != TrackingStatus.DELIVERED else frozenset()
    for src in TrackingStatus
}

# Drivers never confirm an order; that is the reviewer's job.
DRIVER_TRANSITIONS: dict[TrackingStatus, frozenset[TrackingStatus]] = {
    **FORWARD_TRANSITIONS,
    TrackingStatus.PENDING: frozenset(),
}


@dataclass(frozen=True)
class ProgressStep:
    status: TrackingStatus
    label: str
    complete: bool


def progress(status: TrackingStatus | str) -> list[ProgressStep]:
    """Buyer-facing progress: every step up to the current one is complete."""
    current = TrackingStatus(status)
    index = [s for s, _ in TRACKING_STEPS].index(current)
    return [
        ProgressStep(status=s, label=label, complete=i <= index)
        for i, (s, label) in enumerate(TRACKING_STEPS)
    ]


def allowed_transitions(actor: User) -> dict[TrackingStatus, frozenset[TrackingStatus]]:
    if has_capability(actor.role, Capability.DISPATCH_DELIVERIES):
        return FORWARD_TRANSITIONS if settings.TRACKING_STRICT_TRANSITIONS else DISPATCHER_TRANSITIONS
    if has_capability(actor.role, Capability.DELIVER_ORDERS):
        return DRIVER_TRANSITIONS
    return {s: frozenset() for s in TrackingStatus}


def _ensure_actor(tracking: DeliveryTracking, actor: User) -> None:
    if has_capability(actor.role, Capability.DISPATCH_DELIVERIES):
        return
    if has_capability(actor.role, Capability.DELIVER_ORDERS) and tracking.driver_id == actor.id:
        return
    raise Forbidden("Not allowed to update this delivery")


def get_tracking(db: Session, tracking_id: int) -> DeliveryTracking:
    tracking = db.query(DeliveryTracking).filter(DeliveryTracking.id == tracking_id).one_or_none()
    if tracking is None:
        raise NotFound("Tracking record not found")
    return tracking


def get_tracking_for_order(db: Session, order_id: int) -> DeliveryTracking:
    tracking = db.query(DeliveryTracking).filter(DeliveryTracking.order_id == order_id).one_or_none()
    if tracking is None:
        raise NotFound("Tracking record not found")
    return tracking


def assign_driver(db: Session, tracking: DeliveryTracking, driver: User) -> DeliveryTracking:
    """Assign (or reassign) a driver; the last assignment wins."""
    if tracking.status == TrackingStatus.DELIVERED:
        raise InvalidTransition("delivery", tracking.status.value, "reassigned")
    if driver.role != Role.DRIVER:
        raise ValidationFailure("Assigned user is not a driver")
    previous = tracking.driver_id
    tracking.driver_id = driver.id
    commit_or_fail(db, "driver assignment")
    db.refresh(tracking)
    logger.info("Tracking %s driver %s -> %s", tracking.id, previous, driver.id)
    return tracking


def advance_status(db: Session, tracking: DeliveryTracking, new_status: TrackingStatus | str, actor: User) -> DeliveryTracking:
    try:
        new_status = TrackingStatus(new_status)
    except ValueError:
        raise ValidationFailure(f"Unknown tracking status: {new_status}")
    _ensure_actor(tracking, actor)

    order = tracking.order
    current = TrackingStatus(tracking.status)
    if order is not None and order.status == OrderStatus.CANCELLED:
        raise InvalidTransition("delivery", current.value, new_status.value)
    if new_status not in allowed_transitions(actor)[current]:
        raise InvalidTransition("delivery", current.value, new_status.value)

    tracking.status = new_status
    if new_status == TrackingStatus.DELIVERED:
        tracking.delivered_at = datetime.utcnow()
    if order is not None:
        mirror_tracking_status(order, new_status)
    commit_or_fail(db, "tracking status update")
    db.refresh(tracking)
    logger.info("Tracking %s %s -> %s by user %s", tracking.id, current.value, new_status.value, actor.id)
    return tracking


def update_details(
    db: Session,
    tracking: DeliveryTracking,
    actor: User,
    carrier: Optional[str] = None,
    tracking_number: Optional[str] = None,
    current_location: Optional[str] = None,
    gps_latitude: Optional[float] = None,
    gps_longitude: Optional[float] = None,
    estimated_delivery: Optional[datetime] = None,
    notes: Optional[str] = None,
) -> DeliveryTracking:
    """Update carrier and position details. Drivers may only report location and notes."""
    _ensure_actor(tracking, actor)
    dispatcher = has_capability(actor.role, Capability.DISPATCH_DELIVERIES)
    if not dispatcher and any(v is not None for v in (carrier, tracking_number, estimated_delivery)):
        raise Forbidden("Drivers may only update location and notes")

    if carrier is not None:
        if not carrier.strip():
            raise ValidationFailure("Carrier cannot be empty")
        tracking.carrier = carrier.strip()
    if tracking_number is not None:
        tracking.tracking_number = tracking_number or None
    if estimated_delivery is not None:
        tracking.estimated_delivery = estimated_delivery
    if current_location is not None:
        tracking.current_location = current_location or None
    if gps_latitude is not None:
        tracking.gps_latitude = gps_latitude
    if gps_longitude is not None:
        tracking.gps_longitude = gps_longitude
    if notes is not None:
        tracking.notes = notes or None
    commit_or_fail(db, "tracking update")
    db.refresh(tracking)
    return tracking


def list_trackings(db: Session, status: Optional[TrackingStatus] = None) -> list[DeliveryTracking]:
    q = db.query(DeliveryTracking).options(selectinload(DeliveryTracking.order))
    if status is not None:
        q = q.filter(DeliveryTracking.status == status)
    return q.order_by(DeliveryTracking.created_at.desc(), DeliveryTracking.id.desc()).all()


def list_driver_deliveries(db: Session, driver: User) -> list[DeliveryTracking]:
    return (
        db.query(DeliveryTracking)
        .options(selectinload(DeliveryTracking.order).selectinload(Order.buyer))
        .filter(DeliveryTracking.driver_id == driver.id)
        .order_by(DeliveryTracking.created_at.desc(), DeliveryTracking.id.desc())
        .all()
    )


def get_driver_delivery(db: Session, driver: User, order_id: int) -> DeliveryTracking:
    tracking = get_tracking_for_order(db, order_id)
    if tracking.driver_id != driver.id:
        raise NotFound("Delivery not found")
    return tracking
