from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.authz import require_capability
from core.db import get_db
from core.errors import DomainError, http_error
from core.roles import Capability
from models.user import User
from schemas.tracking import DeliveryOut, StatusUpdate, TrackingUpdate
from services import tracking as tracking_service

router = APIRouter(prefix="/driver", tags=["driver"])

driver_only = require_capability(Capability.DELIVER_ORDERS)


@router.get("/deliveries", response_model=List[DeliveryOut])
def list_deliveries(user: User = Depends(driver_only), db: Session = Depends(get_db)):
    return tracking_service.list_driver_deliveries(db, user)


@router.get("/deliveries/{order_id}", response_model=DeliveryOut)
def get_delivery(order_id: int, user: User = Depends(driver_only), db: Session = Depends(get_db)):
    try:
        return tracking_service.get_driver_delivery(db, user, order_id)
    except DomainError as e:
        raise http_error(e)


@router.post("/deliveries/{order_id}/status", response_model=DeliveryOut)
def update_delivery_status(
    order_id: int,
    data: StatusUpdate,
    user: User = Depends(driver_only),
    db: Session = Depends(get_db),
):
    try:
        tracking = tracking_service.get_driver_delivery(db, user, order_id)
        return tracking_service.advance_status(db, tracking, data.status, user)
    except DomainError as e:
        raise http_error(e)


@router.patch("/deliveries/{order_id}", response_model=DeliveryOut)
def report_position(
    order_id: int,
    data: TrackingUpdate,
    user: User = Depends(driver_only),
    db: Session = Depends(get_db),
):
    """Report current location, GPS fix or delivery notes."""
    try:
        tracking = tracking_service.get_driver_delivery(db, user, order_id)
        return tracking_service.update_details(db, tracking, user, **data.model_dump(exclude_unset=True))
    except DomainError as e:
        raise http_error(e)
