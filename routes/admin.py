from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from core.authz import require_capability
from core.db import get_db
from core.errors import DomainError, http_error
from core.roles import Capability, Role
from models.delivery_tracking import TrackingStatus
from models.order import OrderStatus
from models.user import User
from schemas.order import OrderOut, ValidationRequest
from schemas.tracking import DriverAssignment, StatusUpdate, TrackingOut, TrackingUpdate
from schemas.users import ActiveUpdate, RoleUpdate, UserAdminOut, UserCreate, UserOut
from services import orders as order_service
from services import tracking as tracking_service
from services import users as user_service

router = APIRouter(prefix="/admin", tags=["admin"])

reviewer = require_capability(Capability.VALIDATE_ORDERS)
dispatcher = require_capability(Capability.DISPATCH_DELIVERIES)
account_admin = require_capability(Capability.MANAGE_USERS)


@router.get("/orders", response_model=List[OrderOut])
def list_orders(
    status: Optional[OrderStatus] = OrderStatus.PENDING,
    all_statuses: bool = False,
    user: User = Depends(require_capability(Capability.VIEW_ALL_ORDERS)),
    db: Session = Depends(get_db),
):
    """Orders awaiting review by default; ``all_statuses`` lifts the filter."""
    return order_service.list_orders(db, None if all_statuses else status)


@router.post("/orders/{order_id}/validate", response_model=OrderOut)
def validate_order(
    order_id: int,
    data: ValidationRequest,
    user: User = Depends(reviewer),
    db: Session = Depends(get_db),
):
    try:
        order = order_service.get_order(db, order_id)
        return order_service.validate_order(db, order, user, data.decision, data.note)
    except DomainError as e:
        raise http_error(e)


@router.get("/drivers", response_model=List[UserOut])
def list_drivers(user: User = Depends(dispatcher), db: Session = Depends(get_db)):
    return (
        db.query(User)
        .filter(User.role == Role.DRIVER, User.is_active.is_(True))
        .order_by(User.last_name, User.first_name)
        .all()
    )


@router.get("/tracking", response_model=List[TrackingOut])
def list_tracking(
    status: Optional[TrackingStatus] = None,
    user: User = Depends(dispatcher),
    db: Session = Depends(get_db),
):
    return tracking_service.list_trackings(db, status)


@router.post("/tracking/{tracking_id}/driver", response_model=TrackingOut)
def assign_driver(
    tracking_id: int,
    data: DriverAssignment,
    user: User = Depends(dispatcher),
    db: Session = Depends(get_db),
):
    driver = db.query(User).filter(User.id == data.driver_id).one_or_none()
    if not driver:
        raise HTTPException(status_code=404, detail="Driver not found")
    try:
        tracking = tracking_service.get_tracking(db, tracking_id)
        return tracking_service.assign_driver(db, tracking, driver)
    except DomainError as e:
        raise http_error(e)


@router.post("/tracking/{tracking_id}/status", response_model=TrackingOut)
def update_tracking_status(
    tracking_id: int,
    data: StatusUpdate,
    user: User = Depends(dispatcher),
    db: Session = Depends(get_db),
):
    try:
        tracking = tracking_service.get_tracking(db, tracking_id)
        return tracking_service.advance_status(db, tracking, data.status, user)
    except DomainError as e:
        raise http_error(e)


@router.patch("/tracking/{tracking_id}", response_model=TrackingOut)
def update_tracking(
    tracking_id: int,
    data: TrackingUpdate,
    user: User = Depends(dispatcher),
    db: Session = Depends(get_db),
):
    try:
        tracking = tracking_service.get_tracking(db, tracking_id)
        return tracking_service.update_details(db, tracking, user, **data.model_dump(exclude_unset=True))
    except DomainError as e:
        raise http_error(e)


@router.get("/users", response_model=List[UserAdminOut])
def list_users(role: Optional[Role] = None, user: User = Depends(account_admin), db: Session = Depends(get_db)):
    return user_service.list_users(db, role)


@router.post("/users", response_model=UserAdminOut, status_code=201)
def create_user(data: UserCreate, user: User = Depends(account_admin), db: Session = Depends(get_db)):
    """Provision an account; there is no self-service signup."""
    try:
        return user_service.create_user(db, **data.model_dump())
    except DomainError as e:
        raise http_error(e)


@router.patch("/users/{user_id}/role", response_model=UserAdminOut)
def change_user_role(
    user_id: int,
    data: RoleUpdate,
    user: User = Depends(account_admin),
    db: Session = Depends(get_db),
):
    try:
        target = user_service.get_user(db, user_id)
        return user_service.change_role(db, target, data.role, user)
    except DomainError as e:
        raise http_error(e)


@router.patch("/users/{user_id}/status", response_model=UserAdminOut)
def change_user_status(
    user_id: int,
    data: ActiveUpdate,
    user: User = Depends(account_admin),
    db: Session = Depends(get_db),
):
    try:
        target = user_service.get_user(db, user_id)
        return user_service.set_active(db, target, data.is_active, user)
    except DomainError as e:
        raise http_error(e)
