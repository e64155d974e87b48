from typing import List, Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.authz import get_current_user, require_capability
from core.db import get_db
from core.errors import DomainError, http_error
from core.roles import Capability
from models.order import OrderStatus
from models.user import User
from schemas.order import CheckoutRequest, OrderOut, QuoteOut
from schemas.tracking import TrackingProgressOut
from services import cart as cart_service
from services import orders as order_service
from services import tracking as tracking_service
from services.pricing import delivery_fee, delivery_zones, to_money

router = APIRouter(prefix="/orders", tags=["orders"])


@router.get("/quote", response_model=List[QuoteOut])
def quote(user: User = Depends(require_capability(Capability.PLACE_ORDER)), db: Session = Depends(get_db)):
    """Delivery fee and total of the current cart for every zone."""
    try:
        subtotal = cart_service.cart_total(cart_service.load_cart(db, user))
    except DomainError as e:
        raise http_error(e)
    quotes = []
    for zone in delivery_zones().values():
        fee = delivery_fee(zone, subtotal)
        quotes.append({
            "delivery_zone": zone.code,
            "zone_name": zone.name,
            "subtotal": subtotal,
            "delivery_fee": fee,
            "total": to_money(subtotal + fee),
            "free_shipping_threshold": zone.free_shipping_threshold,
            "time_slots": list(zone.time_slots),
        })
    return quotes


@router.post("/checkout", response_model=OrderOut, status_code=201)
def checkout(
    data: CheckoutRequest,
    user: User = Depends(require_capability(Capability.PLACE_ORDER)),
    db: Session = Depends(get_db),
):
    address = order_service.DeliveryAddress(
        address=data.delivery_address,
        city=data.delivery_city,
        postal_code=data.delivery_postal_code,
    )
    try:
        return order_service.checkout(
            db,
            user,
            data.delivery_zone,
            address,
            data.payment_method,
            data.delivery_time_slot,
        )
    except DomainError as e:
        raise http_error(e)


@router.get("/", response_model=List[OrderOut])
def list_my_orders(
    status: Optional[OrderStatus] = None,
    user: User = Depends(require_capability(Capability.VIEW_OWN_ORDERS)),
    db: Session = Depends(get_db),
):
    return order_service.list_orders_for_buyer(db, user, status)


@router.get("/{order_id}", response_model=OrderOut)
def get_order(order_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    try:
        return order_service.get_order_for(db, user, order_id)
    except DomainError as e:
        raise http_error(e)


@router.get("/{order_id}/tracking", response_model=TrackingProgressOut)
def get_order_tracking(order_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    try:
        order = order_service.get_order_for(db, user, order_id)
        tracking = tracking_service.get_tracking_for_order(db, order.id)
    except DomainError as e:
        raise http_error(e)
    return {"tracking": tracking, "steps": tracking_service.progress(tracking.status)}
