"""Order aggregate: creation at checkout, commercial validation, status mirroring."""
import enum
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from core.db import commit_or_fail
from core.errors import InvalidTransition, NotFound, RemoteCallFailure, ValidationFailure
from core.roles import Capability, has_capability
from models.cart import Cart
from models.delivery_tracking import DeliveryTracking, TrackingStatus
from models.order import Order, OrderStatus, PaymentStatus
from models.order_item import OrderItem
from models.product import Product
from models.user import User
from services import cart as cart_service
from services.pricing import compute_totals, get_zone, line_subtotal, to_money

logger = logging.getLogger(__name__)

ORDER_NUMBER_FORMAT = "CMD-{:06d}"

# Commercial transitions a reviewer may request; fulfillment states are only
# reached through the tracking mirror below.
ORDER_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
    OrderStatus.CONFIRMED: frozenset(),
    OrderStatus.PROCESSING: frozenset(),
    OrderStatus.SHIPPED: frozenset(),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

# Order status shown for each fulfillment step once an order is confirmed.
TRACKING_TO_ORDER_STATUS: dict[TrackingStatus, OrderStatus] = {
    TrackingStatus.PENDING: OrderStatus.CONFIRMED,
    TrackingStatus.CONFIRMED: OrderStatus.CONFIRMED,
    TrackingStatus.PREPARING: OrderStatus.PROCESSING,
    TrackingStatus.OUT_FOR_DELIVERY: OrderStatus.SHIPPED,
    TrackingStatus.DELIVERED: OrderStatus.DELIVERED,
}

FULFILLMENT_ORDER_STATUSES = frozenset({
    OrderStatus.CONFIRMED,
    OrderStatus.PROCESSING,
    OrderStatus.SHIPPED,
})


class PaymentMethod(str, enum.Enum):
    CARD = "card"
    CREDIT_30 = "credit_30"
    CREDIT_60 = "credit_60"


class Decision(str, enum.Enum):
    APPROVE = "approve"
    REJECT = "reject"


@dataclass(frozen=True)
class OrderLine:
    product_id: int
    quantity: int


@dataclass(frozen=True)
class DeliveryAddress:
    address: str
    city: str
    postal_code: str


def payment_status_for(method: PaymentMethod | str) -> PaymentStatus:
    try:
        method = PaymentMethod(method)
    except ValueError:
        raise ValidationFailure(f"Unknown payment method: {method}")
    if method == PaymentMethod.CARD:
        return PaymentStatus.PENDING
    return PaymentStatus(method.value)


def assert_order_transition(current: OrderStatus, requested: OrderStatus) -> None:
    if requested not in ORDER_TRANSITIONS[OrderStatus(current)]:
        raise InvalidTransition("order", OrderStatus(current).value, OrderStatus(requested).value)


def recompute_totals(order: Order) -> Order:
    """Re-derive subtotal, fee and total from the items and the zone schedule."""
    totals = compute_totals(((i.unit_price, i.quantity) for i in order.items), get_zone(order.delivery_zone))
    order.subtotal = totals.subtotal
    order.delivery_fee = totals.delivery_fee
    order.total_amount = totals.total
    return order


def create_order(
    db: Session,
    buyer: User,
    lines: Sequence[OrderLine],
    delivery_zone: str,
    address: DeliveryAddress,
    payment_method: PaymentMethod | str,
    time_slot: Optional[str] = None,
    commit: bool = True,
) -> Order:
    if not lines:
        raise ValidationFailure("Cannot place an order with an empty cart")
    for line in lines:
        if line.quantity < 1:
            raise ValidationFailure("Quantity must be at least 1")
    if not (address.address.strip() and address.city.strip() and address.postal_code.strip()):
        raise ValidationFailure("Delivery address is incomplete")

    zone = get_zone(delivery_zone)
    if time_slot and time_slot not in zone.time_slots:
        raise ValidationFailure(f"Time slot '{time_slot}' is not offered in zone '{zone.code.value}'")
    payment_status = payment_status_for(payment_method)

    # Fetch all products in a single query
    product_ids = {line.product_id for line in lines}
    products_map = {p.id: p for p in db.query(Product).filter(Product.id.in_(product_ids)).all()}
    if len(products_map) != len(product_ids):
        raise NotFound("One or more products not found")
    withdrawn = sorted(p.name for p in products_map.values() if not p.available)
    if withdrawn:
        raise ValidationFailure(f"No longer available: {', '.join(withdrawn)}")

    order = Order(
        buyer_user_id=buyer.id,
        organization_id=buyer.organization_id,
        status=OrderStatus.PENDING,
        payment_status=payment_status,
        delivery_zone=zone.code,
        delivery_address=address.address.strip(),
        delivery_city=address.city.strip(),
        delivery_postal_code=address.postal_code.strip(),
        delivery_time_slot=time_slot or None,
    )
    for line in lines:
        unit_price = to_money(products_map[line.product_id].price_per_unit)
        order.items.append(
            OrderItem(
                product_id=line.product_id,
                quantity=line.quantity,
                unit_price=unit_price,
                subtotal=line_subtotal(unit_price, line.quantity),
            )
        )
    recompute_totals(order)
    order.tracking = DeliveryTracking(status=TrackingStatus.PENDING, carrier=zone.carrier)
    db.add(order)

    try:
        db.flush()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Store rejected order creation for buyer %s", buyer.id)
        raise RemoteCallFailure("Could not create order") from exc
    order.order_number = ORDER_NUMBER_FORMAT.format(order.id)

    if commit:
        commit_or_fail(db, "order creation")
        db.refresh(order)
    logger.info("Order %s created for buyer %s, total %s", order.order_number, buyer.id, order.total_amount)
    return order


def checkout(
    db: Session,
    buyer: User,
    delivery_zone: str,
    address: DeliveryAddress,
    payment_method: PaymentMethod | str,
    time_slot: Optional[str] = None,
) -> Order:
    """Turn the buyer's cart into an order and empty the cart in one transaction."""
    cart = db.query(Cart).filter(Cart.user_id == buyer.id).one_or_none()
    items = cart_service.cart_lines(cart) if cart else []
    if not items:
        raise ValidationFailure("Cannot place an order with an empty cart")
    lines = [OrderLine(product_id=i.product_id, quantity=i.quantity) for i in items]
    order = create_order(db, buyer, lines, delivery_zone, address, payment_method, time_slot, commit=False)
    cart_service.clear_cart(db, buyer, commit=False)
    commit_or_fail(db, "checkout")
    db.refresh(order)
    return order


def validate_order(db: Session, order: Order, reviewer: User, decision: Decision | str, note: Optional[str] = None) -> Order:
    """Approve or reject a pending order."""
    try:
        decision = Decision(decision)
    except ValueError:
        raise ValidationFailure(f"Unknown decision: {decision}")
    note = (note or "").strip()

    if decision == Decision.APPROVE:
        assert_order_transition(order.status, OrderStatus.CONFIRMED)
        order.status = OrderStatus.CONFIRMED
        tracking = order.tracking
        if tracking is not None:
            if tracking.status == TrackingStatus.PENDING:
                tracking.status = TrackingStatus.CONFIRMED
            else:
                # Dispatch already moved ahead of the review; the order catches up
                mirror_tracking_status(order, tracking.status)
    else:
        assert_order_transition(order.status, OrderStatus.CANCELLED)
        if not note:
            raise ValidationFailure("A reason is required to reject an order")
        order.status = OrderStatus.CANCELLED

    order.validated_by = reviewer.id
    order.validated_at = datetime.utcnow()
    order.admin_notes = note or None
    commit_or_fail(db, f"order {decision.value}")
    db.refresh(order)
    logger.info("Order %s %s by user %s", order.order_number, order.status.value, reviewer.id)
    return order


def mirror_tracking_status(order: Order, tracking_status: TrackingStatus) -> Order:
    """Reflect fulfillment progress on the order once it has been approved."""
    if OrderStatus(order.status) in FULFILLMENT_ORDER_STATUSES:
        order.status = TRACKING_TO_ORDER_STATUS[TrackingStatus(tracking_status)]
    return order


def _order_query(db: Session):
    return db.query(Order).options(selectinload(Order.items), selectinload(Order.tracking))


def list_orders_for_buyer(db: Session, buyer: User, status: Optional[OrderStatus] = None) -> list[Order]:
    q = _order_query(db).filter(Order.buyer_user_id == buyer.id)
    if status is not None:
        q = q.filter(Order.status == status)
    return q.order_by(Order.created_at.desc(), Order.id.desc()).all()


def list_orders(db: Session, status: Optional[OrderStatus] = None) -> list[Order]:
    q = _order_query(db)
    if status is not None:
        q = q.filter(Order.status == status)
    return q.order_by(Order.created_at.desc(), Order.id.desc()).all()


def get_order(db: Session, order_id: int) -> Order:
    order = _order_query(db).filter(Order.id == order_id).one_or_none()
    if order is None:
        raise NotFound("Order not found")
    return order


def get_order_for(db: Session, user: User, order_id: int) -> Order:
    """Load an order visible to ``user``: staff see every order, buyers only their own."""
    order = get_order(db, order_id)
    if has_capability(user.role, Capability.VIEW_ALL_ORDERS):
        return order
    if order.buyer_user_id != user.id:
        # Hide the existence of other buyers' orders
        raise NotFound("Order not found")
    return order

