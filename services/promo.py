"""Loyalty tier evaluation from a buyer's order history.

Tiers are never stored on the buyer: the current and next tier are derived
on demand from the orders and the promo rule table.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from sqlalchemy.orm import Session

from models.order import Order, OrderStatus
from models.promo_rule import PromoRule
from models.user import User

# Approved orders count from review onwards, including the fulfillment
# sub-states the order passes through while its delivery is tracked.
QUALIFYING_STATUSES = frozenset({
    OrderStatus.CONFIRMED,
    OrderStatus.PROCESSING,
    OrderStatus.SHIPPED,
    OrderStatus.DELIVERED,
})


@dataclass(frozen=True)
class PromoStatus:
    spend: Decimal
    current: Optional[PromoRule]
    next: Optional[PromoRule]
    remaining: Optional[Decimal]


def _money(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def qualifying_spend(orders: Iterable[Order]) -> Decimal:
    """Sum of order totals for approved, not cancelled, orders."""
    total = Decimal("0.00")
    for order in orders:
        if OrderStatus(order.status) in QUALIFYING_STATUSES:
            total += _money(order.total_amount)
    return total


def _active_sorted(tiers: Iterable[PromoRule]) -> list[PromoRule]:
    return sorted((t for t in tiers if t.active), key=lambda t: _money(t.threshold_total_spent))


def current_tier(spend: Decimal, tiers: Sequence[PromoRule]) -> Optional[PromoRule]:
    reached = [t for t in _active_sorted(tiers) if _money(t.threshold_total_spent) <= spend]
    return reached[-1] if reached else None


def next_tier(spend: Decimal, tiers: Sequence[PromoRule]) -> Optional[PromoRule]:
    for tier in _active_sorted(tiers):
        if _money(tier.threshold_total_spent) > spend:
            return tier
    return None


def evaluate(spend: Decimal, tiers: Sequence[PromoRule]) -> PromoStatus:
    spend = _money(spend)
    upcoming = next_tier(spend, tiers)
    remaining = _money(upcoming.threshold_total_spent) - spend if upcoming else None
    return PromoStatus(spend=spend, current=current_tier(spend, tiers), next=upcoming, remaining=remaining)


def buyer_promo_status(db: Session, buyer: User) -> PromoStatus:
    orders = (
        db.query(Order)
        .filter(Order.buyer_user_id == buyer.id, Order.status.in_(list(QUALIFYING_STATUSES)))
        .all()
    )
    rules = db.query(PromoRule).filter(PromoRule.active.is_(True)).order_by(PromoRule.threshold_total_spent).all()
    return evaluate(qualifying_spend(orders), rules)
