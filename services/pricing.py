from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Tuple

from core.config import settings
from core.errors import ValidationFailure
from models.order import DeliveryZoneCode

CENTS = Decimal("0.01")

INTERNAL_CARRIER = "internal"
PARCEL_CARRIER = "colissimo"


@dataclass(frozen=True)
class DeliveryZone:
    code: DeliveryZoneCode
    name: str
    fee: Decimal
    free_shipping_threshold: Decimal
    carrier: str
    time_slots: Tuple[str, ...]


@dataclass(frozen=True)
class Totals:
    subtotal: Decimal
    delivery_fee: Decimal
    total: Decimal


def to_money(value) -> Decimal:
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def delivery_zones() -> dict[DeliveryZoneCode, DeliveryZone]:
    # Built per call so fee settings changed at runtime (tests, admin reload) apply.
    return {
        DeliveryZoneCode.LOCAL: DeliveryZone(
            code=DeliveryZoneCode.LOCAL,
            name="Lyon Métropole + Corbas (69960)",
            fee=to_money(settings.LOCAL_DELIVERY_FEE),
            free_shipping_threshold=to_money(settings.LOCAL_FREE_SHIPPING_THRESHOLD),
            carrier=INTERNAL_CARRIER,
            time_slots=("morning", "afternoon"),
        ),
        DeliveryZoneCode.NATIONAL: DeliveryZone(
            code=DeliveryZoneCode.NATIONAL,
            name="France entière (hors Lyon)",
            fee=to_money(settings.NATIONAL_DELIVERY_FEE),
            free_shipping_threshold=to_money(settings.NATIONAL_FREE_SHIPPING_THRESHOLD),
            carrier=PARCEL_CARRIER,
            time_slots=(),
        ),
    }


def get_zone(code: DeliveryZoneCode | str) -> DeliveryZone:
    try:
        return delivery_zones()[DeliveryZoneCode(code)]
    except ValueError:
        raise ValidationFailure(f"Unknown delivery zone: {code}")


def delivery_fee(zone: DeliveryZone, subtotal: Decimal) -> Decimal:
    """Flat zone fee, waived once the subtotal reaches a non-zero threshold."""
    threshold = zone.free_shipping_threshold
    if threshold > 0 and to_money(subtotal) >= threshold:
        return to_money(0)
    return zone.fee


def line_subtotal(unit_price, quantity: int) -> Decimal:
    return to_money(to_money(unit_price) * quantity)


def compute_totals(lines: Iterable[Tuple[Decimal, int]], zone: DeliveryZone) -> Totals:
    """Totals for ``(unit_price, quantity)`` lines delivered to ``zone``."""
    subtotal = sum((line_subtotal(price, qty) for price, qty in lines), Decimal("0.00"))
    subtotal = to_money(subtotal)
    fee = delivery_fee(zone, subtotal)
    return Totals(subtotal=subtotal, delivery_fee=fee, total=to_money(subtotal + fee))
