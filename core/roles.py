"""Closed set of user roles and the actions each one may perform."""
import enum


class Role(str, enum.Enum):
    BUYER = "buyer"
    DRIVER = "driver"
    COMMERCIAL = "commercial"
    ADMIN = "admin"


class Capability(str, enum.Enum):
    BROWSE_CATALOG = "browse_catalog"
    MANAGE_CART = "manage_cart"
    PLACE_ORDER = "place_order"
    VIEW_OWN_ORDERS = "view_own_orders"
    VIEW_PROMOTIONS = "view_promotions"
    VIEW_ALL_ORDERS = "view_all_orders"
    VALIDATE_ORDERS = "validate_orders"
    DISPATCH_DELIVERIES = "dispatch_deliveries"
    DELIVER_ORDERS = "deliver_orders"
    MANAGE_PRODUCTS = "manage_products"
    MANAGE_PROMOTIONS = "manage_promotions"
    FILE_VISIT_REPORTS = "file_visit_reports"
    READ_ALL_VISIT_REPORTS = "read_all_visit_reports"
    MANAGE_USERS = "manage_users"


_STAFF = frozenset({
    Capability.BROWSE_CATALOG,
    Capability.VIEW_ALL_ORDERS,
    Capability.VALIDATE_ORDERS,
    Capability.DISPATCH_DELIVERIES,
    Capability.MANAGE_PRODUCTS,
    Capability.FILE_VISIT_REPORTS,
})

CAPABILITIES: dict[Role, frozenset[Capability]] = {
    Role.BUYER: frozenset({
        Capability.BROWSE_CATALOG,
        Capability.MANAGE_CART,
        Capability.PLACE_ORDER,
        Capability.VIEW_OWN_ORDERS,
        Capability.VIEW_PROMOTIONS,
    }),
    Role.DRIVER: frozenset({
        Capability.BROWSE_CATALOG,
        Capability.DELIVER_ORDERS,
    }),
    Role.COMMERCIAL: _STAFF,
    Role.ADMIN: _STAFF | {
        Capability.MANAGE_PROMOTIONS,
        Capability.READ_ALL_VISIT_REPORTS,
        Capability.MANAGE_USERS,
    },
}


def has_capability(role: Role | str, capability: Capability) -> bool:
    try:
        role = Role(role)
    except ValueError:
        return False
    return capability in CAPABILITIES[role]
