# Import models so that SQLAlchemy metadata includes them on app startup
from .organization import Organization  # noqa: F401
from .user import User  # noqa: F401
from .product import Product  # noqa: F401
from .cart import Cart, CartItem  # noqa: F401
from .order import Order  # noqa: F401
from .order_item import OrderItem  # noqa: F401
from .delivery_tracking import DeliveryTracking  # noqa: F401
from .promo_rule import PromoRule  # noqa: F401
from .visit_report import VisitReport  # noqa: F401
