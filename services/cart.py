"""Per-buyer cart store.

All cart state lives in the ``carts``/``cart_items`` tables; callers load,
mutate and clear it explicitly through these functions.
"""
import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from core.db import commit_or_fail
from core.errors import NotFound, ValidationFailure
from models.cart import Cart, CartItem
from models.product import Product
from models.user import User
from services.pricing import line_subtotal, to_money

logger = logging.getLogger(__name__)


def load_cart(db: Session, user: User) -> Cart:
    """Return the user's cart, creating an empty one on first use."""
    cart = db.query(Cart).filter(Cart.user_id == user.id).one_or_none()
    if cart is None:
        cart = Cart(user_id=user.id)
        db.add(cart)
        commit_or_fail(db, "cart creation")
        db.refresh(cart)
    return cart


def _get_item(db: Session, cart: Cart, item_id: int) -> CartItem:
    item = db.query(CartItem).filter(CartItem.cart_id == cart.id, CartItem.id == item_id).one_or_none()
    if item is None:
        raise NotFound("Cart item not found")
    return item


def add_item(db: Session, user: User, product_id: int, quantity: Optional[int] = None) -> Cart:
    """Add a product, defaulting to its minimum order quantity.

    Adding a product already in the cart increases that line's quantity.
    """
    cart = load_cart(db, user)
    product = db.query(Product).filter(Product.id == product_id).one_or_none()
    if product is None:
        raise NotFound("Product not found")
    if not product.available:
        raise ValidationFailure("Product is not available")
    if quantity is None:
        quantity = product.moq or 1
    if quantity < 1:
        raise ValidationFailure("Quantity must be at least 1")

    existing = next((i for i in cart.items if i.product_id == product_id), None)
    if existing:
        existing.quantity += quantity
    else:
        cart.items.append(CartItem(product_id=product_id, quantity=quantity))
    commit_or_fail(db, "add to cart")
    db.refresh(cart)
    logger.debug("Cart %s: +%s of product %s", cart.id, quantity, product_id)
    return cart


def update_quantity(db: Session, user: User, item_id: int, quantity: int) -> Cart:
    cart = load_cart(db, user)
    item = _get_item(db, cart, item_id)
    if quantity < 1:
        return remove_item(db, user, item_id)
    item.quantity = quantity
    commit_or_fail(db, "cart update")
    db.refresh(cart)
    return cart


def remove_item(db: Session, user: User, item_id: int) -> Cart:
    cart = load_cart(db, user)
    item = _get_item(db, cart, item_id)
    cart.items.remove(item)
    commit_or_fail(db, "cart item removal")
    db.refresh(cart)
    return cart


def clear_cart(db: Session, user: User, commit: bool = True) -> None:
    cart = db.query(Cart).filter(Cart.user_id == user.id).one_or_none()
    if cart is None:
        return
    cart.items.clear()
    if commit:
        commit_or_fail(db, "cart clearing")


def cart_lines(cart: Cart) -> list[CartItem]:
    return list(cart.items)


def cart_total(cart: Cart) -> Decimal:
    total = sum((line_subtotal(i.product.price_per_unit, i.quantity) for i in cart.items), Decimal("0.00"))
    return to_money(total)
