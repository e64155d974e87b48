from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.authz import require_capability
from core.db import get_db
from core.errors import DomainError, http_error
from core.roles import Capability
from models.cart import Cart
from models.user import User
from schemas.cart import CartItemAdd, CartItemUpdate, CartOut
from services import cart as cart_service

router = APIRouter(prefix="/cart", tags=["cart"])

buyer_only = require_capability(Capability.MANAGE_CART)


def _cart_out(cart: Cart) -> dict:
    return {"id": cart.id, "items": cart_service.cart_lines(cart), "total": cart_service.cart_total(cart)}


@router.get("/", response_model=CartOut)
def get_cart(user: User = Depends(buyer_only), db: Session = Depends(get_db)):
    try:
        return _cart_out(cart_service.load_cart(db, user))
    except DomainError as e:
        raise http_error(e)


@router.post("/items", response_model=CartOut, status_code=201)
def add_to_cart(data: CartItemAdd, user: User = Depends(buyer_only), db: Session = Depends(get_db)):
    try:
        cart = cart_service.add_item(db, user, data.product_id, data.quantity)
    except DomainError as e:
        raise http_error(e)
    return _cart_out(cart)


@router.patch("/items/{item_id}", response_model=CartOut)
def update_cart_item(item_id: int, data: CartItemUpdate, user: User = Depends(buyer_only), db: Session = Depends(get_db)):
    """Set a line's quantity; anything below 1 removes the line."""
    try:
        cart = cart_service.update_quantity(db, user, item_id, data.quantity)
    except DomainError as e:
        raise http_error(e)
    return _cart_out(cart)


@router.delete("/items/{item_id}", response_model=CartOut)
def remove_cart_item(item_id: int, user: User = Depends(buyer_only), db: Session = Depends(get_db)):
    try:
        cart = cart_service.remove_item(db, user, item_id)
    except DomainError as e:
        raise http_error(e)
    return _cart_out(cart)


@router.delete("/", status_code=204)
def clear_cart(user: User = Depends(buyer_only), db: Session = Depends(get_db)):
    try:
        cart_service.clear_cart(db, user)
    except DomainError as e:
        raise http_error(e)
    return None
