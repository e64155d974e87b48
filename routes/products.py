from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List

from core.authz import require_capability
from core.db import get_db, commit_or_fail
from core.errors import DomainError, http_error
from core.roles import Capability, has_capability
from models.product import Product
from models.user import User
from schemas.product import ProductCreate, ProductUpdate, ProductOut

router = APIRouter(prefix="/products", tags=["products"])


@router.get("/", response_model=List[ProductOut])
def list_products(
    featured: bool = False,
    user: User = Depends(require_capability(Capability.BROWSE_CATALOG)),
    db: Session = Depends(get_db),
):
    qs = db.query(Product)
    if not has_capability(user.role, Capability.MANAGE_PRODUCTS):
        qs = qs.filter(Product.available.is_(True))
    if featured:
        qs = qs.filter(Product.featured.is_(True))
    return qs.order_by(Product.name).all()


@router.get("/{product_id}", response_model=ProductOut)
def get_product(
    product_id: int,
    user: User = Depends(require_capability(Capability.BROWSE_CATALOG)),
    db: Session = Depends(get_db),
):
    product = db.query(Product).filter(Product.id == product_id).one_or_none()
    if not product or (not product.available and not has_capability(user.role, Capability.MANAGE_PRODUCTS)):
        raise HTTPException(status_code=404, detail="Product not found")
    return product


@router.post("/", response_model=ProductOut, status_code=201)
def create_product(
    data: ProductCreate,
    user: User = Depends(require_capability(Capability.MANAGE_PRODUCTS)),
    db: Session = Depends(get_db),
):
    if data.sku:
        existing = db.query(Product).filter(Product.sku == data.sku).one_or_none()
        if existing:
            raise HTTPException(status_code=400, detail="SKU already exists")

    product = Product(**data.model_dump(), available=True)
    db.add(product)
    try:
        commit_or_fail(db, "product creation")
    except DomainError as e:
        raise http_error(e)
    db.refresh(product)
    return product


@router.patch("/{product_id}", response_model=ProductOut)
def update_product(
    product_id: int,
    data: ProductUpdate,
    user: User = Depends(require_capability(Capability.MANAGE_PRODUCTS)),
    db: Session = Depends(get_db),
):
    product = db.query(Product).filter(Product.id == product_id).one_or_none()
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")

    # Catalogue changes never touch prices already snapshotted on order items
    for field, value in data.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(product, field, value)

    try:
        commit_or_fail(db, "product update")
    except DomainError as e:
        raise http_error(e)
    db.refresh(product)
    return product


@router.delete("/{product_id}", status_code=204)
def delete_product(
    product_id: int,
    user: User = Depends(require_capability(Capability.MANAGE_PRODUCTS)),
    db: Session = Depends(get_db),
):
    """Withdraw a product from the catalogue. Order history keeps referencing it."""
    product = db.query(Product).filter(Product.id == product_id).one_or_none()
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    product.available = False
    try:
        commit_or_fail(db, "product withdrawal")
    except DomainError as e:
        raise http_error(e)
    return None
