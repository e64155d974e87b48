from decimal import Decimal
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from core.authz import require_capability
from core.db import get_db, commit_or_fail
from core.errors import DomainError, http_error
from core.roles import Capability
from models.promo_rule import PromoRule
from models.user import User
from schemas.promo import PromoRuleCreate, PromoRuleOut, PromoRuleUpdate, PromoStatusOut
from services.promo import buyer_promo_status

router = APIRouter(prefix="/promotions", tags=["promotions"])

promo_admin = require_capability(Capability.MANAGE_PROMOTIONS)


def _ensure_threshold_free(db: Session, threshold, exclude_id: Optional[int] = None) -> None:
    """Active tiers must keep distinct thresholds so they stay totally ordered."""
    qs = db.query(PromoRule).filter(
        PromoRule.threshold_total_spent == Decimal(str(threshold)),
        PromoRule.active.is_(True),
    )
    if exclude_id is not None:
        qs = qs.filter(PromoRule.id != exclude_id)
    if qs.first():
        raise HTTPException(status_code=400, detail="An active tier already uses this threshold")


@router.get("/me", response_model=PromoStatusOut)
def my_promotions(user: User = Depends(require_capability(Capability.VIEW_PROMOTIONS)), db: Session = Depends(get_db)):
    """Lifetime qualifying spend with the current and next reward tier."""
    status = buyer_promo_status(db, user)
    return {
        "total_spent": status.spend,
        "current_tier": status.current,
        "next_tier": status.next,
        "remaining_to_next": status.remaining,
    }


@router.get("/rules", response_model=List[PromoRuleOut])
def list_rules(user: User = Depends(promo_admin), db: Session = Depends(get_db)):
    return db.query(PromoRule).order_by(PromoRule.threshold_total_spent).all()


@router.post("/rules", response_model=PromoRuleOut, status_code=201)
def create_rule(data: PromoRuleCreate, user: User = Depends(promo_admin), db: Session = Depends(get_db)):
    if data.active:
        _ensure_threshold_free(db, data.threshold_total_spent)
    rule = PromoRule(**data.model_dump())
    db.add(rule)
    try:
        commit_or_fail(db, "promo rule creation")
    except DomainError as e:
        raise http_error(e)
    db.refresh(rule)
    return rule


@router.patch("/rules/{rule_id}", response_model=PromoRuleOut)
def update_rule(rule_id: int, data: PromoRuleUpdate, user: User = Depends(promo_admin), db: Session = Depends(get_db)):
    rule = db.query(PromoRule).filter(PromoRule.id == rule_id).one_or_none()
    if not rule:
        raise HTTPException(status_code=404, detail="Promo rule not found")
    changes = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}
    active = changes.get("active", rule.active)
    threshold = changes.get("threshold_total_spent", rule.threshold_total_spent)
    if active:
        _ensure_threshold_free(db, threshold, exclude_id=rule.id)
    for field, value in changes.items():
        setattr(rule, field, value)
    try:
        commit_or_fail(db, "promo rule update")
    except DomainError as e:
        raise http_error(e)
    db.refresh(rule)
    return rule
