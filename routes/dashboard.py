from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.authz import get_current_user
from core.db import get_db
from models.user import User
from schemas.dashboard import DashboardOut
from services.dashboard import dashboard_for

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/", response_model=DashboardOut)
def get_dashboard(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Home screen summary for the caller's role."""
    return DashboardOut.model_validate(dashboard_for(db, user), from_attributes=True)
