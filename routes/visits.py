from datetime import datetime
from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session, selectinload

from core.authz import require_capability
from core.db import get_db, commit_or_fail
from core.errors import DomainError, http_error
from core.roles import Capability, has_capability
from models.user import User
from models.visit_report import VisitReport
from schemas.visit import VisitReportCreate, VisitReportOut

router = APIRouter(prefix="/visits", tags=["visits"])

field_staff = require_capability(Capability.FILE_VISIT_REPORTS)


@router.get("/", response_model=List[VisitReportOut])
def list_visits(user: User = Depends(field_staff), db: Session = Depends(get_db)):
    """Admins see every report, commercial staff only their own."""
    qs = db.query(VisitReport).options(selectinload(VisitReport.commercial))
    if not has_capability(user.role, Capability.READ_ALL_VISIT_REPORTS):
        qs = qs.filter(VisitReport.commercial_id == user.id)
    return qs.order_by(VisitReport.visit_date.desc(), VisitReport.id.desc()).all()


@router.post("/", response_model=VisitReportOut, status_code=201)
def create_visit(data: VisitReportCreate, user: User = Depends(field_staff), db: Session = Depends(get_db)):
    report = VisitReport(
        commercial_id=user.id,
        client_name=data.client_name.strip(),
        client_address=data.client_address.strip(),
        client_city=data.client_city.strip(),
        notes=data.notes,
        latitude=data.latitude,
        longitude=data.longitude,
        visit_date=data.visit_date or datetime.utcnow(),
    )
    db.add(report)
    try:
        commit_or_fail(db, "visit report")
    except DomainError as e:
        raise http_error(e)
    db.refresh(report)
    return report
