from datetime import datetime
from pydantic import BaseModel, Field
from typing import Optional

from schemas.users import UserBrief


class VisitReportCreate(BaseModel):
    client_name: str = Field(min_length=1, max_length=200)
    client_address: str = Field(min_length=1, max_length=255)
    client_city: str = Field(min_length=1, max_length=100)
    notes: str = ""
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    visit_date: Optional[datetime] = None


class VisitReportOut(BaseModel):
    id: int
    client_name: str
    client_address: str
    client_city: str
    notes: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    visit_date: datetime
    created_at: datetime
    commercial: UserBrief

    class Config:
        from_attributes = True
