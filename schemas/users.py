from datetime import datetime
from pydantic import BaseModel, EmailStr, Field
from typing import Optional

from core.roles import Role


class UserOut(BaseModel):
    id: int
    first_name: str
    last_name: str
    email: EmailStr
    role: Role
    organization_id: Optional[int] = None
    phone: Optional[str] = None

    class Config:
        from_attributes = True


class UserBrief(BaseModel):
    id: int
    first_name: str
    last_name: str
    phone: Optional[str] = None

    class Config:
        from_attributes = True


class UserAdminOut(UserOut):
    is_active: bool
    created_at: datetime


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    role: Role = Role.BUYER
    organization_id: Optional[int] = None
    phone: Optional[str] = None


class RoleUpdate(BaseModel):
    role: Role


class ActiveUpdate(BaseModel):
    is_active: bool
