"""Account administration: staff provision accounts and assign roles."""
import logging
from typing import Optional

from sqlalchemy.orm import Session

from core.db import commit_or_fail
from core.errors import NotFound, ValidationFailure
from core.roles import Role
from models.organization import Organization
from models.user import User
from security.password import hash_password

logger = logging.getLogger(__name__)


def list_users(db: Session, role: Optional[Role] = None) -> list[User]:
    q = db.query(User)
    if role is not None:
        q = q.filter(User.role == role)
    return q.order_by(User.created_at.desc(), User.id.desc()).all()


def get_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).one_or_none()
    if user is None:
        raise NotFound("User not found")
    return user


def create_user(
    db: Session,
    email: str,
    password: str,
    first_name: str,
    last_name: str,
    role: Role = Role.BUYER,
    organization_id: Optional[int] = None,
    phone: Optional[str] = None,
) -> User:
    email = email.strip().lower()
    if db.query(User).filter(User.email == email).first():
        raise ValidationFailure("Email already registered")
    if organization_id is not None and db.get(Organization, organization_id) is None:
        raise NotFound("Organization not found")
    user = User(
        email=email,
        password_hash=hash_password(password),
        first_name=first_name.strip(),
        last_name=last_name.strip(),
        role=Role(role),
        organization_id=organization_id,
        phone=phone or None,
        is_active=True,
    )
    db.add(user)
    commit_or_fail(db, "account creation")
    db.refresh(user)
    logger.info("User %s created with role %s", user.id, user.role.value)
    return user


def change_role(db: Session, user: User, role: Role | str, actor: User) -> User:
    try:
        role = Role(role)
    except ValueError:
        raise ValidationFailure(f"Unknown role: {role}")
    # An admin demoting themselves could leave nobody able to undo it
    if user.id == actor.id and role != user.role:
        raise ValidationFailure("You cannot change your own role")
    previous = user.role
    user.role = role
    commit_or_fail(db, "role change")
    db.refresh(user)
    logger.info("User %s role %s -> %s by user %s", user.id, Role(previous).value, role.value, actor.id)
    return user


def set_active(db: Session, user: User, active: bool, actor: User) -> User:
    if user.id == actor.id and not active:
        raise ValidationFailure("You cannot disable your own account")
    user.is_active = active
    commit_or_fail(db, "account status change")
    db.refresh(user)
    logger.info("User %s %s by user %s", user.id, "enabled" if active else "disabled", actor.id)
    return user
