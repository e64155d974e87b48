from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from main import app
from core.db import Base, get_db
from core import config as core_config
from core.roles import Role
from models.organization import Organization
from models.product import Product
from models.promo_rule import PromoRule
from models.user import User
from security.password import hash_password
from security import jwt as jwt_utils

PASSWORD = "testpass123"


@pytest.fixture(scope="session", autouse=True)
def test_settings():
    core_config.settings.JWT_SECRET = "test-secret"
    core_config.settings.REFRESH_SECRET = "test-refresh"
    core_config.settings.TESTING = True
    yield


@pytest.fixture(autouse=True)
def delivery_schedule():
    # Reset the fee schedule so tests that tweak it don't leak
    s = core_config.settings
    s.LOCAL_DELIVERY_FEE = Decimal("8")
    s.LOCAL_FREE_SHIPPING_THRESHOLD = Decimal("200")
    s.NATIONAL_DELIVERY_FEE = Decimal("15")
    s.NATIONAL_FREE_SHIPPING_THRESHOLD = Decimal("0")
    s.TRACKING_STRICT_TRANSITIONS = False
    yield s


@pytest.fixture()
def db_session_override():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()

    def _get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = _get_db
    try:
        yield db
    finally:
        db.close()
        app.dependency_overrides.clear()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db(db_session_override):
    return db_session_override


@pytest.fixture()
def client(db_session_override):
    with TestClient(app) as c:
        yield c


def _make_user(db, email: str, role: Role, organization_id=None, first_name="Test") -> User:
    user = User(
        first_name=first_name,
        last_name="User",
        email=email,
        password_hash=hash_password(PASSWORD),
        role=role,
        organization_id=organization_id,
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def organization(db):
    org = Organization(name="Épicerie du Marché")
    db.add(org)
    db.commit()
    db.refresh(org)
    return org


@pytest.fixture
def buyer(db, organization):
    return _make_user(db, "buyer@example.com", Role.BUYER, organization.id, first_name="Bea")


@pytest.fixture
def other_buyer(db, organization):
    return _make_user(db, "other.buyer@example.com", Role.BUYER, organization.id, first_name="Otto")


@pytest.fixture
def admin(db):
    return _make_user(db, "admin@example.com", Role.ADMIN, first_name="Ada")


@pytest.fixture
def commercial(db):
    return _make_user(db, "sales@example.com", Role.COMMERCIAL, first_name="Sam")


@pytest.fixture
def driver(db):
    return _make_user(db, "driver@example.com", Role.DRIVER, first_name="Dino")


@pytest.fixture
def other_driver(db):
    return _make_user(db, "driver2@example.com", Role.DRIVER, first_name="Dora")


def headers_for(user: User) -> dict:
    token = jwt_utils.create_access_token(str(user.id), {"role": user.role.value})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def buyer_headers(buyer):
    return headers_for(buyer)


@pytest.fixture
def admin_headers(admin):
    return headers_for(admin)


@pytest.fixture
def commercial_headers(commercial):
    return headers_for(commercial)


@pytest.fixture
def driver_headers(driver):
    return headers_for(driver)


@pytest.fixture
def products(db):
    items = [
        Product(name="Tomates grappe", sku="TOM-01", price_per_unit=Decimal("2.50"), unit="kg", moq=10, stock_quantity=500),
        Product(name="Huile d'olive 5L", sku="OIL-05", price_per_unit=Decimal("40.00"), unit="bidon", moq=1, stock_quantity=80),
        Product(name="Safran", sku="SAF-01", price_per_unit=Decimal("110.00"), unit="g", moq=1, stock_quantity=5, available=False),
    ]
    db.add_all(items)
    db.commit()
    for p in items:
        db.refresh(p)
    return items


@pytest.fixture
def promo_rules(db):
    rules = [
        PromoRule(name="Bronze", threshold_total_spent=Decimal("100"), delivery_discount_amount=Decimal("8"), percent_discount=Decimal("0")),
        PromoRule(name="Argent", threshold_total_spent=Decimal("500"), delivery_discount_amount=Decimal("15"), percent_discount=Decimal("2")),
        PromoRule(name="Retired", threshold_total_spent=Decimal("300"), active=False),
    ]
    db.add_all(rules)
    db.commit()
    return rules


@pytest.fixture
def auth_headers_for():
    return headers_for
