import os
import time
import uuid
from datetime import date, timedelta

# Settings are read at import time, so the environment is prepared before the app loads
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SUPABASE_JWT_SECRET"] = "test-jwt-secret"
os.environ["ADMIN_EMAILS"] = "owner@racetechnik.co.za"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["DB_LOG_SLOW_QUERIES"] = "false"
os.environ["YOCO_TEST_MODE"] = "false"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from jose import jwt  # noqa: E402

from app.database import Base, SessionLocal, engine  # noqa: E402
from app.main import app  # noqa: E402
from app.models import Profile, Service, StaffProfile, UserRole, Vehicle  # noqa: E402

JWT_SECRET = "test-jwt-secret"


def make_token(user_id: str, email: str = None, expires_in: int = 3600) -> str:
    claims = {"sub": user_id, "aud": "authenticated", "exp": int(time.time()) + expires_in}
    if email:
        claims["email"] = email
    return jwt.encode(claims, JWT_SECRET, algorithm="HS256")


def auth_headers(profile: Profile) -> dict:
    return {"Authorization": f"Bearer {make_token(profile.id, profile.email)}"}


def create_profile(db, email: str, full_name: str = None, phone: str = None, role: str = None):
    profile = Profile(id=str(uuid.uuid4()), email=email, full_name=full_name, phone=phone)
    db.add(profile)
    if role:
        db.add(UserRole(user_id=profile.id, role=role))
        if role in ("staff", "admin"):
            db.add(StaffProfile(user_id=profile.id, staff_role="technician"))
    db.commit()
    db.refresh(profile)
    return profile


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    return TestClient(app)


@pytest.fixture
def customer(db):
    return create_profile(db, "jane@example.com", "Jane Customer", "+27821234567")


@pytest.fixture
def staff_user(db):
    return create_profile(db, "tech@racetechnik.co.za", "Sam Technician", role="staff")


@pytest.fixture
def admin_user(db):
    return create_profile(db, "manager@racetechnik.co.za", "Alex Manager", role="admin")


@pytest.fixture
def customer_headers(customer):
    return auth_headers(customer)


@pytest.fixture
def staff_headers(staff_user):
    return auth_headers(staff_user)


@pytest.fixture
def admin_headers(admin_user):
    return auth_headers(admin_user)


@pytest.fixture
def vehicle(db, customer):
    vehicle = Vehicle(user_id=customer.id, make="Porsche", model="911 GT3", year=2023, color="Guards Red")
    db.add(vehicle)
    db.commit()
    db.refresh(vehicle)
    return vehicle


@pytest.fixture
def ppf_service(db):
    service = Service(title="Full Front PPF", category="PPF", duration="2-3 days", price_from=18500.0)
    db.add(service)
    db.commit()
    db.refresh(service)
    return service


@pytest.fixture
def tint_service(db):
    service = Service(title="Window Tint", category="Tint", duration="1 day", price_from=3200.0)
    db.add(service)
    db.commit()
    db.refresh(service)
    return service


@pytest.fixture
def next_week():
    return date.today() + timedelta(days=7)
