import os

# Configure the app for tests before anything imports app.config
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.pop("REDIS_URL", None)
os.environ.pop("SMTP_USER", None)
os.environ.pop("SMTP_PASS", None)
os.environ.pop("RESEND_API_KEY", None)

from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import Base, get_db
from app.main import app
from app.models import Magazine, User
from app.rate_limiter import reset_rate_limits

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def clear_rate_limits():
    reset_rate_limits()
    yield
    reset_rate_limits()


@pytest.fixture
def sent_emails(monkeypatch):
    """Capture outgoing emails instead of talking to SMTP or Resend"""
    sent = {"reservation": [], "deletion": []}

    async def fake_reservation_confirmation(**kwargs):
        sent["reservation"].append(kwargs)
        return {"id": "test"}

    async def fake_deletion_confirmation(to, first_name, deletion_timestamp):
        sent["deletion"].append(
            {"to": to, "first_name": first_name, "deletion_timestamp": deletion_timestamp}
        )
        return {"id": "test"}

    monkeypatch.setattr(
        "app.domain.reservations.service.send_reservation_confirmation",
        fake_reservation_confirmation,
    )
    monkeypatch.setattr(
        "app.domain.gdpr.router.send_deletion_confirmation", fake_deletion_confirmation
    )
    return sent


@pytest.fixture
def client(db_session, sent_emails):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app, raise_server_exceptions=False)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def magazine(db_session):
    magazine = Magazine(
        title="Flaschenpost",
        issue_number="2024 / 2025",
        publish_date=date(2024, 8, 6),
        description="Kindergarten-Magazin",
        total_copies=10,
        available_copies=10,
    )
    db_session.add(magazine)
    db_session.commit()
    db_session.refresh(magazine)
    return magazine


@pytest.fixture
def user(db_session):
    user = User(
        email="anna.muster@example.de",
        first_name="Anna",
        last_name="Muster",
        phone="+49891234567",
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


def reservation_payload(magazine_id: str, **overrides) -> dict:
    payload = {
        "firstName": "Anna",
        "lastName": "Muster",
        "email": "Anna.Muster@Example.de",
        "phone": "+49 (89) 123-4567",
        "magazineId": magazine_id,
        "quantity": 2,
        "deliveryMethod": "pickup",
        "pickupLocation": "Kindergarten Leuchtturm",
        "consents": {
            "essential": True,
            "functional": False,
            "analytics": False,
            "marketing": True,
        },
    }
    payload.update(overrides)
    return payload


def shipping_address() -> dict:
    return {
        "street": "Kürnbergstraße",
        "houseNumber": "17a",
        "postalCode": "81369",
        "city": "München",
        "country": "DE",
    }


def tomorrow() -> str:
    return (date.today() + timedelta(days=1)).isoformat()
