import uuid
from datetime import datetime, timedelta, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .config import RESERVATION_EXPIRY_DAYS, USER_DATA_RETENTION_DAYS
from .database import Base

RESERVATION_STATUSES = ("pending", "confirmed", "cancelled", "completed", "expired")
ACTIVE_RESERVATION_STATUSES = ("pending", "confirmed")
CONSENT_TYPES = ("essential", "functional", "analytics", "marketing")


def generate_id():
    """Generate a UUID primary key"""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    """Naive UTC timestamp, matching what the database stores"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def default_retention_date() -> datetime:
    return utcnow() + timedelta(days=USER_DATA_RETENTION_DAYS)


def default_expiry_date() -> datetime:
    return utcnow() + timedelta(days=RESERVATION_EXPIRY_DAYS)


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_id)
    email = Column(String(254), unique=True, index=True, nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    phone = Column(String(20), nullable=True)

    # Optional address, only stored for shipping orders
    street = Column(String(200), nullable=True)
    house_number = Column(String(20), nullable=True)
    address_line2 = Column(String(200), nullable=True)  # apartment, suite, etc.
    postal_code = Column(String(20), nullable=True)
    city = Column(String(100), nullable=True)
    country = Column(String(2), default="DE", nullable=True)  # ISO 3166-1 alpha-2

    # GDPR fields
    consent_version = Column(String(10), nullable=False, default="1.0")
    consent_timestamp = Column(DateTime, nullable=False, default=utcnow)
    data_retention_until = Column(DateTime, nullable=True, default=default_retention_date)
    last_activity = Column(DateTime, nullable=False, default=utcnow)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    reservations = relationship("Reservation", back_populates="user")
    consents = relationship("UserConsent", back_populates="user")


class Magazine(Base):
    __tablename__ = "magazines"
    __table_args__ = (UniqueConstraint("title", "issue_number", name="magazines_unique_issue"),)

    id = Column(String(36), primary_key=True, default=generate_id)
    title = Column(String(200), nullable=False)
    issue_number = Column(String(50), nullable=False)
    publish_date = Column(Date, nullable=False)
    description = Column(Text, nullable=True)
    total_copies = Column(Integer, nullable=False)
    available_copies = Column(Integer, nullable=False)
    cover_image_url = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    reservations = relationship("Reservation", back_populates="magazine")


class Reservation(Base):
    __tablename__ = "reservations"

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    magazine_id = Column(String(36), ForeignKey("magazines.id"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False, default=1)
    status = Column(String(20), default="pending", nullable=False, index=True)  # see RESERVATION_STATUSES
    reservation_date = Column(DateTime, nullable=False, default=utcnow)

    delivery_method = Column(String(20), default="pickup", nullable=False)  # pickup, shipping
    pickup_date = Column(Date, nullable=True)
    pickup_location = Column(String(200), nullable=True)
    payment_method = Column(String(20), nullable=True)  # paypal for shipping orders

    shipping_street = Column(String(200), nullable=True)
    shipping_house_number = Column(String(20), nullable=True)
    shipping_address_line2 = Column(String(200), nullable=True)
    shipping_postal_code = Column(String(20), nullable=True)
    shipping_city = Column(String(100), nullable=True)
    shipping_country = Column(String(2), nullable=True)

    notes = Column(Text, nullable=True)
    expires_at = Column(DateTime, nullable=False, default=default_expiry_date, index=True)
    consent_reference = Column(String(100), nullable=False)

    # Photo print order
    order_group_picture = Column(Boolean, default=False, nullable=False)
    child_group_name = Column(String(100), nullable=True)
    order_vorschul_picture = Column(Boolean, default=False, nullable=False)
    child_is_vorschueler = Column(Boolean, default=False, nullable=False)
    child_name = Column(String(200), nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="reservations")
    magazine = relationship("Magazine", back_populates="reservations")
    picture_claims = relationship("PictureClaim", back_populates="reservation")


class UserConsent(Base):
    __tablename__ = "user_consents"

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    consent_type = Column(String(20), nullable=False)  # see CONSENT_TYPES
    consent_given = Column(Boolean, nullable=False)
    consent_version = Column(String(10), nullable=False, default="1.0")
    timestamp = Column(DateTime, nullable=False, default=utcnow, index=True)
    ip_address = Column(String(45), nullable=True)
    user_agent = Column(Text, nullable=True)
    withdrawal_timestamp = Column(DateTime, nullable=True)

    user = relationship("User", back_populates="consents")


class DataProcessingLog(Base):
    """GDPR audit trail; survives user deletion in anonymised form"""

    __tablename__ = "data_processing_logs"

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    action = Column(String(50), nullable=False, index=True)
    data_type = Column(String(30), nullable=False)
    timestamp = Column(DateTime, nullable=False, default=utcnow, index=True)
    legal_basis = Column(String(30), nullable=False)
    processor_id = Column(String(100), nullable=True)
    ip_address = Column(String(45), nullable=True)
    details = Column(JSON, nullable=True)


class PictureClaim(Base):
    """One free group / Vorschüler picture per family and group"""

    __tablename__ = "picture_claims"
    __table_args__ = (
        UniqueConstraint("family_email", "group_name", "picture_type", name="picture_claims_unique"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    family_email = Column(String(255), nullable=False, index=True)
    group_name = Column(String(100), nullable=False)
    picture_type = Column(String(20), nullable=False)  # group, vorschul
    child_name = Column(String(200), nullable=False)
    reservation_id = Column(
        String(36), ForeignKey("reservations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    claimed_at = Column(DateTime, nullable=False, default=utcnow)
    created_at = Column(DateTime, server_default=func.now())

    reservation = relationship("Reservation", back_populates="picture_claims")
