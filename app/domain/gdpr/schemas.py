"""GDPR domain schemas - consent, export and deletion requests"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import validate_uuid
from ..reservations.schemas import ConsentsSchema


def validate_user_id(v: Optional[str]) -> Optional[str]:
    if v is not None and not validate_uuid(v):
        raise ValueError("Ungültige Benutzer-ID")
    return v


class ConsentRecordRequest(BaseModel):
    """Consent given through the cookie banner or the reservation form"""

    userId: Optional[str] = None
    consents: ConsentsSchema
    timestamp: datetime
    ipAddress: Optional[str] = None
    userAgent: Optional[str] = None

    @field_validator("userId")
    @classmethod
    def validate_user(cls, v):
        return validate_user_id(v)


class ConsentWithdrawRequest(BaseModel):
    userId: str
    consentType: Literal["essential", "functional", "analytics", "marketing"]
    timestamp: datetime

    @field_validator("userId")
    @classmethod
    def validate_user(cls, v):
        return validate_user_id(v)


class DataExportRequest(BaseModel):
    userId: str
    requestTimestamp: datetime

    @field_validator("userId")
    @classmethod
    def validate_user(cls, v):
        return validate_user_id(v)


class DataDeletionRequest(BaseModel):
    userId: str
    reason: str
    requestTimestamp: datetime
    confirmDeletion: bool

    @field_validator("userId")
    @classmethod
    def validate_user(cls, v):
        return validate_user_id(v)

    @field_validator("reason")
    @classmethod
    def validate_reason(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Grund ist erforderlich")
        if len(v) > 500:
            raise ValueError("Grund ist zu lang")
        return v

    @field_validator("confirmDeletion")
    @classmethod
    def require_confirmation(cls, v):
        if v is not True:
            raise ValueError("Löschung muss bestätigt werden")
        return v


class DeletionEligibilityRequest(BaseModel):
    userId: Optional[str] = None


class ConsentRecordResponse(BaseModel):
    id: str
    userId: str
    consentType: str
    consentGiven: bool
    consentVersion: str
    timestamp: datetime
    ipAddress: Optional[str] = None
    userAgent: Optional[str] = None
    withdrawalTimestamp: Optional[datetime] = None

    @classmethod
    def from_model(cls, consent) -> "ConsentRecordResponse":
        return cls(
            id=consent.id,
            userId=consent.user_id,
            consentType=consent.consent_type,
            consentGiven=consent.consent_given,
            consentVersion=consent.consent_version,
            timestamp=consent.timestamp,
            ipAddress=consent.ip_address,
            userAgent=consent.user_agent,
            withdrawalTimestamp=consent.withdrawal_timestamp,
        )


class DeletionEligibility(BaseModel):
    canDelete: bool
    reasons: list[str]
    activeReservations: int
    totalReservations: int
