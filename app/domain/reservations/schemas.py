"""Reservation domain schemas - Pydantic models for validation"""

from datetime import date, datetime, timedelta
from typing import Literal, Optional

from pydantic import BaseModel, Field, ValidationInfo, field_validator

from ...shared.validators import (
    normalize_phone,
    validate_country,
    validate_email,
    validate_length,
    validate_uuid,
)
from ...utils.sanitization import strip_control_chars

MIN_QUANTITY = 1
MAX_QUANTITY = 5


class AddressSchema(BaseModel):
    """Shipping address, required for shipping orders"""

    street: str
    houseNumber: str
    postalCode: str
    city: str
    country: str
    addressLine2: Optional[str] = None

    @field_validator("street")
    @classmethod
    def validate_street(cls, v):
        return validate_length(v, 1, 200, "Straße ist erforderlich", "Straße ist zu lang")

    @field_validator("houseNumber")
    @classmethod
    def validate_house_number(cls, v):
        return validate_length(v, 1, 20, "Hausnummer ist erforderlich", "Hausnummer ist zu lang")

    @field_validator("postalCode")
    @classmethod
    def validate_postal_code(cls, v):
        return validate_length(
            v, 4, 20, "Postleitzahl muss mindestens 4 Zeichen lang sein", "Postleitzahl ist zu lang"
        )

    @field_validator("city")
    @classmethod
    def validate_city(cls, v):
        return validate_length(v, 1, 100, "Stadt ist erforderlich", "Stadt ist zu lang")

    @field_validator("country")
    @classmethod
    def validate_country_code(cls, v):
        return validate_country(v)

    @field_validator("addressLine2")
    @classmethod
    def validate_address_line2(cls, v):
        if v is None:
            return None
        v = v.strip()
        if len(v) > 200:
            raise ValueError("Adresszusatz ist zu lang")
        return v or None


class ConsentsSchema(BaseModel):
    """Per-purpose GDPR consent flags"""

    essential: bool
    functional: bool
    analytics: bool
    marketing: bool

    def as_dict(self) -> dict[str, bool]:
        return {
            "essential": self.essential,
            "functional": self.functional,
            "analytics": self.analytics,
            "marketing": self.marketing,
        }


class ReservationConsentsSchema(ConsentsSchema):
    @field_validator("essential")
    @classmethod
    def require_essential(cls, v):
        if v is not True:
            raise ValueError("Erforderliche Einwilligung muss erteilt werden")
        return v


class ReservationCreate(BaseModel):
    """Schema for the public reservation form.

    Field order matters: the pickup/shipping checks read ``deliveryMethod``
    from the already validated fields, and the photo checks read the
    order flags declared before them.
    """

    firstName: str
    lastName: str
    email: str
    phone: Optional[str] = None
    magazineId: str
    quantity: int
    deliveryMethod: Literal["pickup", "shipping"]
    pickupLocation: Optional[str] = Field(default=None, validate_default=True)
    pickupDate: Optional[date] = None
    address: Optional[AddressSchema] = Field(default=None, validate_default=True)
    paymentMethod: Optional[str] = None
    notes: Optional[str] = None
    consents: ReservationConsentsSchema

    orderGroupPicture: bool = False
    childGroupName: Optional[str] = Field(default=None, validate_default=True)
    orderVorschulPicture: bool = False
    childIsVorschueler: bool = Field(default=False, validate_default=True)
    childName: Optional[str] = Field(default=None, validate_default=True)

    @field_validator("firstName")
    @classmethod
    def validate_first_name(cls, v):
        return validate_length(
            v,
            2,
            100,
            "Vorname muss mindestens 2 Zeichen lang sein",
            "Vorname darf maximal 100 Zeichen lang sein",
        )

    @field_validator("lastName")
    @classmethod
    def validate_last_name(cls, v):
        return validate_length(
            v,
            2,
            100,
            "Nachname muss mindestens 2 Zeichen lang sein",
            "Nachname darf maximal 100 Zeichen lang sein",
        )

    @field_validator("email")
    @classmethod
    def validate_email_address(cls, v):
        return validate_email(v)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        return normalize_phone(v)

    @field_validator("magazineId")
    @classmethod
    def validate_magazine_id(cls, v):
        if not v:
            raise ValueError("Bitte wählen Sie eine Magazin-Ausgabe")
        if not validate_uuid(v):
            raise ValueError("Ungültige Magazin-ID")
        return v

    @field_validator("quantity")
    @classmethod
    def validate_quantity(cls, v):
        if v < MIN_QUANTITY:
            raise ValueError("Mindestens 1 Exemplar erforderlich")
        if v > MAX_QUANTITY:
            raise ValueError("Maximal 5 Exemplare pro Reservierung")
        return v

    @field_validator("deliveryMethod", mode="before")
    @classmethod
    def validate_delivery_method(cls, v):
        if v not in ("pickup", "shipping"):
            raise ValueError("Ungültige Liefermethode")
        return v

    @field_validator("pickupLocation")
    @classmethod
    def validate_pickup_location(cls, v, info: ValidationInfo):
        if v is not None:
            v = v.strip()
            if len(v) > 200:
                raise ValueError("Abholort ist zu lang")
        if info.data.get("deliveryMethod") == "pickup" and not v:
            raise ValueError("Bitte wählen Sie einen Abholort")
        return v or None

    @field_validator("pickupDate")
    @classmethod
    def validate_pickup_date(cls, v):
        if v is not None and v < date.today() + timedelta(days=1):
            raise ValueError("Abholdatum muss mindestens einen Tag in der Zukunft liegen")
        return v

    @field_validator("address")
    @classmethod
    def validate_address(cls, v, info: ValidationInfo):
        if info.data.get("deliveryMethod") == "shipping" and v is None:
            raise ValueError("Lieferadresse ist bei Versand erforderlich")
        return v

    @field_validator("paymentMethod")
    @classmethod
    def validate_payment_method(cls, v):
        if not v:
            return None
        if v != "paypal":
            raise ValueError("Ungültige Zahlungsmethode")
        return v

    @field_validator("notes")
    @classmethod
    def validate_notes(cls, v):
        if v is None:
            return None
        v = strip_control_chars(v).strip()
        if len(v) > 500:
            raise ValueError("Anmerkungen dürfen maximal 500 Zeichen lang sein")
        return v or None

    @field_validator("childGroupName")
    @classmethod
    def validate_child_group_name(cls, v, info: ValidationInfo):
        v = v.strip() if v else None
        if v and len(v) > 100:
            raise ValueError("Gruppenname ist zu lang")
        if info.data.get("orderGroupPicture") and not v:
            raise ValueError("Bitte wählen Sie die Gruppe Ihres Kindes")
        return v

    @field_validator("childIsVorschueler")
    @classmethod
    def validate_child_is_vorschueler(cls, v, info: ValidationInfo):
        if info.data.get("orderVorschulPicture") and not v:
            raise ValueError(
                "Um ein Vorschüler-Bild zu bestellen, muss Ihr Kind als Vorschüler markiert sein."
            )
        return v

    @field_validator("childName")
    @classmethod
    def validate_child_name(cls, v, info: ValidationInfo):
        v = v.strip() if v else None
        if v and len(v) > 200:
            raise ValueError("Name des Kindes ist zu lang")
        ordered = info.data.get("orderGroupPicture") or info.data.get("orderVorschulPicture")
        if ordered and not v:
            raise ValueError("Bitte geben Sie den Namen Ihres Kindes ein")
        return v

    @property
    def orders_pictures(self) -> bool:
        return self.orderGroupPicture or self.orderVorschulPicture


class MagazineSummary(BaseModel):
    title: str
    issueNumber: str


class ReservationCreatedData(BaseModel):
    id: str
    status: str
    expiresAt: datetime
    magazine: MagazineSummary


class ReservationCreatedResponse(BaseModel):
    success: bool = True
    data: ReservationCreatedData
    message: str = "Reservierung erfolgreich erstellt!"
