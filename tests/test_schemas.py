import uuid
from datetime import date

import pytest
from conftest import reservation_payload, shipping_address, tomorrow
from pydantic import ValidationError

from app.domain.gdpr.schemas import DataDeletionRequest
from app.domain.reservations.schemas import AddressSchema, ReservationCreate
from app.errors import format_validation_errors

MAGAZINE_ID = str(uuid.uuid4())


def error_fields(exc_info) -> dict:
    return {e["field"]: e["message"] for e in format_validation_errors(exc_info.value.errors())}


def test_valid_payload_is_normalized():
    data = ReservationCreate(**reservation_payload(MAGAZINE_ID, pickupDate=tomorrow(), notes="  Danke\x00 "))

    assert data.email == "anna.muster@example.de"
    assert data.phone == "+49891234567"
    assert data.notes == "Danke"
    assert data.paymentMethod is None
    assert data.orders_pictures is False


def test_pickup_date_today_is_rejected():
    with pytest.raises(ValidationError) as exc_info:
        ReservationCreate(**reservation_payload(MAGAZINE_ID, pickupDate=date.today().isoformat()))

    assert error_fields(exc_info)["pickupDate"] == "Abholdatum muss mindestens einen Tag in der Zukunft liegen"


@pytest.mark.parametrize(
    "quantity, message",
    [
        (0, "Mindestens 1 Exemplar erforderlich"),
        (6, "Maximal 5 Exemplare pro Reservierung"),
    ],
)
def test_quantity_bounds(quantity, message):
    with pytest.raises(ValidationError) as exc_info:
        ReservationCreate(**reservation_payload(MAGAZINE_ID, quantity=quantity))

    assert error_fields(exc_info)["quantity"] == message


def test_invalid_delivery_method():
    with pytest.raises(ValidationError) as exc_info:
        ReservationCreate(**reservation_payload(MAGAZINE_ID, deliveryMethod="drone"))

    assert error_fields(exc_info)["deliveryMethod"] == "Ungültige Liefermethode"


def test_invalid_email_and_short_names():
    with pytest.raises(ValidationError) as exc_info:
        ReservationCreate(**reservation_payload(MAGAZINE_ID, email="not-an-email", firstName="A"))

    fields = error_fields(exc_info)
    assert fields["email"] == "Bitte geben Sie eine gültige E-Mail-Adresse ein"
    assert fields["firstName"] == "Vorname muss mindestens 2 Zeichen lang sein"


def test_invalid_magazine_id():
    with pytest.raises(ValidationError) as exc_info:
        ReservationCreate(**reservation_payload("not-a-uuid"))

    assert error_fields(exc_info)["magazineId"] == "Ungültige Magazin-ID"


def test_only_paypal_is_accepted_as_payment_method():
    with pytest.raises(ValidationError) as exc_info:
        ReservationCreate(**reservation_payload(MAGAZINE_ID, paymentMethod="cash"))

    assert error_fields(exc_info)["paymentMethod"] == "Ungültige Zahlungsmethode"


def test_group_picture_requires_group_and_child_name():
    with pytest.raises(ValidationError) as exc_info:
        ReservationCreate(**reservation_payload(MAGAZINE_ID, orderGroupPicture=True))

    fields = error_fields(exc_info)
    assert fields["childGroupName"] == "Bitte wählen Sie die Gruppe Ihres Kindes"
    assert fields["childName"] == "Bitte geben Sie den Namen Ihres Kindes ein"


def test_vorschul_picture_requires_vorschueler_flag():
    with pytest.raises(ValidationError) as exc_info:
        ReservationCreate(
            **reservation_payload(MAGAZINE_ID, orderVorschulPicture=True, childName="Mia")
        )

    assert "Vorschüler" in error_fields(exc_info)["childIsVorschueler"]


def test_vorschul_picture_with_flag_is_accepted():
    data = ReservationCreate(
        **reservation_payload(
            MAGAZINE_ID, orderVorschulPicture=True, childIsVorschueler=True, childName=" Mia "
        )
    )

    assert data.childName == "Mia"
    assert data.orders_pictures is True


def test_address_country_is_upper_cased_and_restricted():
    address = AddressSchema(**{**shipping_address(), "country": "at"})
    assert address.country == "AT"

    with pytest.raises(ValidationError) as exc_info:
        AddressSchema(**{**shipping_address(), "country": "FR"})
    assert error_fields(exc_info)["country"] == "Land wird nicht unterstützt"


def test_short_postal_code_is_rejected():
    with pytest.raises(ValidationError) as exc_info:
        AddressSchema(**{**shipping_address(), "postalCode": "123"})

    assert error_fields(exc_info)["postalCode"] == "Postleitzahl muss mindestens 4 Zeichen lang sein"


def test_deletion_requires_confirmation_and_reason():
    with pytest.raises(ValidationError) as exc_info:
        DataDeletionRequest(
            userId=str(uuid.uuid4()),
            reason="   ",
            requestTimestamp="2025-01-01T10:00:00Z",
            confirmDeletion=False,
        )

    fields = error_fields(exc_info)
    assert fields["reason"] == "Grund ist erforderlich"
    assert fields["confirmDeletion"] == "Löschung muss bestätigt werden"


def test_json_decode_error_is_reported_on_body_in_german():
    raw = [
        {
            "type": "json_invalid",
            "loc": ("body", 1),
            "msg": "JSON decode error",
            "input": {},
            "ctx": {"error": "Expecting property name enclosed in double quotes"},
        }
    ]

    assert format_validation_errors(raw) == [{"field": "body", "message": "Ungültiger JSON-Body."}]
