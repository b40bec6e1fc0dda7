import time
import uuid

from conftest import reservation_payload, shipping_address

from app.domain.picture_claims.service import PictureClaimService
from app.domain.reservations.repository import ReservationRepository
from app.rate_limiter import check_rate_limit
from app.models import DataProcessingLog, Magazine, PictureClaim, Reservation, User, UserConsent


def test_create_pickup_reservation(client, db_session, magazine, sent_emails):
    response = client.post("/api/reservations", json=reservation_payload(magazine.id))

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Reservierung erfolgreich erstellt!"
    assert body["data"]["status"] == "pending"
    assert body["data"]["magazine"] == {"title": "Flaschenpost", "issueNumber": "2024 / 2025"}

    reservation = db_session.get(Reservation, body["data"]["id"])
    assert reservation.quantity == 2
    assert reservation.pickup_location == "Kindergarten Leuchtturm"
    assert reservation.shipping_street is None
    assert reservation.consent_reference.startswith(f"consent-{reservation.user_id}-")

    db_session.refresh(magazine)
    assert magazine.available_copies == 8

    user = db_session.get(User, reservation.user_id)
    assert user.email == "anna.muster@example.de"
    assert user.phone == "+49891234567"
    assert user.street is None

    consents = db_session.query(UserConsent).filter_by(user_id=user.id).all()
    assert {c.consent_type: c.consent_given for c in consents} == {
        "essential": True,
        "functional": False,
        "analytics": False,
        "marketing": True,
    }

    actions = {log.action for log in db_session.query(DataProcessingLog).all()}
    assert {"consent_given", "reservation_created"} <= actions

    assert len(sent_emails["reservation"]) == 1
    email = sent_emails["reservation"][0]
    assert email["to"] == "anna.muster@example.de"
    assert email["reservation_id"] == reservation.id
    assert email["magazine_title"] == "Flaschenpost"


def test_create_shipping_reservation_stores_address(client, db_session, magazine):
    payload = reservation_payload(
        magazine.id,
        deliveryMethod="shipping",
        pickupLocation=None,
        address=shipping_address(),
        paymentMethod="paypal",
    )
    response = client.post("/api/reservations", json=payload)

    assert response.status_code == 201
    reservation = db_session.get(Reservation, response.json()["data"]["id"])
    assert reservation.delivery_method == "shipping"
    assert reservation.payment_method == "paypal"
    assert reservation.shipping_city == "München"
    assert reservation.pickup_location is None
    assert db_session.get(User, reservation.user_id).postal_code == "81369"


def test_shipping_without_address_is_rejected(client, magazine):
    payload = reservation_payload(magazine.id, deliveryMethod="shipping", pickupLocation=None)
    response = client.post("/api/reservations", json=payload)

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Validation failed"
    assert body["message"] == "Eingabedaten sind ungültig."
    assert {"field": "address", "message": "Lieferadresse ist bei Versand erforderlich"} in body["errors"]


def test_pickup_without_location_is_rejected(client, magazine):
    response = client.post(
        "/api/reservations", json=reservation_payload(magazine.id, pickupLocation="")
    )

    assert response.status_code == 400
    assert {"field": "pickupLocation", "message": "Bitte wählen Sie einen Abholort"} in response.json()["errors"]


def test_missing_essential_consent_is_rejected(client, magazine):
    payload = reservation_payload(
        magazine.id,
        consents={"essential": False, "functional": True, "analytics": True, "marketing": True},
    )
    response = client.post("/api/reservations", json=payload)

    assert response.status_code == 400
    assert {
        "field": "consents.essential",
        "message": "Erforderliche Einwilligung muss erteilt werden",
    } in response.json()["errors"]


def test_non_json_content_type_is_rejected(client, magazine):
    response = client.post(
        "/api/reservations",
        content="firstName=Anna",
        headers={"Content-Type": "application/x-www-form-urlencoded"},
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Content-Type muss application/json sein."


def test_malformed_json_is_rejected(client, magazine):
    response = client.post(
        "/api/reservations",
        content="{not json",
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Validation failed"
    assert {"field": "body", "message": "Ungültiger JSON-Body."} in response.json()["errors"]


def test_unknown_magazine_returns_404(client, magazine):
    response = client.post("/api/reservations", json=reservation_payload(str(uuid.uuid4())))

    assert response.status_code == 404
    assert response.json()["message"] == "Die gewählte Magazin-Ausgabe ist nicht verfügbar."


def test_inactive_magazine_returns_404(client, db_session, magazine):
    magazine.is_active = False
    db_session.commit()

    response = client.post("/api/reservations", json=reservation_payload(magazine.id))

    assert response.status_code == 404


def test_insufficient_copies_returns_409(client, db_session, magazine):
    magazine.available_copies = 1
    db_session.commit()

    response = client.post("/api/reservations", json=reservation_payload(magazine.id, quantity=3))

    assert response.status_code == 409
    assert response.json()["message"] == "Nur noch 1 Exemplare verfügbar."
    assert db_session.query(Reservation).count() == 0
    assert db_session.query(User).count() == 0


def test_reserve_stock_never_oversells(db_session, magazine):
    magazine.available_copies = 3
    db_session.commit()

    assert ReservationRepository.reserve_stock(db_session, magazine.id, 2) is True
    assert ReservationRepository.reserve_stock(db_session, magazine.id, 2) is False
    db_session.commit()

    assert db_session.query(Magazine.available_copies).filter_by(id=magazine.id).scalar() == 1


def test_returning_user_reuses_account_without_new_consent(client, db_session, magazine):
    first = client.post("/api/reservations", json=reservation_payload(magazine.id, quantity=1))
    second = client.post("/api/reservations", json=reservation_payload(magazine.id, quantity=1))

    assert first.status_code == 201
    assert second.status_code == 201
    assert db_session.query(User).count() == 1
    # Essential consent is still valid, so the second reservation records none
    assert db_session.query(UserConsent).count() == 4


def test_group_picture_can_only_be_claimed_once(client, db_session, magazine):
    pictures = {
        "orderGroupPicture": True,
        "childGroupName": "Seesterne",
        "childName": "Mia Muster",
    }
    first = client.post("/api/reservations", json=reservation_payload(magazine.id, quantity=1, **pictures))
    assert first.status_code == 201
    assert db_session.query(PictureClaim).count() == 1

    second = client.post("/api/reservations", json=reservation_payload(magazine.id, quantity=1, **pictures))

    assert second.status_code == 409
    body = second.json()
    assert body["error"] == "Picture already claimed"
    assert "Gruppenbild" in body["errors"][0]["message"]
    assert "Seesterne" in body["errors"][0]["message"]
    assert db_session.query(Reservation).count() == 1


def test_vorschul_picture_requires_vorschueler(client, magazine):
    payload = reservation_payload(
        magazine.id,
        orderVorschulPicture=True,
        childIsVorschueler=False,
        childName="Mia Muster",
    )
    response = client.post("/api/reservations", json=payload)

    assert response.status_code == 400
    fields = [error["field"] for error in response.json()["errors"]]
    assert "childIsVorschueler" in fields


def test_unexpected_failure_returns_generic_500_and_is_audited(client, db_session, magazine, monkeypatch):
    def broken_reserve_stock(db, magazine_id, quantity):
        raise RuntimeError("database exploded")

    monkeypatch.setattr(ReservationRepository, "reserve_stock", staticmethod(broken_reserve_stock))

    response = client.post("/api/reservations", json=reservation_payload(magazine.id))

    assert response.status_code == 500
    assert response.json() == {
        "success": False,
        "error": "Internal server error",
        "message": "Es ist ein unerwarteter Fehler aufgetreten. Bitte versuchen Sie es später erneut.",
    }
    error_log = db_session.query(DataProcessingLog).filter_by(data_type="processing_log").one()
    assert error_log.action == "created"
    assert error_log.details["error"] == "database exploded"
    assert db_session.query(User).count() == 0


def test_list_reservations_is_empty_and_audited(client, db_session):
    response = client.get("/api/reservations")

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "data": [],
        "message": "Authentication required for this endpoint",
    }
    log = db_session.query(DataProcessingLog).one()
    assert log.action == "accessed"
    assert log.data_type == "reservation"


def test_sixth_request_in_window_is_rate_limited(client):
    for _ in range(5):
        response = client.post("/api/reservations", json={})
        assert response.status_code == 400

    response = client.post("/api/reservations", json={})

    assert response.status_code == 429
    assert 0 < int(response.headers["Retry-After"]) <= 900
    assert response.json()["error"] == "Rate limit exceeded"


def test_malformed_json_counts_against_rate_limit(client):
    for _ in range(5):
        response = client.post(
            "/api/reservations",
            content="{not json",
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400

    response = client.post(
        "/api/reservations",
        content="{not json",
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 429


def test_retry_after_is_time_left_in_window(client):
    window_start = time.time() - 600
    for _ in range(5):
        check_rate_limit("reservation:testclient", 5, 900, now=window_start)

    response = client.post("/api/reservations", json={})

    assert response.status_code == 429
    assert 295 <= int(response.headers["Retry-After"]) <= 300


def test_concurrent_picture_claim_returns_409_and_rolls_back(client, db_session, magazine, monkeypatch):
    pictures = {
        "orderGroupPicture": True,
        "childGroupName": "Seesterne",
        "childName": "Mia Muster",
    }
    first = client.post("/api/reservations", json=reservation_payload(magazine.id, quantity=1, **pictures))
    assert first.status_code == 201

    # Another request claimed the picture after the pre-check passed
    monkeypatch.setattr(
        PictureClaimService,
        "has_existing_claim",
        lambda self, email, group_name, picture_type: False,
    )
    second = client.post("/api/reservations", json=reservation_payload(magazine.id, quantity=1, **pictures))

    assert second.status_code == 409
    assert second.json()["error"] == "Picture already claimed"

    db_session.expire_all()
    assert db_session.query(Reservation).count() == 1
    assert db_session.query(PictureClaim).count() == 1
    assert db_session.get(Magazine, magazine.id).available_copies == 9
