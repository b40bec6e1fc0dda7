from datetime import datetime, timedelta

from app.maintenance import cleanup_expired_data, years_before
from app.models import DataProcessingLog, Magazine, Reservation, User

NOW = datetime(2025, 6, 1, 3, 0)


def add_user(db, email, retention_until):
    user = User(email=email, first_name="Anna", last_name="Muster", data_retention_until=retention_until)
    db.add(user)
    db.commit()
    return user


def add_reservation(db, user, magazine, status="pending", expires_at=None, quantity=2):
    reservation = Reservation(
        user_id=user.id,
        magazine_id=magazine.id,
        quantity=quantity,
        status=status,
        delivery_method="pickup",
        pickup_location="Kindergarten Leuchtturm",
        consent_reference=f"consent-{user.id}-1",
        expires_at=expires_at or NOW + timedelta(days=3),
    )
    db.add(reservation)
    db.commit()
    return reservation


def test_expired_pending_reservations_return_their_copies(db_session, magazine):
    magazine.available_copies = 6
    user = add_user(db_session, "anna@example.de", NOW + timedelta(days=100))
    expired = add_reservation(db_session, user, magazine, expires_at=NOW - timedelta(hours=1))
    current = add_reservation(db_session, user, magazine)
    confirmed = add_reservation(db_session, user, magazine, status="confirmed", expires_at=NOW - timedelta(days=2))

    result = cleanup_expired_data(db_session, now=NOW)

    assert result["expiredReservations"] == 1
    db_session.expire_all()
    assert db_session.get(Reservation, expired.id).status == "expired"
    assert db_session.get(Reservation, current.id).status == "pending"
    assert db_session.get(Reservation, confirmed.id).status == "confirmed"
    assert db_session.get(Magazine, magazine.id).available_copies == 8


def test_users_past_retention_are_erased_unless_active(db_session, magazine):
    stale = add_user(db_session, "stale@example.de", NOW - timedelta(days=1))
    busy = add_user(db_session, "busy@example.de", NOW - timedelta(days=1))
    fresh = add_user(db_session, "fresh@example.de", NOW + timedelta(days=30))
    stale_id, busy_id, fresh_id = stale.id, busy.id, fresh.id
    add_reservation(db_session, stale, magazine, status="completed")
    add_reservation(db_session, busy, magazine, status="confirmed")

    result = cleanup_expired_data(db_session, now=NOW)

    assert result["deletedUsers"] == 1
    db_session.expire_all()
    assert db_session.query(User).filter_by(id=stale_id).first() is None
    assert db_session.get(User, busy_id) is not None
    assert db_session.get(User, fresh_id) is not None
    assert db_session.query(Reservation).filter_by(user_id=stale_id).count() == 0

    deleted = db_session.query(DataProcessingLog).filter_by(action="deleted").one()
    assert deleted.legal_basis == "legitimate_interest"
    assert deleted.details == {"originalUserId": stale_id, "reason": "retention_period_expired"}


def test_audit_logs_older_than_seven_years_are_purged(db_session):
    db_session.add_all(
        [
            DataProcessingLog(
                action="accessed",
                data_type="user_data",
                legal_basis="legitimate_interest",
                timestamp=NOW - timedelta(days=365 * 8),
            ),
            DataProcessingLog(
                action="accessed",
                data_type="user_data",
                legal_basis="legitimate_interest",
                timestamp=NOW - timedelta(days=365),
            ),
        ]
    )
    db_session.commit()

    result = cleanup_expired_data(db_session, now=NOW)

    assert result == {"expiredReservations": 0, "deletedUsers": 0, "purgedLogs": 1}
    assert db_session.query(DataProcessingLog).count() == 1


def test_years_before_handles_leap_day():
    assert years_before(datetime(2024, 2, 29, 12, 0), 7) == datetime(2017, 2, 28, 12, 0)
    assert years_before(datetime(2025, 6, 1), 7) == datetime(2018, 6, 1)


def test_defaults_to_current_time(db_session):
    result = cleanup_expired_data(db_session)

    assert set(result) == {"expiredReservations", "deletedUsers", "purgedLogs"}
