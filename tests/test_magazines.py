from datetime import date

from sqlalchemy.exc import SQLAlchemyError

from app.domain.magazines.repository import MagazineRepository
from app.models import DataProcessingLog, Magazine


def add_magazine(db, issue_number, publish_date, available=10, is_active=True):
    magazine = Magazine(
        title="Flaschenpost",
        issue_number=issue_number,
        publish_date=publish_date,
        total_copies=10,
        available_copies=available,
        is_active=is_active,
    )
    db.add(magazine)
    db.commit()
    return magazine


def test_lists_only_active_magazines_with_copies_newest_first(client, db_session):
    add_magazine(db_session, "2023 / 2024", date(2023, 8, 1))
    add_magazine(db_session, "2024 / 2025", date(2024, 8, 6))
    add_magazine(db_session, "Sonderheft", date(2024, 12, 1), available=0)
    add_magazine(db_session, "Archiv", date(2022, 8, 1), is_active=False)

    response = client.get("/api/magazines")

    assert response.status_code == 200
    assert response.headers["Cache-Control"] == "public, max-age=300"
    body = response.json()
    assert body["success"] is True
    assert body["count"] == 2
    assert [m["issueNumber"] for m in body["data"]] == ["2024 / 2025", "2023 / 2024"]
    assert body["data"][0]["publishDate"] == "2024-08-06"
    assert body["data"][0]["availableCopies"] == 10


def test_listing_is_audited(client, db_session):
    client.get("/api/magazines", headers={"X-Forwarded-For": "198.51.100.4"})

    log = db_session.query(DataProcessingLog).one()
    assert log.action == "accessed"
    assert log.legal_basis == "legitimate_interest"
    assert log.ip_address == "198.51.100.4"
    assert log.user_id is None


def test_database_error_returns_empty_list(client, monkeypatch):
    def broken_query(db):
        raise SQLAlchemyError("connection refused")

    monkeypatch.setattr(MagazineRepository, "get_available_magazines", staticmethod(broken_query))

    response = client.get("/api/magazines")

    assert response.status_code == 200
    assert response.json() == {"success": True, "data": [], "count": 0}


def test_security_headers_are_set(client):
    response = client.get("/api/magazines")

    assert response.headers["X-Frame-Options"] == "DENY"
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert "default-src 'none'" in response.headers["Content-Security-Policy"]
    # The route's own caching policy is kept
    assert response.headers["Cache-Control"] == "public, max-age=300"
