import pytest

from app.database import normalize_database_url


@pytest.mark.parametrize(
    "url, expected",
    [
        ("postgres://u:p@db:5432/fp", "postgresql+psycopg://u:p@db:5432/fp"),
        ("postgresql://u:p@db:5432/fp", "postgresql+psycopg://u:p@db:5432/fp"),
        ("postgresql+psycopg://u:p@db/fp", "postgresql+psycopg://u:p@db/fp"),
        ("sqlite:///./reservations.db", "sqlite:///./reservations.db"),
    ],
)
def test_normalize_database_url(url, expected):
    assert normalize_database_url(url) == expected
