"""
Seed the current magazine issue
Usage: python seed_magazines.py [--copies N]
"""
import argparse
import logging
import sys
from datetime import date
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

from app.database import Base, SessionLocal, engine
from app.domain.magazines.repository import MagazineRepository

logging.basicConfig(level=logging.INFO, format="%(message)s")
logger = logging.getLogger(__name__)

CURRENT_ISSUE = {
    "title": "Flaschenpost",
    "issue_number": "2024 / 2025",
    "publish_date": date(2024, 8, 6),
    "description": (
        "Die Flaschenpost ist unser liebevoll gestaltetes Kindergarten-Magazin im handlichen "
        "A5-Format. Es erscheint regelmäßig und bietet allen Familien einen Einblick in das "
        "bunte Leben im BRK Haus für Kinder - Leuchtturm."
    ),
    "cover_image_url": "/images/magazine-cover.jpg",
}


def seed_current_issue(db, copies: int) -> bool:
    """Insert the current issue unless it already exists; returns whether it was created"""
    existing = MagazineRepository.get_magazine_by_issue(
        db, CURRENT_ISSUE["title"], CURRENT_ISSUE["issue_number"]
    )
    if existing:
        logger.info(
            f"Issue {existing.title} {existing.issue_number} already exists "
            f"({existing.available_copies}/{existing.total_copies} copies left)"
        )
        return False

    magazine = MagazineRepository.create_magazine(
        db, total_copies=copies, available_copies=copies, **CURRENT_ISSUE
    )
    logger.info(f"✅ Created issue {magazine.title} {magazine.issue_number} with {copies} copies")
    return True


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the current Flaschenpost issue")
    parser.add_argument("--copies", type=int, default=100, help="Number of printed copies")
    args = parser.parse_args()

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        seed_current_issue(db, args.copies)
    except Exception as e:
        logger.error(f"❌ Seeding failed: {e}")
        sys.exit(1)
    finally:
        db.close()
