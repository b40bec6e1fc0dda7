"""
Retention cleanup runner
Usage: python run_cleanup.py

Schedule daily, e.g. with cron:
    0 3 * * * cd /srv/flaschenpost && python run_cleanup.py
"""
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

from app.database import SessionLocal
from app.maintenance import cleanup_expired_data

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)


def main() -> int:
    db = SessionLocal()
    try:
        result = cleanup_expired_data(db)
    except Exception as e:
        db.rollback()
        logger.error(f"❌ Retention cleanup failed: {e}")
        return 1
    finally:
        db.close()

    logger.info(
        f"Expired reservations: {result['expiredReservations']}, "
        f"deleted users: {result['deletedUsers']}, "
        f"purged logs: {result['purgedLogs']}"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
