"""
Retention maintenance

Meant to run once a day from cron (see run_cleanup.py):
1. Expire pending reservations past their expiry date and return the copies to stock
2. Delete users whose retention period ended and who hold no active reservation
3. Purge audit log entries older than the legal retention period
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from .config import AUDIT_LOG_RETENTION_YEARS
from .domain.gdpr.repository import ProcessingLogRepository
from .domain.gdpr.service import GdprService
from .domain.reservations.repository import ReservationRepository
from .domain.users.repository import UserRepository
from .models import utcnow

logger = logging.getLogger(__name__)

RETENTION_EXPIRED_REASON = "retention_period_expired"


def years_before(moment: datetime, years: int) -> datetime:
    try:
        return moment.replace(year=moment.year - years)
    except ValueError:
        # 29 February in a non-leap target year
        return moment.replace(year=moment.year - years, day=28)


def expire_pending_reservations(db: Session, now: datetime) -> int:
    repo = ReservationRepository()
    expired = repo.get_expired_pending(db, now)
    for reservation in expired:
        reservation.status = "expired"
        repo.release_stock(db, reservation.magazine_id, reservation.quantity)
    db.commit()

    if expired:
        logger.info(f"✅ Expired {len(expired)} pending reservation(s) and restored their stock")
    return len(expired)


def delete_users_past_retention(db: Session, now: datetime) -> int:
    service = GdprService(db)
    users = UserRepository.get_users_past_retention(db, now)
    for user in users:
        service.erase_user(user, RETENTION_EXPIRED_REASON, legal_basis="legitimate_interest")

    if users:
        logger.info(f"✅ Deleted {len(users)} user(s) past their retention date")
    return len(users)


def purge_old_audit_logs(db: Session, now: datetime) -> int:
    cutoff = years_before(now, AUDIT_LOG_RETENTION_YEARS)
    purged = ProcessingLogRepository.purge_logs_before(db, cutoff)
    db.commit()

    if purged:
        logger.info(f"🧹 Purged {purged} audit log entries older than {cutoff.date()}")
    return purged


def cleanup_expired_data(db: Session, now: Optional[datetime] = None) -> dict[str, int]:
    """Run all retention steps and return how many rows each one touched"""
    now = now or utcnow()
    logger.info(f"🔄 Starting retention cleanup at {now.isoformat()}")

    result = {
        "expiredReservations": expire_pending_reservations(db, now),
        "deletedUsers": delete_users_past_retention(db, now),
        "purgedLogs": purge_old_audit_logs(db, now),
    }

    logger.info(f"✅ Retention cleanup finished: {result}")
    return result
