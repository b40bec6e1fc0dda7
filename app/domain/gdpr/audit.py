"""Standalone audit log entries written outside a business transaction"""

import logging
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .repository import ProcessingLogRepository

logger = logging.getLogger(__name__)


def log_data_processing(
    db: Session,
    action: str,
    data_type: str,
    legal_basis: str,
    user_id: Optional[str] = None,
    ip_address: Optional[str] = None,
    details: Optional[dict[str, Any]] = None,
) -> bool:
    """Write and commit one audit entry.

    A failing audit write is logged and rolled back; it never fails the
    request that triggered it. Returns whether the entry was stored.
    """
    try:
        ProcessingLogRepository.create_log(
            db,
            action=action,
            data_type=data_type,
            legal_basis=legal_basis,
            user_id=user_id,
            ip_address=ip_address,
            details=details,
        )
        db.commit()
        return True
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"❌ Failed to log data processing ({action}/{data_type}): {e}")
        return False
