"""Magazine service - Business logic for the public magazine list"""

import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...errors import ApiError
from ...models import Magazine
from ..gdpr.audit import log_data_processing
from .repository import MagazineRepository

logger = logging.getLogger(__name__)


class MagazineService:
    """Service layer for magazine business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = MagazineRepository()

    def list_available(self, client_ip: Optional[str] = None) -> list[Magazine]:
        """Active issues with copies left.

        An unavailable database yields an empty list instead of an error,
        so the reservation form still renders.
        """
        log_data_processing(
            self.db,
            action="accessed",
            data_type="user_data",
            legal_basis="legitimate_interest",
            ip_address=client_ip,
            details={"endpoint": "/api/magazines", "method": "GET"},
        )

        try:
            magazines = self.repo.get_available_magazines(self.db)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to load magazines, returning empty list: {e}")
            return []

        logger.info(f"✅ Loaded {len(magazines)} available magazine(s)")
        return magazines

    def get_reservable_magazine(self, magazine_id: str) -> Magazine:
        magazine = self.repo.get_active_magazine(self.db, magazine_id)
        if not magazine:
            raise ApiError(
                status_code=404,
                error="Magazine not found",
                message="Die gewählte Magazin-Ausgabe ist nicht verfügbar.",
            )
        return magazine
