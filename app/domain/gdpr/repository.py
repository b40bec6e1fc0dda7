"""GDPR repository - consent records and the data processing audit log"""

from datetime import datetime
from typing import Any, Optional

from sqlalchemy.orm import Session

from ...models import DataProcessingLog, UserConsent, utcnow


class ConsentRepository:
    """Repository for consent database operations"""

    @staticmethod
    def create_consents(
        db: Session,
        user_id: str,
        consents: dict[str, bool],
        consent_version: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> list[UserConsent]:
        """One row per consent purpose"""
        now = utcnow()
        records = [
            UserConsent(
                user_id=user_id,
                consent_type=consent_type,
                consent_given=given,
                consent_version=consent_version,
                timestamp=now,
                ip_address=ip_address,
                user_agent=user_agent,
            )
            for consent_type, given in consents.items()
        ]
        db.add_all(records)
        db.flush()
        return records

    @staticmethod
    def get_user_consents(db: Session, user_id: str) -> list[UserConsent]:
        """Consent records of a user, newest first"""
        return (
            db.query(UserConsent)
            .filter(UserConsent.user_id == user_id)
            .order_by(UserConsent.timestamp.desc())
            .all()
        )

    @staticmethod
    def get_latest_consent(db: Session, user_id: str, consent_type: str) -> Optional[UserConsent]:
        return (
            db.query(UserConsent)
            .filter(UserConsent.user_id == user_id, UserConsent.consent_type == consent_type)
            .order_by(UserConsent.timestamp.desc())
            .first()
        )

    @staticmethod
    def withdraw_consent(db: Session, user_id: str, consent_type: str, withdrawn_at: datetime) -> int:
        return (
            db.query(UserConsent)
            .filter(
                UserConsent.user_id == user_id,
                UserConsent.consent_type == consent_type,
                UserConsent.withdrawal_timestamp.is_(None),
            )
            .update(
                {"consent_given": False, "withdrawal_timestamp": withdrawn_at},
                synchronize_session=False,
            )
        )

    @staticmethod
    def delete_user_consents(db: Session, user_id: str) -> int:
        return (
            db.query(UserConsent)
            .filter(UserConsent.user_id == user_id)
            .delete(synchronize_session=False)
        )


class ProcessingLogRepository:
    """Repository for the GDPR audit trail"""

    @staticmethod
    def create_log(
        db: Session,
        action: str,
        data_type: str,
        legal_basis: str,
        user_id: Optional[str] = None,
        ip_address: Optional[str] = None,
        processor_id: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> DataProcessingLog:
        entry = DataProcessingLog(
            user_id=user_id,
            action=action,
            data_type=data_type,
            legal_basis=legal_basis,
            processor_id=processor_id,
            ip_address=ip_address[:45] if ip_address else None,
            details=details,
        )
        db.add(entry)
        db.flush()
        return entry

    @staticmethod
    def anonymize_user_logs(db: Session, user_id: str, reason: str) -> int:
        """Detach a user's audit entries from the user and drop their details"""
        return (
            db.query(DataProcessingLog)
            .filter(DataProcessingLog.user_id == user_id)
            .update(
                {"user_id": None, "details": {"anonymized": True, "reason": reason}},
                synchronize_session=False,
            )
        )

    @staticmethod
    def purge_logs_before(db: Session, cutoff: datetime) -> int:
        return (
            db.query(DataProcessingLog)
            .filter(DataProcessingLog.timestamp < cutoff)
            .delete(synchronize_session=False)
        )

    @staticmethod
    def get_user_logs(db: Session, user_id: str) -> list[DataProcessingLog]:
        return (
            db.query(DataProcessingLog)
            .filter(DataProcessingLog.user_id == user_id)
            .order_by(DataProcessingLog.timestamp.desc())
            .all()
        )
