"""GDPR service - consent management and data subject rights (Art. 7, 15, 17, 20)"""

import json
import logging
from datetime import datetime
from typing import Any, Optional

from sqlalchemy.orm import Session

from ...config import CONSENT_VERSION, DATA_CONTROLLER, PRIVACY_CONTACT_EMAIL
from ...email_templates import DELETED_DATA_TYPES as AFFECTED_DATA_TYPES
from ...errors import ApiError
from ...models import ACTIVE_RESERVATION_STATUSES, Reservation, User, utcnow
from ..picture_claims.repository import PictureClaimRepository
from ..reservations.repository import ReservationRepository
from ..users.repository import UserRepository
from .audit import log_data_processing
from .repository import ConsentRepository, ProcessingLogRepository
from .schemas import ConsentRecordResponse

logger = logging.getLogger(__name__)

LEGAL_NOTICE = {
    "de": (
        "Diese Daten wurden auf Ihre Anfrage gemäß Art. 20 DSGVO exportiert. Die Daten werden "
        "in einem strukturierten, gängigen und maschinenlesbaren Format bereitgestellt."
    ),
    "en": (
        "This data has been exported upon your request under Article 20 GDPR. The data is "
        "provided in a structured, commonly used and machine-readable format."
    ),
}


def _iso(value: Optional[Any]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def serialize_user(user: User) -> dict:
    address = None
    if user.street:
        address = {
            "street": user.street,
            "houseNumber": user.house_number,
            "addressLine2": user.address_line2,
            "postalCode": user.postal_code,
            "city": user.city,
            "country": user.country,
        }
    return {
        "id": user.id,
        "email": user.email,
        "firstName": user.first_name,
        "lastName": user.last_name,
        "phone": user.phone,
        "address": address,
        "consentVersion": user.consent_version,
        "consentTimestamp": _iso(user.consent_timestamp),
        "dataRetentionUntil": _iso(user.data_retention_until),
        "lastActivity": _iso(user.last_activity),
        "isActive": user.is_active,
        "createdAt": _iso(user.created_at),
        "updatedAt": _iso(user.updated_at),
    }


def serialize_reservation(reservation: Reservation) -> dict:
    shipping_address = None
    if reservation.shipping_street:
        shipping_address = {
            "street": reservation.shipping_street,
            "houseNumber": reservation.shipping_house_number,
            "addressLine2": reservation.shipping_address_line2,
            "postalCode": reservation.shipping_postal_code,
            "city": reservation.shipping_city,
            "country": reservation.shipping_country,
        }
    magazine = reservation.magazine
    return {
        "id": reservation.id,
        "magazineId": reservation.magazine_id,
        "magazine": {"title": magazine.title, "issueNumber": magazine.issue_number} if magazine else None,
        "quantity": reservation.quantity,
        "status": reservation.status,
        "reservationDate": _iso(reservation.reservation_date),
        "deliveryMethod": reservation.delivery_method,
        "pickupDate": _iso(reservation.pickup_date),
        "pickupLocation": reservation.pickup_location,
        "paymentMethod": reservation.payment_method,
        "shippingAddress": shipping_address,
        "notes": reservation.notes,
        "expiresAt": _iso(reservation.expires_at),
        "consentReference": reservation.consent_reference,
        "orderGroupPicture": reservation.order_group_picture,
        "childGroupName": reservation.child_group_name,
        "orderVorschulPicture": reservation.order_vorschul_picture,
        "childIsVorschueler": reservation.child_is_vorschueler,
        "childName": reservation.child_name,
        "createdAt": _iso(reservation.created_at),
        "updatedAt": _iso(reservation.updated_at),
    }


class GdprService:
    """Service layer for consent, export and deletion"""

    def __init__(self, db: Session):
        self.db = db
        self.users = UserRepository()
        self.consents = ConsentRepository()
        self.logs = ProcessingLogRepository()
        self.reservations = ReservationRepository()
        self.claims = PictureClaimRepository()

    def get_user_or_404(self, user_id: str) -> User:
        user = self.users.get_user_by_id(self.db, user_id)
        if not user:
            raise ApiError(
                status_code=404,
                error="User not found",
                message="Benutzer wurde nicht gefunden.",
            )
        return user

    # ============================================================================
    # CONSENT
    # ============================================================================

    def record_user_consents(
        self,
        user_id: str,
        consents: dict[str, bool],
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> None:
        """Insert one row per purpose plus the audit entry; the caller commits"""
        self.consents.create_consents(
            self.db, user_id, consents, CONSENT_VERSION, ip_address, user_agent
        )
        self.logs.create_log(
            self.db,
            action="consent_given",
            data_type="consent",
            legal_basis="consent",
            user_id=user_id,
            ip_address=ip_address,
            details=consents,
        )

    def needs_consent_refresh(self, user_id: str) -> bool:
        """True unless the latest essential consent is given and not withdrawn"""
        latest = self.consents.get_latest_consent(self.db, user_id, "essential")
        return latest is None or not latest.consent_given or latest.withdrawal_timestamp is not None

    def record_consent(
        self,
        user_id: Optional[str],
        consents: dict[str, bool],
        timestamp: datetime,
        ip_address: Optional[str],
        user_agent: Optional[str],
    ) -> str:
        """Store consent from the consent endpoint and return the German confirmation"""
        if not user_id:
            log_data_processing(
                self.db,
                action="consent_given",
                data_type="consent",
                legal_basis="consent",
                ip_address=ip_address,
                details={"consents": consents, "anonymous": True, "timestamp": timestamp.isoformat()},
            )
            logger.info("✅ Anonymous consent recorded")
            return "Anonyme Einwilligung erfolgreich gespeichert."

        self.get_user_or_404(user_id)
        self.record_user_consents(user_id, consents, ip_address, user_agent)
        self.db.commit()
        logger.info(f"✅ Consent recorded for user {user_id}")
        return "Einwilligung erfolgreich gespeichert."

    def withdraw_consent(self, user_id: str, consent_type: str) -> str:
        if consent_type == "essential":
            raise ApiError(
                status_code=400,
                error="Cannot withdraw essential consent",
                message="Grundlegende Einwilligung kann nicht widerrufen werden.",
            )

        self.get_user_or_404(user_id)
        updated = self.consents.withdraw_consent(self.db, user_id, consent_type, utcnow())
        self.logs.create_log(
            self.db,
            action="consent_withdrawn",
            data_type="consent",
            legal_basis="user_request",
            user_id=user_id,
            details={"consentType": consent_type},
        )
        self.db.commit()
        logger.info(f"✅ Withdrew {consent_type} consent for user {user_id} ({updated} record(s))")
        return f"{consent_type} Einwilligung erfolgreich widerrufen."

    def get_consents(self, user_id: Optional[str]) -> list[ConsentRecordResponse]:
        if not user_id:
            raise ApiError(
                status_code=400,
                error="Missing userId parameter",
                message="Benutzer-ID ist erforderlich.",
            )
        return [
            ConsentRecordResponse.from_model(c)
            for c in self.consents.get_user_consents(self.db, user_id)
        ]

    # ============================================================================
    # EXPORT (Art. 15 / Art. 20)
    # ============================================================================

    def collect_user_data(self, user: User) -> dict:
        """Personal data, reservations and consents; logs the export in the session"""
        export_data = {
            "personalData": serialize_user(user),
            "reservations": [
                serialize_reservation(r)
                for r in self.reservations.get_user_reservations(self.db, user.id)
            ],
            "consents": [
                ConsentRecordResponse.from_model(c).model_dump(mode="json")
                for c in self.consents.get_user_consents(self.db, user.id)
            ],
        }
        self.logs.create_log(
            self.db,
            action="exported",
            data_type="user_data",
            legal_basis="user_request",
            user_id=user.id,
            details={"exportSize": len(json.dumps(export_data))},
        )
        return export_data

    def export_user_data(self, user_id: str) -> dict:
        """Complete GDPR export document for download"""
        user = self.get_user_or_404(user_id)
        export_data = self.collect_user_data(user)
        self.db.commit()

        logger.info(f"✅ Exported data for user {user_id}")
        return {
            "exportInfo": {
                "exportDate": datetime.now().astimezone().isoformat(),
                "dataController": DATA_CONTROLLER,
                "contactEmail": PRIVACY_CONTACT_EMAIL,
                "purpose": "GDPR Article 20 - Right to data portability",
                "format": "JSON",
                "language": "de-DE",
            },
            **export_data,
            "legalNotice": LEGAL_NOTICE,
        }

    # ============================================================================
    # DELETION (Art. 17)
    # ============================================================================

    def check_deletion_eligibility(self, user_id: Optional[str]) -> dict:
        if not user_id:
            raise ApiError(
                status_code=400,
                error="Missing userId",
                message="Benutzer-ID ist erforderlich.",
            )
        self.get_user_or_404(user_id)

        reservations = self.reservations.get_user_reservations(self.db, user_id)
        active = [r for r in reservations if r.status in ACTIVE_RESERVATION_STATUSES]
        reasons = ["Aktive Reservierungen vorhanden"] if active else []
        return {
            "canDelete": not active,
            "reasons": reasons,
            "activeReservations": len(active),
            "totalReservations": len(reservations),
        }

    def delete_user_data(self, user_id: str, reason: str) -> dict:
        """Erase a user and everything linked to them.

        Audit entries are kept in anonymised form. Returns the captured
        contact details for the confirmation email together with the
        response details.
        """
        user = self.get_user_or_404(user_id)

        active_count = self.reservations.count_active_reservations(self.db, user_id)
        if active_count:
            raise ApiError(
                status_code=409,
                error="Active reservations exist",
                message=(
                    "Löschung nicht möglich: Sie haben noch aktive Reservierungen. Bitte "
                    "stornieren Sie diese zuerst oder warten Sie bis zur Abholung."
                ),
                details={"activeReservationsCount": active_count},
            )

        return self.erase_user(user, reason)

    def log_deletion_failure(self, error: Exception) -> None:
        """Best-effort audit entry for a failed deletion"""
        self.db.rollback()
        log_data_processing(
            self.db,
            action="deleted",
            data_type="processing_log",
            legal_basis="user_request",
            details={"error": str(error), "endpoint": "/api/gdpr/delete-data"},
        )

    def erase_user(self, user: User, reason: str, legal_basis: str = "user_request") -> dict:
        """Delete in foreign key order and commit once"""
        user_id = user.id
        email = user.email
        first_name = user.first_name

        self.collect_user_data(user)

        reservation_ids = self.reservations.get_reservation_ids(self.db, user_id)
        self.consents.delete_user_consents(self.db, user_id)
        self.claims.delete_claims_for_reservations(self.db, reservation_ids)
        self.reservations.delete_user_reservations(self.db, user_id)
        self.logs.anonymize_user_logs(self.db, user_id, reason)
        self.db.expunge(user)
        self.users.delete_user(self.db, user_id)

        deletion_timestamp = utcnow()
        self.logs.create_log(
            self.db,
            action="deleted",
            data_type="user_data",
            legal_basis=legal_basis,
            details={"originalUserId": user_id, "reason": reason},
        )
        self.db.commit()

        logger.info(f"✅ Deleted all data of user {user_id} (reason: {reason})")
        return {
            "email": email,
            "firstName": first_name,
            "deletionTimestamp": deletion_timestamp,
            "reason": reason,
            "affectedDataTypes": AFFECTED_DATA_TYPES,
        }
