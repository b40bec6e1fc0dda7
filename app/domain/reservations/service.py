"""Reservation service - Business logic for magazine reservations"""

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...email_service import EmailError, send_reservation_confirmation
from ...errors import ApiError
from ...models import Magazine, Reservation, User, default_expiry_date, utcnow
from ..gdpr.audit import log_data_processing
from ..gdpr.repository import ProcessingLogRepository
from ..gdpr.service import GdprService
from ..magazines.service import MagazineService
from ..picture_claims.service import PictureClaimService
from ..users.repository import UserRepository
from .repository import ReservationRepository
from .schemas import ReservationCreate

logger = logging.getLogger(__name__)


def insufficient_copies_error(available: int) -> ApiError:
    return ApiError(
        status_code=409,
        error="Insufficient copies",
        message=f"Nur noch {available} Exemplare verfügbar.",
    )


def build_consent_reference(user_id: str) -> str:
    return f"consent-{user_id}-{int(utcnow().timestamp() * 1000)}"


class ReservationService:
    """Service layer for reservation business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ReservationRepository()
        self.users = UserRepository()
        self.logs = ProcessingLogRepository()
        self.magazines = MagazineService(db)
        self.gdpr = GdprService(db)
        self.picture_claims = PictureClaimService(db)

    def create_reservation(
        self,
        data: ReservationCreate,
        client_ip: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> tuple[Reservation, User, Magazine]:
        """Reserve copies for a parent.

        Steps run in this order: magazine lookup (404), stock check (409),
        picture claim check (409), user and consent bookkeeping, the
        conditional stock decrement, then the reservation insert. Everything
        is committed once at the end.
        """
        logger.info(
            f"📥 Reservation request for magazine {data.magazineId} "
            f"({data.quantity}x, {data.deliveryMethod})"
        )

        magazine = self.magazines.get_reservable_magazine(data.magazineId)
        if magazine.available_copies < data.quantity:
            logger.warning(
                f"⚠️ Not enough copies of {magazine.id}: "
                f"{magazine.available_copies} < {data.quantity}"
            )
            raise insufficient_copies_error(magazine.available_copies)

        if data.orders_pictures:
            self.picture_claims.ensure_claimable(
                data.email,
                data.orderGroupPicture,
                data.childGroupName,
                data.orderVorschulPicture,
                data.childIsVorschueler,
            )

        user = self._get_or_create_user(data, client_ip, user_agent)

        if not self.repo.reserve_stock(self.db, magazine.id, data.quantity):
            self.db.rollback()
            self.db.refresh(magazine)
            logger.warning(f"⚠️ Stock of {magazine.id} taken by a concurrent reservation")
            raise insufficient_copies_error(magazine.available_copies)

        reservation = self.repo.create_reservation(self.db, **self._reservation_fields(data, user))

        try:
            if data.orders_pictures:
                self.picture_claims.create_claims(
                    data.email,
                    reservation.id,
                    data.childName,
                    data.orderGroupPicture,
                    data.childGroupName,
                    data.orderVorschulPicture,
                )

            self.logs.create_log(
                self.db,
                action="reservation_created",
                data_type="reservation",
                legal_basis="consent",
                user_id=user.id,
                ip_address=client_ip,
                details={
                    "reservationId": reservation.id,
                    "magazineTitle": magazine.title,
                    "quantity": data.quantity,
                },
            )
            self.db.commit()
        except IntegrityError as e:
            # Unique picture claim taken between the check and the insert
            self.db.rollback()
            logger.warning(f"⚠️ Picture claim conflict on insert: {e}")
            raise ApiError(
                status_code=409,
                error="Picture already claimed",
                message="Die Bildbestellung ist nicht möglich.",
                errors=[
                    {
                        "field": "pictures",
                        "message": "Für diese Gruppe wurde bereits ein Bild bestellt.",
                    }
                ],
            ) from e

        self.db.refresh(reservation)
        self.db.refresh(magazine)
        logger.info(f"✅ Reservation {reservation.id} created for user {user.id}")
        return reservation, user, magazine

    def _get_or_create_user(
        self, data: ReservationCreate, client_ip: Optional[str], user_agent: Optional[str]
    ) -> User:
        consents = data.consents.as_dict()
        user = self.users.get_user_by_email(self.db, data.email)

        if user is None:
            address = data.address if data.deliveryMethod == "shipping" else None
            user = self.users.create_user(
                self.db,
                email=data.email,
                first_name=data.firstName,
                last_name=data.lastName,
                phone=data.phone,
                street=address.street if address else None,
                house_number=address.houseNumber if address else None,
                address_line2=address.addressLine2 if address else None,
                postal_code=address.postalCode if address else None,
                city=address.city if address else None,
                country=address.country if address else None,
            )
            self.gdpr.record_user_consents(user.id, consents, client_ip, user_agent)
            logger.info(f"✅ Created user {user.id}")
            return user

        self.users.update_activity(self.db, user)
        if self.gdpr.needs_consent_refresh(user.id):
            self.gdpr.record_user_consents(user.id, consents, client_ip, user_agent)
        return user

    @staticmethod
    def _reservation_fields(data: ReservationCreate, user: User) -> dict:
        shipping = data.address if data.deliveryMethod == "shipping" else None
        return {
            "user_id": user.id,
            "magazine_id": data.magazineId,
            "quantity": data.quantity,
            "status": "pending",
            "reservation_date": utcnow(),
            "delivery_method": data.deliveryMethod,
            "pickup_date": data.pickupDate,
            "pickup_location": data.pickupLocation if data.deliveryMethod == "pickup" else None,
            "payment_method": data.paymentMethod,
            "shipping_street": shipping.street if shipping else None,
            "shipping_house_number": shipping.houseNumber if shipping else None,
            "shipping_address_line2": shipping.addressLine2 if shipping else None,
            "shipping_postal_code": shipping.postalCode if shipping else None,
            "shipping_city": shipping.city if shipping else None,
            "shipping_country": shipping.country if shipping else None,
            "notes": data.notes,
            "expires_at": default_expiry_date(),
            "consent_reference": build_consent_reference(user.id),
            "order_group_picture": data.orderGroupPicture,
            "child_group_name": data.childGroupName,
            "order_vorschul_picture": data.orderVorschulPicture,
            "child_is_vorschueler": data.childIsVorschueler,
            "child_name": data.childName,
        }

    def log_failure(self, error: Exception) -> None:
        """Best-effort audit entry for an unexpected failure"""
        self.db.rollback()
        log_data_processing(
            self.db,
            action="created",
            data_type="processing_log",
            legal_basis="legitimate_interest",
            details={"error": str(error), "endpoint": "/api/reservations", "method": "POST"},
        )

    def log_list_access(self, client_ip: Optional[str]) -> None:
        log_data_processing(
            self.db,
            action="accessed",
            data_type="reservation",
            legal_basis="legitimate_interest",
            ip_address=client_ip,
            details={"endpoint": "/api/reservations", "method": "GET"},
        )


def confirmation_email_args(reservation: Reservation, user: User, magazine: Magazine) -> dict:
    """Plain values for the background email, captured while the session is open"""
    return {
        "to": user.email,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "reservation_id": reservation.id,
        "magazine_title": magazine.title,
        "issue_number": magazine.issue_number,
        "quantity": reservation.quantity,
        "delivery_method": reservation.delivery_method,
        "reservation_date": reservation.reservation_date,
        "pickup_location": reservation.pickup_location,
        "payment_method": reservation.payment_method,
        "order_group_picture": reservation.order_group_picture,
        "child_group_name": reservation.child_group_name,
        "order_vorschul_picture": reservation.order_vorschul_picture,
        "child_name": reservation.child_name,
    }


async def send_confirmation_email_task(**email_args) -> None:
    """Background task; a failed email never fails the reservation"""
    try:
        await send_reservation_confirmation(**email_args)
        logger.info(
            f"✅ Confirmation email sent to {email_args['to']} "
            f"for reservation {email_args['reservation_id']}"
        )
    except EmailError as e:
        logger.error(
            f"❌ Failed to send confirmation email for reservation "
            f"{email_args['reservation_id']}: {e}"
        )
