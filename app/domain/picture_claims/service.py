"""Picture claim service - one free group and one Vorschüler picture per family and group"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...errors import ApiError
from .repository import PictureClaimRepository

logger = logging.getLogger(__name__)

PICTURE_TYPE_GROUP = "group"
PICTURE_TYPE_VORSCHUL = "vorschul"

# Vorschüler pictures ordered without a group are claimed under this key
VORSCHUL_DEFAULT_GROUP = "Vorschule"

PICTURE_LABELS = {
    PICTURE_TYPE_GROUP: "Gruppenbild",
    PICTURE_TYPE_VORSCHUL: "Vorschüler-Bild",
}


def duplicate_claim_message(picture_type: str, group_name: str) -> str:
    label = PICTURE_LABELS[picture_type]
    return (
        f'Sie haben bereits ein {label} für die Gruppe "{group_name}" bestellt. '
        f"Pro Familie ist nur ein {label} pro Gruppe erlaubt."
    )


def requested_claims(
    order_group_picture: bool,
    child_group_name: Optional[str],
    order_vorschul_picture: bool,
) -> list[tuple[str, str]]:
    """(picture_type, group_name) pairs an order would claim"""
    claims = []
    if order_group_picture and child_group_name:
        claims.append((PICTURE_TYPE_GROUP, child_group_name))
    if order_vorschul_picture:
        claims.append((PICTURE_TYPE_VORSCHUL, child_group_name or VORSCHUL_DEFAULT_GROUP))
    return claims


class PictureClaimService:
    """Service layer for picture claim business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = PictureClaimRepository()

    def has_existing_claim(self, email: str, group_name: str, picture_type: str) -> bool:
        return self.repo.get_claim(self.db, email, group_name, picture_type) is not None

    def validate_picture_order(
        self,
        email: str,
        order_group_picture: bool,
        child_group_name: Optional[str],
        order_vorschul_picture: bool,
        child_is_vorschueler: bool,
    ) -> list[str]:
        """Return the German reasons why the order cannot be accepted (empty if valid)"""
        errors = []
        if order_vorschul_picture and not child_is_vorschueler:
            errors.append(
                "Um ein Vorschüler-Bild zu bestellen, muss Ihr Kind als Vorschüler markiert sein."
            )

        for picture_type, group_name in requested_claims(
            order_group_picture, child_group_name, order_vorschul_picture
        ):
            if self.has_existing_claim(email, group_name, picture_type):
                errors.append(duplicate_claim_message(picture_type, group_name))

        return errors

    def ensure_claimable(
        self,
        email: str,
        order_group_picture: bool,
        child_group_name: Optional[str],
        order_vorschul_picture: bool,
        child_is_vorschueler: bool,
    ) -> None:
        """Raise 409 when the family already claimed one of the requested pictures"""
        errors = self.validate_picture_order(
            email, order_group_picture, child_group_name, order_vorschul_picture, child_is_vorschueler
        )
        if errors:
            logger.warning(f"⚠️ Picture order rejected for {email}: {errors}")
            raise ApiError(
                status_code=409,
                error="Picture already claimed",
                message="Die Bildbestellung ist nicht möglich.",
                errors=[{"field": "pictures", "message": error} for error in errors],
            )

    def create_claims(
        self,
        email: str,
        reservation_id: str,
        child_name: str,
        order_group_picture: bool,
        child_group_name: Optional[str],
        order_vorschul_picture: bool,
    ) -> list:
        """Add claim rows for a reservation; committed with the reservation"""
        claims = []
        for picture_type, group_name in requested_claims(
            order_group_picture, child_group_name, order_vorschul_picture
        ):
            claims.append(
                self.repo.create_claim(
                    self.db,
                    family_email=email.lower(),
                    group_name=group_name,
                    picture_type=picture_type,
                    child_name=child_name,
                    reservation_id=reservation_id,
                )
            )
        return claims
