"""Picture claim repository - free photo print claims per family"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import PictureClaim


class PictureClaimRepository:
    """Repository for picture claim database operations"""

    @staticmethod
    def get_claim(
        db: Session, family_email: str, group_name: str, picture_type: str
    ) -> Optional[PictureClaim]:
        return (
            db.query(PictureClaim)
            .filter(
                PictureClaim.family_email == family_email.lower(),
                PictureClaim.group_name == group_name,
                PictureClaim.picture_type == picture_type,
            )
            .first()
        )

    @staticmethod
    def create_claim(db: Session, **claim_data) -> PictureClaim:
        claim = PictureClaim(**claim_data)
        db.add(claim)
        db.flush()
        return claim

    @staticmethod
    def get_family_claims(db: Session, family_email: str) -> list[PictureClaim]:
        return (
            db.query(PictureClaim)
            .filter(PictureClaim.family_email == family_email.lower())
            .order_by(PictureClaim.claimed_at.desc())
            .all()
        )

    @staticmethod
    def delete_claims_for_reservations(db: Session, reservation_ids: list[str]) -> int:
        if not reservation_ids:
            return 0
        return (
            db.query(PictureClaim)
            .filter(PictureClaim.reservation_id.in_(reservation_ids))
            .delete(synchronize_session=False)
        )
