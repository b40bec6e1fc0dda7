"""Magazine repository - Database operations for magazine issues"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Magazine


class MagazineRepository:
    """Repository for magazine database operations"""

    @staticmethod
    def get_available_magazines(db: Session) -> list[Magazine]:
        """Active issues with copies left, newest first"""
        return (
            db.query(Magazine)
            .filter(Magazine.is_active.is_(True), Magazine.available_copies > 0)
            .order_by(Magazine.publish_date.desc())
            .all()
        )

    @staticmethod
    def get_active_magazine(db: Session, magazine_id: str) -> Optional[Magazine]:
        return (
            db.query(Magazine)
            .filter(Magazine.id == magazine_id, Magazine.is_active.is_(True))
            .first()
        )

    @staticmethod
    def get_magazine_by_issue(db: Session, title: str, issue_number: str) -> Optional[Magazine]:
        return (
            db.query(Magazine)
            .filter(Magazine.title == title, Magazine.issue_number == issue_number)
            .first()
        )

    @staticmethod
    def create_magazine(db: Session, **magazine_data) -> Magazine:
        magazine = Magazine(**magazine_data)
        db.add(magazine)
        db.commit()
        db.refresh(magazine)
        return magazine
