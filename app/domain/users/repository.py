"""User repository - Database operations for parents who reserved"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...models import ACTIVE_RESERVATION_STATUSES, Reservation, User, utcnow


class UserRepository:
    """Repository for user database operations"""

    @staticmethod
    def get_user_by_id(db: Session, user_id: str) -> Optional[User]:
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def get_user_by_email(db: Session, email: str) -> Optional[User]:
        """Emails are stored lower-cased"""
        return db.query(User).filter(User.email == email.lower()).first()

    @staticmethod
    def create_user(db: Session, **user_data) -> User:
        user = User(**user_data)
        db.add(user)
        db.flush()
        return user

    @staticmethod
    def update_activity(db: Session, user: User) -> User:
        user.last_activity = utcnow()
        db.flush()
        return user

    @staticmethod
    def delete_user(db: Session, user_id: str) -> int:
        return db.query(User).filter(User.id == user_id).delete(synchronize_session=False)

    @staticmethod
    def get_users_past_retention(db: Session, now: datetime) -> list[User]:
        """Users whose retention date has passed and who hold no active reservation"""
        active_user_ids = db.query(Reservation.user_id).filter(
            Reservation.status.in_(ACTIVE_RESERVATION_STATUSES)
        )
        return (
            db.query(User)
            .filter(
                User.data_retention_until.isnot(None),
                User.data_retention_until < now,
                User.id.notin_(active_user_ids),
            )
            .all()
        )
