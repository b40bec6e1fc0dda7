"""Reservation repository - Database operations for reservations and stock"""

from datetime import datetime

from sqlalchemy import update
from sqlalchemy.orm import Session, joinedload

from ...models import ACTIVE_RESERVATION_STATUSES, Magazine, Reservation


class ReservationRepository:
    """Repository for reservation database operations"""

    @staticmethod
    def reserve_stock(db: Session, magazine_id: str, quantity: int) -> bool:
        """Decrement available copies only if enough are left.

        A single conditional UPDATE, so two concurrent reservations can never
        both take the last copies.
        """
        result = db.execute(
            update(Magazine)
            .where(Magazine.id == magazine_id, Magazine.available_copies >= quantity)
            .values(available_copies=Magazine.available_copies - quantity)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    @staticmethod
    def release_stock(db: Session, magazine_id: str, quantity: int) -> None:
        db.execute(
            update(Magazine)
            .where(Magazine.id == magazine_id)
            .values(available_copies=Magazine.available_copies + quantity)
            .execution_options(synchronize_session=False)
        )

    @staticmethod
    def create_reservation(db: Session, **reservation_data) -> Reservation:
        reservation = Reservation(**reservation_data)
        db.add(reservation)
        db.flush()
        return reservation

    @staticmethod
    def get_user_reservations(db: Session, user_id: str) -> list[Reservation]:
        """All reservations of a user with their magazine, newest first"""
        return (
            db.query(Reservation)
            .options(joinedload(Reservation.magazine))
            .filter(Reservation.user_id == user_id)
            .order_by(Reservation.created_at.desc())
            .all()
        )

    @staticmethod
    def count_active_reservations(db: Session, user_id: str) -> int:
        return (
            db.query(Reservation)
            .filter(
                Reservation.user_id == user_id,
                Reservation.status.in_(ACTIVE_RESERVATION_STATUSES),
            )
            .count()
        )

    @staticmethod
    def get_reservation_ids(db: Session, user_id: str) -> list[str]:
        rows = db.query(Reservation.id).filter(Reservation.user_id == user_id).all()
        return [row[0] for row in rows]

    @staticmethod
    def delete_user_reservations(db: Session, user_id: str) -> int:
        return (
            db.query(Reservation)
            .filter(Reservation.user_id == user_id)
            .delete(synchronize_session=False)
        )

    @staticmethod
    def get_expired_pending(db: Session, now: datetime) -> list[Reservation]:
        return (
            db.query(Reservation)
            .filter(Reservation.status == "pending", Reservation.expires_at < now)
            .all()
        )
