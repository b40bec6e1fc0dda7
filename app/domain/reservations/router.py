"""Reservation router - FastAPI endpoints for magazine reservations"""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from sqlalchemy.orm import Session

from ...database import get_db
from ...errors import ApiError
from ...rate_limiter import get_client_ip, rate_limit_reservations
from .schemas import (
    MagazineSummary,
    ReservationCreate,
    ReservationCreatedData,
    ReservationCreatedResponse,
)
from .service import ReservationService, confirmation_email_args, send_confirmation_email_task

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reservations", tags=["Reservations"])


def get_reservation_service(db: Session = Depends(get_db)) -> ReservationService:
    """Dependency injection for ReservationService"""
    return ReservationService(db)


async def require_json_content_type(request: Request):
    content_type = request.headers.get("content-type", "")
    if "application/json" not in content_type:
        raise ApiError(
            status_code=400,
            error="Invalid content type",
            message="Content-Type muss application/json sein.",
        )


async def reservation_body(request: Request) -> ReservationCreate:
    """Parse the body after the rate limit and content type checks have run"""
    try:
        payload = await request.json()
    except ValueError as e:
        raise RequestValidationError(
            [{"type": "json_invalid", "loc": ("body",), "msg": "JSON decode error", "input": {}}]
        ) from e

    try:
        return ReservationCreate.model_validate(payload)
    except ValidationError as e:
        raise RequestValidationError(e.errors(include_url=False)) from e


@router.post(
    "",
    status_code=201,
    response_model=ReservationCreatedResponse,
    dependencies=[Depends(rate_limit_reservations), Depends(require_json_content_type)],
)
async def create_reservation(
    request: Request,
    background_tasks: BackgroundTasks,
    data: ReservationCreate = Depends(reservation_body),
    service: ReservationService = Depends(get_reservation_service),
):
    """Reserve magazine copies and send the confirmation email in the background"""
    client_ip = get_client_ip(request)
    user_agent = request.headers.get("user-agent", "unknown")

    try:
        reservation, user, magazine = service.create_reservation(data, client_ip, user_agent)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"❌ Reservation creation error: {e}")
        service.log_failure(e)
        raise

    background_tasks.add_task(
        send_confirmation_email_task, **confirmation_email_args(reservation, user, magazine)
    )

    return ReservationCreatedResponse(
        data=ReservationCreatedData(
            id=reservation.id,
            status=reservation.status,
            expiresAt=reservation.expires_at,
            magazine=MagazineSummary(title=magazine.title, issueNumber=magazine.issue_number),
        )
    )


@router.get("")
async def list_reservations(
    request: Request,
    service: ReservationService = Depends(get_reservation_service),
):
    """Listing requires authentication, which is not offered; always empty"""
    service.log_list_access(get_client_ip(request))
    return {
        "success": True,
        "data": [],
        "message": "Authentication required for this endpoint",
    }
