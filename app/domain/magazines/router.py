"""Magazine router - public list of reservable issues"""

import logging

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from ...database import get_db
from ...rate_limiter import get_client_ip
from .schemas import MagazineListResponse, MagazineResponse
from .service import MagazineService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/magazines", tags=["Magazines"])


def get_magazine_service(db: Session = Depends(get_db)) -> MagazineService:
    """Dependency injection for MagazineService"""
    return MagazineService(db)


@router.get("", response_model=MagazineListResponse)
async def list_magazines(
    request: Request,
    response: Response,
    service: MagazineService = Depends(get_magazine_service),
):
    """Active magazine issues with available copies, newest first"""
    magazines = service.list_available(get_client_ip(request))
    response.headers["Cache-Control"] = "public, max-age=300"
    data = [MagazineResponse.from_model(m) for m in magazines]
    return MagazineListResponse(data=data, count=len(data))
