"""GDPR router - consent, data export and data deletion endpoints"""

import json
import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Request, Response
from sqlalchemy.orm import Session

from ...database import get_db
from ...email_service import EmailError, send_deletion_confirmation
from ...rate_limiter import get_client_ip
from .schemas import (
    ConsentRecordRequest,
    ConsentWithdrawRequest,
    DataDeletionRequest,
    DataExportRequest,
    DeletionEligibilityRequest,
)
from .service import GdprService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/gdpr", tags=["GDPR"])


def get_gdpr_service(db: Session = Depends(get_db)) -> GdprService:
    """Dependency injection for GdprService"""
    return GdprService(db)


async def send_deletion_email_task(to: str, first_name: str, deletion_timestamp) -> None:
    """Background task; the deletion already happened, so a failed email is only logged"""
    try:
        await send_deletion_confirmation(to, first_name, deletion_timestamp)
        logger.info(f"✅ Deletion confirmation sent to {to}")
    except EmailError as e:
        logger.error(f"❌ Failed to send deletion confirmation email: {e}")


# ============================================================================
# CONSENT
# ============================================================================


@router.post("/consent")
async def record_consent(
    data: ConsentRecordRequest,
    request: Request,
    service: GdprService = Depends(get_gdpr_service),
):
    """Record consent; anonymous consent without userId is only audit-logged"""
    message = service.record_consent(
        user_id=data.userId,
        consents=data.consents.as_dict(),
        timestamp=data.timestamp,
        ip_address=data.ipAddress or get_client_ip(request),
        user_agent=data.userAgent or request.headers.get("user-agent", "unknown"),
    )
    return {"success": True, "message": message}


@router.delete("/consent")
async def withdraw_consent(
    data: ConsentWithdrawRequest,
    service: GdprService = Depends(get_gdpr_service),
):
    message = service.withdraw_consent(data.userId, data.consentType)
    return {"success": True, "message": message}


@router.get("/consent")
async def get_consents(
    userId: Optional[str] = Query(None),
    service: GdprService = Depends(get_gdpr_service),
):
    consents = service.get_consents(userId)
    return {"success": True, "data": [c.model_dump(mode="json") for c in consents]}


# ============================================================================
# EXPORT
# ============================================================================


@router.post("/export-data")
async def export_data(
    data: DataExportRequest,
    service: GdprService = Depends(get_gdpr_service),
):
    """Download all personal data as a JSON attachment"""
    export = service.export_user_data(data.userId)
    body = json.dumps(export, indent=2, ensure_ascii=False).encode("utf-8")
    filename = f"datenexport-{data.userId}-{date.today().isoformat()}.json"
    return Response(
        content=body,
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# ============================================================================
# DELETION
# ============================================================================


@router.delete("/delete-data")
async def delete_data(
    data: DataDeletionRequest,
    background_tasks: BackgroundTasks,
    service: GdprService = Depends(get_gdpr_service),
):
    """Erase the user unless they still hold active reservations"""
    try:
        result = service.delete_user_data(data.userId, data.reason)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"❌ Data deletion error for user {data.userId}: {e}")
        service.log_deletion_failure(e)
        raise

    background_tasks.add_task(
        send_deletion_email_task,
        to=result["email"],
        first_name=result["firstName"],
        deletion_timestamp=result["deletionTimestamp"],
    )

    return {
        "success": True,
        "message": "Alle Ihre Daten wurden erfolgreich gelöscht.",
        "details": {
            "deletionTimestamp": result["deletionTimestamp"].isoformat(),
            "reason": result["reason"],
            "affectedDataTypes": result["affectedDataTypes"],
        },
    }


@router.post("/delete-data")
async def check_deletion_eligibility(
    data: DeletionEligibilityRequest,
    service: GdprService = Depends(get_gdpr_service),
):
    eligibility = service.check_deletion_eligibility(data.userId)
    return {
        "success": True,
        "data": eligibility,
        "message": "Löschung ist möglich." if eligibility["canDelete"] else "Löschung derzeit nicht möglich.",
    }
