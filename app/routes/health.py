"""Health check - reports configuration presence, not reachability"""

from datetime import datetime, timezone

from fastapi import APIRouter, Response
from fastapi.responses import JSONResponse

from .. import config

router = APIRouter(tags=["Health"])


def mask_smtp_user(smtp_user) -> str:
    return f"{smtp_user[:3]}..." if smtp_user else "not set"


@router.get("/health")
async def health():
    has_smtp = bool(config.SMTP_USER and config.SMTP_PASS)
    has_database = config.DATABASE_CONFIGURED

    status = {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": {
            "ENVIRONMENT": config.ENVIRONMENT,
            "hasSmtpConfig": has_smtp,
            "hasDatabaseConfig": has_database,
            "smtpUser": mask_smtp_user(config.SMTP_USER),
        },
        "services": {
            "database": "configured" if has_database else "missing config",
            "email": "configured" if has_smtp else "missing config",
        },
    }
    return JSONResponse(status, headers={"Access-Control-Allow-Origin": "*"})


@router.options("/health")
async def health_preflight():
    return Response(
        status_code=204,
        headers={
            "Access-Control-Allow-Origin": "*",
            "Access-Control-Allow-Methods": "GET, OPTIONS",
            "Access-Control-Allow-Headers": "Content-Type",
        },
    )
