"""
API error envelope and exception handlers

Every failure leaves the API in the same shape:
    {"success": false, "error": "<label>", "message": "<German text>", "errors": [...], "details": {...}}
"""

import logging
from typing import Any, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = (
    "Es ist ein unerwarteter Fehler aufgetreten. Bitte versuchen Sie es später erneut."
)
VALIDATION_ERROR_MESSAGE = "Eingabedaten sind ungültig."

# German fallbacks for pydantic's built-in error types
VALIDATION_TYPE_MESSAGES = {
    "missing": "Dieses Feld ist erforderlich",
    "string_type": "Muss ein Text sein",
    "int_type": "Muss eine ganze Zahl sein",
    "int_parsing": "Muss eine ganze Zahl sein",
    "int_from_float": "Muss eine ganze Zahl sein",
    "bool_type": "Muss wahr oder falsch sein",
    "bool_parsing": "Muss wahr oder falsch sein",
    "dict_type": "Ungültiges Objekt",
    "model_type": "Ungültiges Objekt",
    "model_attributes_type": "Ungültiges Objekt",
    "literal_error": "Ungültiger Wert",
    "uuid_type": "Ungültige ID",
    "uuid_parsing": "Ungültige ID",
    "date_type": "Ungültiges Datum",
    "date_parsing": "Ungültiges Datum",
    "date_from_datetime_parsing": "Ungültiges Datum",
    "datetime_type": "Ungültiger Zeitstempel",
    "datetime_parsing": "Ungültiger Zeitstempel",
    "datetime_from_date_parsing": "Ungültiger Zeitstempel",
    "json_invalid": "Ungültiger JSON-Body.",
    "extra_forbidden": "Unbekanntes Feld",
}


class ApiError(HTTPException):
    """HTTPException carrying the German user-facing message"""

    def __init__(
        self,
        status_code: int,
        error: str,
        message: str,
        errors: Optional[list[dict]] = None,
        details: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
    ):
        super().__init__(status_code=status_code, detail=message, headers=headers)
        self.error = error
        self.message = message
        self.errors = errors
        self.details = details


def error_body(error: str, message: str, errors=None, details=None) -> dict:
    body = {"success": False, "error": error, "message": message}
    if errors is not None:
        body["errors"] = errors
    if details is not None:
        body["details"] = details
    return body


def format_validation_errors(raw_errors) -> list[dict]:
    """Map pydantic errors to [{field, message}] with dotted field paths"""
    formatted = []
    for err in raw_errors:
        error_type = err.get("type")
        if error_type == "json_invalid":
            field = "body"
        else:
            loc = [str(part) for part in err.get("loc", ()) if part != "body"]
            field = ".".join(loc)

        # Only custom validators carry a German message in ctx
        ctx_error = (err.get("ctx") or {}).get("error")
        if error_type == "value_error" and ctx_error is not None and str(ctx_error):
            message = str(ctx_error)
        else:
            message = VALIDATION_TYPE_MESSAGES.get(error_type, err.get("msg", "Ungültiger Wert"))

        formatted.append({"field": field, "message": message})
    return formatted


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.error, exc.message, exc.errors, exc.details),
        headers=exc.headers,
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Schema failures are answered with 400 and a field/message list"""
    errors = format_validation_errors(exc.errors())
    logger.warning(f"⚠️ Validation failed for {request.method} {request.url.path}: {errors}")
    return JSONResponse(
        status_code=400,
        content=error_body("Validation failed", VALIDATION_ERROR_MESSAGE, errors=errors),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        f"❌ Unhandled exception in {request.method} {request.url.path}: {exc}",
        exc_info=True,
    )
    return JSONResponse(
        status_code=500,
        content=error_body("Internal server error", GENERIC_ERROR_MESSAGE),
    )


def setup_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
