from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException


class ReadingError(Exception):
    """Base class for errors that map to a JSON error response."""

    status_code = 500
    code = "internal_error"
    default_message = "Error interno."

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)


class ClientInputError(ReadingError):
    status_code = 400
    code = "missing_captcha"
    default_message = "Falta el token de verificación reCAPTCHA."


class NotAuthenticated(ReadingError):
    status_code = 401
    code = "not_authenticated"
    default_message = "Debes iniciar sesión."


class AbuseSuspected(ReadingError):
    status_code = 403
    code = "captcha_failed"
    default_message = "No se pudo verificar que no eres un robot."


class ReadingNotFound(ReadingError):
    status_code = 404
    code = "reading_not_found"
    default_message = "No se encontró la lectura."


class QuotaExceeded(ReadingError):
    status_code = 429
    code = "daily_quota_exceeded"
    default_message = "Ya realizaste tu lectura gratuita de hoy. Vuelve mañana."


class UpstreamDataUnavailable(ReadingError):
    status_code = 500
    code = "card_data_unavailable"
    default_message = "No se pudieron obtener los datos de las cartas."


def _error_body(request: Request, code: str, message: str) -> dict:
    return {
        "error": message,
        "code": code,
        "request_id": getattr(request.state, "request_id", None),
    }


def reading_error_handler(request: Request, exc: ReadingError):
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(request, exc.code, str(exc)),
    )


def http_error_handler(request: Request, exc: Exception):
    status = getattr(exc, "status_code", 500)
    code = getattr(exc, "code", "http_error" if status < 500 else "internal_error")
    if isinstance(exc, StarletteHTTPException):
        message = str(exc.detail)
    elif status >= 500:
        message = "Internal server error"
    else:
        message = str(exc)
    return JSONResponse(
        status_code=status,
        content=_error_body(request, code, message),
        headers=getattr(exc, "headers", None),
    )


def validation_error_handler(request: Request, exc: RequestValidationError):
    raw = exc.errors()
    details = []
    for e in raw:
        item = dict(e)
        ctx = item.get("ctx")
        if ctx is not None:
            item["ctx"] = {k: str(v) for k, v in ctx.items()}
        details.append(item)
    content = _error_body(request, "validation_error", "Invalid request")
    content["details"] = details
    return JSONResponse(status_code=422, content=jsonable_encoder(content))
