"""FastAPI application entrypoint. No business logic; only wiring, middleware and error rendering."""

from dotenv import load_dotenv

load_dotenv()

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, NoResultFound
from starlette.exceptions import HTTPException as StarletteHTTPException

from inkwell.api.cookies import clear_refresh_cookie
from inkwell.api.v1 import router as v1_router
from inkwell.core.config import settings
from inkwell.core.errors import ApiError, AuthenticationError, ErrorCode
from inkwell.core.logging_config import configure_logging
from inkwell.schemas.common import ErrorResponse

configure_logging(settings)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    if settings.uses_default_secrets:
        logger.warning(
            "JWT secrets are using development defaults; set JWT_ACCESS_SECRET and "
            "JWT_REFRESH_SECRET before deploying"
        )
    yield


app = FastAPI(
    title="Inkwell API",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error_response(
    status_code: int,
    message: str,
    code: str | None = None,
    errors: dict[str, str] | None = None,
    error: str | None = None,
) -> JSONResponse:
    body = ErrorResponse(message=message, code=code, errors=errors, error=error)
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(by_alias=True, exclude_none=True),
    )


@app.exception_handler(ApiError)
async def api_error_handler(_request: Request, exc: ApiError) -> JSONResponse:
    response = _error_response(
        exc.status_code,
        exc.message,
        code=exc.code.value if exc.code else None,
        errors=exc.errors,
    )
    if isinstance(exc, AuthenticationError) and exc.clear_session:
        clear_refresh_cookie(response, settings)
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Flatten validation errors into {field: message}, keyed by the last location part."""
    errors: dict[str, str] = {}
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        field = loc[-1] if loc else "body"
        errors.setdefault(field, err.get("msg", "Invalid value"))
    return _error_response(
        400, "Validation failed", code=ErrorCode.VALIDATION_ERROR.value, errors=errors
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(
    _request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    code = ErrorCode.NOT_FOUND.value if exc.status_code == 404 else None
    return _error_response(exc.status_code, message, code=code)


@app.exception_handler(IntegrityError)
async def integrity_error_handler(_request: Request, exc: IntegrityError) -> JSONResponse:
    logger.warning("Integrity error: %s", exc.orig)
    return _error_response(
        409, "A record with these unique fields already exists", code=ErrorCode.CONFLICT.value
    )


@app.exception_handler(NoResultFound)
async def not_found_handler(_request: Request, _exc: NoResultFound) -> JSONResponse:
    return _error_response(404, "Record not found", code=ErrorCode.NOT_FOUND.value)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _error_response(
        500,
        "Internal server error",
        code=ErrorCode.INTERNAL_ERROR.value,
        error=str(exc) if settings.is_development else None,
    )


app.include_router(v1_router, prefix=settings.API_PREFIX)


@app.get("/")
def root() -> dict[str, str]:
    """Root route; minimal payload for discovery."""
    return {"message": "Inkwell API"}
