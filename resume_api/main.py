import logging
import time
import traceback
import uuid

import sentry_sdk
from fastapi import Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import JSONResponse

from resume_api.config import get_settings
from resume_api.database import get_db
from resume_api.dependencies import ACCESS_TOKEN_HEADER, apply_refreshed_tokens, limiter
from resume_api.exceptions import ResumeAPIError, first_error_message
from resume_api.routers import resumes, users

settings = get_settings()
if settings.sentry_dsn:
    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        traces_sample_rate=0.1,
        environment=settings.environment,
        send_default_pii=False,
    )

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}


app = FastAPI(
    title="Resume API",
    description="""
## Resume API

- **Users**: Registration, login, logout, password change and account withdrawal
- **Resumes**: Résumé basic info with education, experience, skill and portfolio-file entries

Protected endpoints take `Authorization: Bearer <accessToken>`. The refresh token
travels only in the HttpOnly `refreshToken` cookie. When the access token is close
to expiry, a protected response carries a new one in the `Authorization` header.
""",
    version="1.0.0",
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", REQUEST_ID_HEADER],
    # Browsers hide response headers from scripts unless listed here.
    expose_headers=[ACCESS_TOKEN_HEADER, REQUEST_ID_HEADER, "Content-Disposition"],
)


@app.middleware("http")
async def request_context(request: Request, call_next):
    """Tag each request with an id, log it with its duration, add security headers
    and any credentials the auth guard renewed."""
    request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:8]
    started = time.perf_counter()

    response = await call_next(request)

    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.info(
        "[%s] %s %s -> %d (%.1fms)",
        request_id, request.method, request.url.path, response.status_code, elapsed_ms,
    )
    apply_refreshed_tokens(request, response)
    response.headers[REQUEST_ID_HEADER] = request_id
    for name, value in SECURITY_HEADERS.items():
        response.headers.setdefault(name, value)
    return response


app.include_router(users.router, prefix="/api/users", tags=["Users"])
app.include_router(resumes.router, prefix="/api/resumes", tags=["Resumes"])


@app.exception_handler(ResumeAPIError)
async def resume_api_error_handler(request: Request, exc: ResumeAPIError):
    logger.info("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message}, headers=headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """422 with the raw errors plus a one-line summary of the first."""
    errors = exc.errors()
    logger.warning("Request validation error: path=%s errors=%s", request.url.path, errors)
    return JSONResponse(
        status_code=422,
        content={"detail": jsonable_encoder(errors), "message": first_error_message(errors)},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    if isinstance(exc, StarletteHTTPException):
        raise exc
    logger.exception("Unhandled exception: %s (path=%s)", exc, request.url.path)
    if settings.debug:
        return JSONResponse(
            status_code=500,
            content={"detail": str(exc), "traceback": traceback.format_exc()},
        )
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


@app.get("/health", status_code=200)
async def health_check(db: AsyncSession = Depends(get_db)):
    """
    Liveness plus database connectivity.

    **Response:** {status: "ok"|"degraded", checks: {database: "ok"|"error: ..."}}
    """
    checks: dict[str, str] = {}
    try:
        await db.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as e:
        logger.error("Health check database failure: %s", e)
        checks["database"] = f"error: {e}"

    status = "ok" if all(v == "ok" for v in checks.values()) else "degraded"
    return {"status": status, "checks": checks}
