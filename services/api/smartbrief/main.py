"""FastAPI application setup, error mapping and health endpoint."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from smartbrief.errors import ErrorKind, PipelineError
from smartbrief.routers.briefs import router as briefs_router
from smartbrief.settings import settings
from smartbrief.storage import MemoryCounterStore, RateLimiter

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="SmartBrief API",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

app.state.rate_limiter = RateLimiter(
    MemoryCounterStore(max_keys=settings.rate_limit_max_clients),
    settings.rate_limit_per_day,
)

app.include_router(briefs_router, prefix="/v1", tags=["briefs"])


@app.exception_handler(PipelineError)
async def pipeline_error_handler(request: Request, exc: PipelineError):
    if exc.http_status >= 500:
        logger.error("Request to %s failed: %r", request.url.path, exc)
    return JSONResponse(
        status_code=exc.http_status,
        content=exc.to_payload(include_details=not settings.is_production),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    content = {"error": "Invalid request body. Expected JSON with content, mode and inputType.", "code": ErrorKind.INVALID_REQUEST.value}
    if not settings.is_production:
        content["details"] = {"errors": [{"loc": list(e.get("loc", ())), "msg": e.get("msg")} for e in exc.errors()]}
    return JSONResponse(status_code=400, content=content)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    kind = ErrorKind.INVALID_REQUEST if exc.status_code < 500 else ErrorKind.INTERNAL
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail), "code": kind.value},
        headers=exc.headers,
    )


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s", request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error", "code": ErrorKind.INTERNAL.value})


@app.get("/health")
def health():
    """Return a simple health payload for uptime checks."""
    return {"status": "ok", "env": settings.app_env}
