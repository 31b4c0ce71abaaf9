from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import StreamingResponse
from datetime import datetime, timezone
from typing import AsyncIterator

from smartbrief.errors import DailyLimitExceeded
from smartbrief.models import BriefResponse, MODES, ModeInfo, SummaryRequest, sse_frame
from smartbrief.pipeline import SummaryPipeline, build_pipeline
from smartbrief.prompts import audience_for
from smartbrief.settings import settings
from smartbrief.storage import RateLimiter

router = APIRouter()

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}

STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "X-Accel-Buffering": "no",
    **CORS_HEADERS,
}


def day_key_utc() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d")


def client_ip(request: Request) -> str:
    # best-effort; behind proxies you'd use X-Forwarded-For
    forwarded = request.headers.get("x-forwarded-for", "").split(",")[0].strip()
    if forwarded:
        return forwarded
    return request.client.host if request.client else "unknown"


def get_pipeline() -> SummaryPipeline:
    return build_pipeline(settings)


def get_rate_limiter(request: Request) -> RateLimiter:
    return request.app.state.rate_limiter


def enforce_rate_limit(request: Request, limiter: RateLimiter = Depends(get_rate_limiter)) -> str:
    ip = client_ip(request)
    if not limiter.allowed(ip, day_key_utc()):
        raise DailyLimitExceeded(limiter.limit)
    return ip


@router.post("/generate-brief", response_model=BriefResponse)
async def generate_brief(
    payload: SummaryRequest,
    request: Request,
    ip: str = Depends(enforce_rate_limit),
    pipeline: SummaryPipeline = Depends(get_pipeline),
    limiter: RateLimiter = Depends(get_rate_limiter),
):
    result = await pipeline.run(payload, is_disconnected=request.is_disconnected)
    limiter.record(ip, day_key_utc())
    return BriefResponse.from_result(result)


@router.post("/generate-brief-stream")
async def generate_brief_stream(
    payload: SummaryRequest,
    request: Request,
    ip: str = Depends(enforce_rate_limit),
    pipeline: SummaryPipeline = Depends(get_pipeline),
    limiter: RateLimiter = Depends(get_rate_limiter),
):
    # Validation failures are answered as plain JSON before the stream opens.
    pipeline.validate(payload)

    async def frames() -> AsyncIterator[str]:
        async for event in pipeline.stream(payload, is_disconnected=request.is_disconnected):
            if event.type == "complete":
                limiter.record(ip, day_key_utc())
            yield sse_frame(event)

    return StreamingResponse(frames(), media_type="text/event-stream", headers=STREAM_HEADERS)


@router.options("/generate-brief")
@router.options("/generate-brief-stream")
def brief_options():
    return Response(status_code=200, headers=CORS_HEADERS)


@router.get("/modes", response_model=list[ModeInfo])
def list_modes():
    return [ModeInfo(mode=m, audience=audience_for(m)) for m in MODES]
