import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from riskcheck.routers import assessments, exercises, sessions
from riskcheck.settings import settings

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

# Rate limiter: RATE_LIMIT per IP (default 100/minute)
# Disabled in test mode (TESTING env var set by conftest.py)
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.rate_limit],
    enabled=not settings.testing,
)

app = FastAPI(
    title="Health Risk Check API",
    description="転倒リスク・腰痛リスクのセルフチェックと運動提案",
    version="1.0.0"
)

# Attach rate limiter
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)

# CORS 設定
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition"],
)

# ルーター登録
app.include_router(assessments.router, prefix="/api/assessments", tags=["assessments"])
app.include_router(exercises.router, prefix="/api/exercises", tags=["exercises"])
app.include_router(sessions.router, prefix="/api/sessions", tags=["sessions"])


@app.on_event("startup")
async def startup_event():
    if settings.openai_api_key:
        logger.info("Narrative generation enabled (model: %s)", settings.openai_model)
    else:
        logger.warning("OPENAI_API_KEY is not set; narratives will use the fallback text")
    logger.info("Session TTL: %ss, rate limit: %s", settings.session_ttl_seconds, settings.rate_limit)


@app.get("/")
async def root():
    return {"message": "Health Risk Check API", "version": "1.0.0"}


@app.get("/health")
async def health_check():
    return {"status": "healthy"}
