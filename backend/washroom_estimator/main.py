"""
Washroom Estimator API
FastAPI service exposing the washroom costing and quotation-pricing engine.
"""
import os
import logging
import time
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from washroom_estimator.services.logging_config import setup_logging
from washroom_estimator.services.middleware import RequestTimingMiddleware
from washroom_estimator.services.perf_monitor import tracker as perf_tracker

# Load .env before anything reads the environment (no-op when the file is missing)
load_dotenv()

_log_level = os.getenv("LOG_LEVEL", "INFO")
_json_logs = os.getenv("LOG_FORMAT", "json").lower() != "text"
setup_logging(level=_log_level, json_output=_json_logs)
logger = logging.getLogger("washroom-api")

_PROCESS_START = time.monotonic()

if not os.getenv("DATABASE_URL"):
    logger.warning("MISSING env var: DATABASE_URL, running in dev mode")

from washroom_estimator.api.costing_routes import router as costing_router  # noqa: E402
from washroom_estimator.db import engine  # noqa: E402
from washroom_estimator.models.pricing_schema import PricingPolicy  # noqa: E402


@asynccontextmanager
async def lifespan(app: FastAPI):
    policy = PricingPolicy.from_env()
    logger.info(
        "Pricing policy: GST %.2f%%, simple margin %.2f%%, logistics %.2f%%",
        policy.gst_rate_pct, policy.simple_margin_pct, policy.logistics_pct,
    )
    yield
    await engine.dispose()


app = FastAPI(
    title="Washroom Estimator API",
    version="1.0.0",
    description="Costing and quotation pricing for washroom renovation projects",
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# CORS: restricted to allowed origins from env
# ---------------------------------------------------------------------------
_cors_default = "http://localhost:3000,http://localhost:5173"
cors_origins = [o.strip() for o in os.getenv("CORS_ORIGINS", _cors_default).split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "Accept", "X-Request-ID"],
)
# Request timing + X-Request-ID must be outermost so it wraps all other middleware
app.add_middleware(RequestTimingMiddleware)

app.include_router(costing_router)


@app.get("/health")
async def health_check():
    return {
        "status": "active",
        "version": "1.0.0",
        "db_configured": bool(os.getenv("DATABASE_URL")),
    }


@app.get("/metrics")
async def metrics():
    """Per-operation call counts and timings from the in-process tracker."""
    snapshot = perf_tracker.get_metrics()
    return {
        "uptime_seconds": round(time.monotonic() - _PROCESS_START, 1),
        **snapshot,
    }


def run():
    """Console entry point: ``washroom-estimator-api``."""
    import uvicorn

    uvicorn.run(
        "washroom_estimator.main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        log_config=None,
    )
