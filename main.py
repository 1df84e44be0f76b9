# main.py

from dotenv import load_dotenv
load_dotenv()

import logging
import time
import uuid

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware

from hero_config import (
    ENABLE_JOB_SCHEDULER,
    HEROES_AUTO_REVEAL_CHANNEL_ID,
    HEROES_TZ,
    LOG_LEVEL,
    is_auto_reveal_enabled,
)
from slack_heroes import get_recognition_service
from slack_heroes import router as heroes_router

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s %(message)s")


# Request Logging Middleware
request_logger = logging.getLogger("request_logging")

class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request_id = str(uuid.uuid4())
        start_time = time.time()

        response = await call_next(request)

        latency_ms = (time.time() - start_time) * 1000

        request_logger.info(
            "request_completed",
            extra={
                "request_id": request_id,
                "endpoint": request.url.path,
                "method": request.method,
                "status_code": response.status_code,
                "latency_ms": round(latency_ms, 2),
            }
        )

        return response


app = FastAPI()
app.add_middleware(RequestLoggingMiddleware)
app.include_router(heroes_router, tags=["heroes"])

# ------------------------------------------------------------------
# Scheduler setup
# ------------------------------------------------------------------
scheduler_logger = logging.getLogger("heroes_scheduler")
scheduler = AsyncIOScheduler(timezone=HEROES_TZ)


def heroes_monthly_reveal_job():
    job_corr = "heroes_monthly_reveal_job"
    try:
        outcome = get_recognition_service().reveal_leaderboard(HEROES_AUTO_REVEAL_CHANNEL_ID)
        scheduler_logger.info(
            "heroes_monthly_reveal_job_complete",
            extra={"correlation_id": job_corr, "status": outcome.status.value},
        )
    except Exception as exc:  # pragma: no cover - defensive logging
        scheduler_logger.exception(
            "heroes_monthly_reveal_job_failed",
            extra={"correlation_id": job_corr, "error": str(exc)},
        )


def _register_scheduler_jobs() -> bool:
    if not is_auto_reveal_enabled():
        scheduler_logger.info("[Scheduler] auto reveal disabled or no channel configured; skipping job registration.")
        return False

    try:
        scheduler.add_job(
            heroes_monthly_reveal_job,
            CronTrigger(day="last", hour=15, minute=0, timezone=HEROES_TZ),
            id="heroes_monthly_reveal_job",
            name="heroes_monthly_reveal_job",
            replace_existing=True,
        )
    except Exception as exc:  # pragma: no cover - defensive logging
        scheduler_logger.error(
            "[Scheduler] Failed to register jobs; disabling scheduler for this run.",
            exc_info=True,
            extra={"error": str(exc)},
        )
        return False
    return True


@app.on_event("startup")
async def start_scheduler() -> None:  # pragma: no cover - FastAPI lifecycle
    if not ENABLE_JOB_SCHEDULER:
        scheduler_logger.info("[Scheduler] ENABLE_JOB_SCHEDULER is false; skipping startup.")
        return

    if _register_scheduler_jobs() and not scheduler.running:
        scheduler.start()
        scheduler_logger.info("job_scheduler_started", extra={"correlation_id": "scheduler"})


@app.on_event("shutdown")
async def stop_scheduler() -> None:  # pragma: no cover - FastAPI lifecycle
    if scheduler.running:
        scheduler.shutdown()


# ------------------------------------------------------------------
# Health check
# ------------------------------------------------------------------
def _healthy_response():
    return {"status": "ok"}


@app.get("/health")
def health():
    return _healthy_response()


@app.get("/healthz")
def healthz():
    return _healthy_response()
