import logging
import os
from contextlib import asynccontextmanager
from logging.handlers import RotatingFileHandler
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from weatherguard.config import settings

# ─── Logging setup (file + console) ───
_LOG_DIR = Path(__file__).resolve().parent.parent / "logs"
_LOG_DIR.mkdir(exist_ok=True)

_log_level = getattr(logging, os.environ.get("LOG_LEVEL", "INFO").upper(), logging.INFO)

logging.basicConfig(
    level=_log_level,
    format="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    handlers=[
        logging.StreamHandler(),
        RotatingFileHandler(
            _LOG_DIR / "weatherguard.log",
            maxBytes=10 * 1024 * 1024,  # 10 MB
            backupCount=5,
            encoding="utf-8",
        ),
    ],
)

# Quiet noisy libraries
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("apscheduler").setLevel(logging.WARNING)
logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

from weatherguard.routers import alerts, bookings, students, weather, websocket
from weatherguard.services.exceptions import (
    ConfigurationError,
    DataNotFoundError,
    ExternalServiceError,
    WeatherGuardError,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.auto_create_tables:
        try:
            from weatherguard.database import init_db
            await init_db()
        except Exception as e:
            logger.error(f"Table creation failed: {e}")

    # Startup: launch background scheduler
    scheduler = None
    if settings.scheduler_enabled:
        try:
            from weatherguard.scheduler import create_scheduler
            scheduler = create_scheduler()
            scheduler.start()
            logger.info("Weather monitoring scheduler started (hourly conflicts + 5-minute alerts)")
        except Exception as e:
            logger.error(f"Scheduler failed to start: {e}")
            scheduler = None

    yield

    # Shutdown
    if scheduler:
        scheduler.shutdown(wait=False)
        logger.info("Background scheduler stopped")

    from weatherguard.services.weather_client import weather_client
    await weather_client.close()


app = FastAPI(
    title="WeatherGuard",
    description="Weather safety monitoring for flight-training bookings",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


_ERROR_STATUS = {
    DataNotFoundError: 404,
    ExternalServiceError: 502,
    ConfigurationError: 500,
}


@app.exception_handler(WeatherGuardError)
async def weatherguard_error_handler(request: Request, exc: WeatherGuardError):
    status_code = next((code for cls, code in _ERROR_STATUS.items() if isinstance(exc, cls)), 500)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=status_code, content=exc.to_dict())


app.include_router(students.router, prefix="/api/students", tags=["students"])
app.include_router(bookings.router, prefix="/api/bookings", tags=["bookings"])
app.include_router(alerts.router, prefix="/api/alerts", tags=["alerts"])
app.include_router(weather.router, prefix="/api/weather", tags=["weather"])
app.include_router(websocket.router, tags=["notifications"])


@app.get("/api/health")
async def health_check():
    return {"status": "ok", "service": "weatherguard"}
