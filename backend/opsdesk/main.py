"""
Opsdesk Payments — FastAPI Application Entry Point

Aggregates routers, configures middleware and logging, and initializes
the database (tables + default options) on startup.
"""
import logging
import time
from datetime import datetime

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from opsdesk.config import get_settings
from opsdesk.database import init_db
from opsdesk.exceptions import OpsdeskError, ValidationError
from opsdesk.logging_config import setup_logging
from opsdesk.routes import payment_router

settings = get_settings()
logger = logging.getLogger("opsdesk.server")

# ─── Application Instance ───────────────────────────────────────────
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description=(
        "Business-operations payment API: sequential payment link references, "
        "Cashfree / Razorpay payment links and payouts, and webhook reconciliation."
    ),
    docs_url="/docs",
    redoc_url="/redoc",
)

# ─── Startup ─────────────────────────────────────────────────────────
BOOT_TIME = time.time()


@app.on_event("startup")
def on_startup():
    """Configure logging, create tables and seed default options."""
    setup_logging()
    init_db()

    logger.info(
        "%s v%s started at %s | database=%s | sandbox=%s | debug=%s",
        settings.APP_NAME, settings.APP_VERSION, datetime.now().isoformat(),
        settings.DATABASE_URL, settings.GATEWAY_SANDBOX, settings.DEBUG,
    )


# ─── Middleware ──────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log every API request with timing."""
    start = time.time()
    response = await call_next(request)
    duration = round((time.time() - start) * 1000, 1)

    if request.url.path.startswith("/api"):
        logger.info("%s %s -> %s (%sms)", request.method, request.url.path, response.status_code, duration)

    return response


@app.exception_handler(OpsdeskError)
async def opsdesk_error_handler(request: Request, exc: OpsdeskError):
    """Domain errors that escape a route: 400 for bad input, generic 500 otherwise."""
    if isinstance(exc, ValidationError):
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    logger.error("Unhandled %s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"success": False, "message": "Oops! Something went wrong!"})


# ─── API Routers ─────────────────────────────────────────────────────
app.include_router(payment_router)


@app.get("/health", tags=["Health"])
def deep_health():
    """Health check including database connectivity."""
    from opsdesk.database import SessionLocal
    from sqlalchemy import text
    db_ok = False
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
        db_ok = True
    except Exception:
        logger.exception("Health check database probe failed")
    finally:
        db.close()

    return {
        "status": "healthy" if db_ok else "degraded",
        "database": "connected" if db_ok else "disconnected",
        "uptime_seconds": round(time.time() - BOOT_TIME, 1),
        "version": settings.APP_VERSION,
    }
