"""FastAPI application entry point."""

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request, WebSocket, WebSocketDisconnect, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from starlette.middleware.base import BaseHTTPMiddleware

from festbar.api.routes import api_router
from festbar.core.config import settings
from festbar.core.exceptions import FestbarError
from festbar.core.pin_gate import PIN_HEADER
from festbar.core.rate_limit import limiter
from festbar.db.base import Base
from festbar.db.session import SessionLocal, engine
from festbar.services.firebase_service import firebase_push
from festbar.services.live_updates import build_snapshot
from festbar.services.menu_service import MenuService
from festbar.services.settings_service import SettingsService
from festbar.services.waiter_service import WaiterService
from festbar.services.websocket_service import Channel, manager

VERSION = "1.0.0"
FCM_CLEANUP_INTERVAL_SECONDS = 3600

# Channels whose snapshots mirror a PIN-protected action
PROTECTED_CHANNELS = {Channel.STATISTICS.value: "statistics"}

# Configure logging - use JSON format in production, human-readable in dev
root_logger = logging.getLogger()
root_logger.setLevel(getattr(logging, settings.log_level))
root_logger.handlers.clear()

if settings.debug:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
else:
    import json as _json
    import sys

    class JSONFormatter(logging.Formatter):
        def format(self, record):
            return _json.dumps({
                "ts": self.formatTime(record, self.datefmt),
                "level": record.levelname,
                "logger": record.name,
                "msg": record.getMessage(),
                "module": record.module,
                "line": record.lineno,
            })

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())

root_logger.addHandler(handler)
logger = logging.getLogger(__name__)
request_logger = logging.getLogger("requests")


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for logging all HTTP requests and responses."""

    async def dispatch(self, request: Request, call_next):
        # Skip logging for health checks and docs
        if request.url.path in ["/health", "/", "/docs", "/openapi.json"]:
            return await call_next(request)

        start_time = time.time()
        client_ip = request.client.host if request.client else "unknown"

        try:
            response = await call_next(request)
        except Exception as e:
            process_time = time.time() - start_time
            request_logger.error(
                f"Error: {request.method} {request.url.path} - "
                f"Exception: {str(e)} - Time: {process_time:.3f}s - Client: {client_ip}"
            )
            raise

        process_time = time.time() - start_time
        log_level = logging.WARNING if response.status_code >= 400 else logging.INFO
        request_logger.log(
            log_level,
            f"{request.method} {request.url.path} - "
            f"Status: {response.status_code} - Time: {process_time:.3f}s - Client: {client_ip}"
        )
        return response


async def _render_tick():
    """Re-send the live boards so alert phases advance without any write."""
    while True:
        try:
            await asyncio.sleep(settings.alert_tick_seconds)
            channels = [c for c in (Channel.BAR, Channel.ORDERS) if manager.has_subscribers(c.value)]
            if not channels:
                continue
            db = SessionLocal()
            try:
                messages = [(c.value, build_snapshot(c.value, db)) for c in channels]
            finally:
                db.close()
            for channel, message in messages:
                await manager.broadcast(message, channel)
        except asyncio.CancelledError:
            break
        except Exception as e:
            logger.warning(f"Render tick failed: {e}")


async def _periodic_fcm_token_cleanup():
    """Drop push tokens that waiters' devices stopped refreshing."""
    while True:
        try:
            await asyncio.sleep(FCM_CLEANUP_INTERVAL_SECONDS)
            db = SessionLocal()
            try:
                removed = WaiterService(db).cleanup_stale_tokens(settings.fcm_token_max_age_hours)
            finally:
                db.close()
            if removed:
                logger.info(f"FCM cleanup: removed {removed} stale tokens")
        except asyncio.CancelledError:
            break
        except Exception as e:
            logger.warning(f"FCM token cleanup error: {e}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("Starting festbar")

    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        MenuService(db).seed_glasses()
    finally:
        db.close()

    firebase_push.initialize(settings.firebase_credentials_path)

    tasks = [
        asyncio.create_task(_render_tick()),
        asyncio.create_task(_periodic_fcm_token_cleanup()),
    ]
    logger.info(f"Live board refresh every {settings.alert_tick_seconds}s")

    yield

    for task in tasks:
        task.cancel()
    for task in tasks:
        try:
            await task
        except asyncio.CancelledError:
            pass

    logger.info("Shutting down festbar")


app = FastAPI(
    title="festbar",
    description="Table ordering, live bar board and revenue statistics for events",
    version=VERSION,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

# Rate limiting setup
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(OperationalError)
async def store_unavailable_handler(request: Request, exc: OperationalError):
    logger.error(f"Data store unavailable on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Data store temporarily unavailable, please retry"},
    )


@app.exception_handler(FestbarError)
async def festbar_error_handler(request: Request, exc: FestbarError):
    return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)})


app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestLoggingMiddleware)

# CORS middleware - added last so it runs first (Starlette LIFO order)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Accept", "Origin", "X-Requested-With", "X-Admin-Pin"],
    max_age=600,
)

# Include API routes
app.include_router(api_router, prefix=settings.api_v1_prefix)


@app.get("/health")
def health_check():
    """Basic liveness check endpoint."""
    return {"status": "healthy", "version": VERSION}


@app.get("/health/ready")
def readiness_check():
    """Readiness probe with database connectivity check."""
    checks = {"database": "unknown"}
    db = None
    try:
        db = SessionLocal()
        db.execute(text("SELECT 1"))
        checks["database"] = "healthy"
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        checks["database"] = "unhealthy"
    finally:
        if db:
            db.close()

    checks["websocket_manager"] = f"healthy ({manager.get_connection_count()} connections)"
    checks["push"] = "enabled" if firebase_push.enabled else "disabled"

    return {
        "status": "ready" if checks["database"] == "healthy" else "degraded",
        "version": VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "checks": checks,
    }


# ===== WebSocket Authentication Helper =====

async def _authenticate_websocket(websocket: WebSocket, channel: str) -> bool:
    """Check the admin PIN for channels that mirror a protected action.

    The PIN comes from the `pin` query parameter or the X-Admin-Pin header.
    Rejected connections are closed with 1008 Policy Violation.
    """
    action = PROTECTED_CHANNELS.get(channel)
    if action is None:
        return True

    pin = websocket.query_params.get("pin") or websocket.headers.get(PIN_HEADER)
    db = SessionLocal()
    try:
        service = SettingsService(db)
        allowed = not service.is_action_protected(action) or service.verify_admin_pin(pin)
    finally:
        db.close()

    if not allowed:
        logger.warning(f"WebSocket rejected for '{channel}': admin PIN required for {action}")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
    return allowed


@app.websocket("/ws/{channel}")
async def websocket_channel(websocket: WebSocket, channel: str):
    """Subscribe to a channel: a snapshot on connect, then one after every change."""
    if channel not in {c.value for c in Channel}:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    if not await _authenticate_websocket(websocket, channel):
        return

    if not await manager.connect(websocket, channel, client_name=websocket.query_params.get("client")):
        return
    try:
        db = SessionLocal()
        try:
            snapshot = build_snapshot(channel, db)
        finally:
            db.close()
        await websocket.send_json(snapshot)
        while True:
            data = await websocket.receive_text()
            if data == "ping":
                manager.update_ping(websocket)
                await websocket.send_text("pong")
    except WebSocketDisconnect:
        manager.disconnect(websocket, channel)
    except Exception as e:
        logger.debug(f"WebSocket error on channel '{channel}': {e}")
        manager.disconnect(websocket, channel)
