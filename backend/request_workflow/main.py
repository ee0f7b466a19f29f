"""FastAPI application entry point."""
import asyncio
import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from request_workflow.config import settings
from request_workflow.database import Base, SessionLocal, engine
from request_workflow.errors import WorkflowError
from request_workflow.routers import events, requests, settings as settings_routes, users
from request_workflow.services.sweeps import sweep_forever

# Import all models so Base.metadata knows about them
from request_workflow.models.user import User                    # noqa: F401
from request_workflow.models.event import Event                  # noqa: F401
from request_workflow.models.request import EventRequest         # noqa: F401
from request_workflow.models.request_history import RequestStatusEntry, RequestDecisionEntry  # noqa: F401
from request_workflow.models.system_settings import SystemSettings  # noqa: F401

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Event Request Workflow",
    description="Submission, authority-gated review and finalization of event requests",
    version="0.1.0",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(WorkflowError)
async def workflow_error_handler(request: Request, exc: WorkflowError):
    if exc.http_status >= 500:
        logger.error("%s on %s %s: %s", exc.kind, request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.http_status,
        content={"detail": exc.message, "kind": exc.kind, "details": exc.details},
    )


# Register routers
app.include_router(users.router, prefix="/api/users", tags=["Users"])
app.include_router(requests.router, prefix="/api/requests", tags=["Requests"])
app.include_router(events.router, prefix="/api/events", tags=["Events"])
app.include_router(settings_routes.router, prefix="/api/settings", tags=["Settings"])

_background: dict[str, asyncio.Task] = {}


@app.on_event("startup")
async def on_startup():
    """Create tables in SQLite dev mode and start the periodic sweeps."""
    if settings.DATABASE_URL.startswith("sqlite"):
        Base.metadata.create_all(bind=engine)
    if settings.EXPIRY_SWEEP_INTERVAL_SECONDS > 0:
        _background["sweeps"] = asyncio.create_task(
            sweep_forever(SessionLocal, settings.EXPIRY_SWEEP_INTERVAL_SECONDS)
        )


@app.on_event("shutdown")
async def on_shutdown():
    task = _background.pop("sweeps", None)
    if task is not None:
        task.cancel()


@app.get("/api/health")
def health_check():
    return {"status": "ok"}
