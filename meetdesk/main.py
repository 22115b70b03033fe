"""
Main FastAPI application
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from meetdesk.config import get_settings
from meetdesk.database import engine, Base, AsyncSessionLocal
from meetdesk import models  # noqa: F401 - registers tables on Base.metadata
from meetdesk.api import availability, meeting_requests, meetings, notifications
from meetdesk.services.errors import (
    ConflictError,
    MeetDeskError,
    NotFoundError,
    TransientIOError,
    ValidationError,
)
from meetdesk.services.notifier import DatabaseNotifier
from meetdesk.services.reminder_scheduler import ReminderScheduler
from meetdesk.utils.logger import get_logger

settings = get_settings()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created")

    scheduler = None
    if settings.REMINDER_SCHEDULER_ENABLED:
        scheduler = ReminderScheduler(DatabaseNotifier(AsyncSessionLocal), AsyncSessionLocal)
        scheduler.start()
    else:
        logger.info("Reminder scheduler disabled")
    app.state.reminder_scheduler = scheduler

    yield

    if scheduler is not None:
        await scheduler.stop()
    await engine.dispose()

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

ERROR_STATUS = {
    ValidationError: 400,
    NotFoundError: 404,
    ConflictError: 409,
    TransientIOError: 503,
}


@app.exception_handler(MeetDeskError)
async def service_error_handler(request: Request, exc: MeetDeskError):
    status_code = next(
        (code for error_type, code in ERROR_STATUS.items() if isinstance(exc, error_type)),
        500,
    )
    return JSONResponse(status_code=status_code, content={"detail": exc.message})


# Include routers
app.include_router(meeting_requests.router, prefix="/api/meeting-requests", tags=["Meeting Requests"])
app.include_router(meetings.router, prefix="/api/meetings", tags=["Meetings"])
app.include_router(notifications.router, prefix="/api/notifications", tags=["Notifications"])
app.include_router(availability.router, prefix="/api/availability", tags=["Availability"])


@app.get("/")
async def root():
    return {
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running"
    }


@app.get("/health")
async def health_check():
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "meetdesk.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
