import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from resource_booking.config import settings
from resource_booking.db import init_database
from resource_booking.routers import bookings, resources
from resource_booking.tasks import start_background_tasks, stop_background_tasks
from resource_booking.utils.errors import BookingError

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s | %(levelname)-8s | %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    "lifespan for initing database and the reconciliation loops"
    init_database()
    tasks = start_background_tasks() if settings.RECONCILER_ENABLED else []
    yield
    await stop_background_tasks(tasks)


app = FastAPI(
    lifespan=lifespan,
    title=settings.PROJECT_NAME,
    description="Shared resource booker with buffer-aware conflict detection, based on FastAPI.",
    version="0.1.0",
    license_info={
        "name": "MIT",
        "url": "https://opensource.org/licenses/MIT",
    },
)


@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError):
    logger.debug(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.reason}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.reason})


app.include_router(resources.router)
app.include_router(bookings.router)
