import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

# Import models so every table is registered with Base before create_all
from . import models  # noqa: F401
from .database import Base, engine
from .domain.clients import router as clients_router
from .domain.providers import router as providers_router
from .domain.scheduling import router as scheduling_router
from .domain.scheduling.errors import SchedulingFault

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    Base.metadata.create_all(bind=engine, checkfirst=True)
    logger.info("Database tables created successfully")
    yield
    logger.info("Application shutting down...")


app = FastAPI(title="OpenSlots API", version="1.0.0", lifespan=lifespan)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Validation error for {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=422, content={"detail": exc.errors()})


@app.exception_handler(SchedulingFault)
async def scheduling_fault_handler(request: Request, exc: SchedulingFault):
    """Faults have an unknown outcome; the caller should retry or check the appointment"""
    logger.error(f"❌ {exc.kind} on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=503,
        content={"success": False, "error": {"kind": exc.kind, "message": str(exc)}, "warnings": []},
    )


app.include_router(scheduling_router)
app.include_router(providers_router)
app.include_router(clients_router)


@app.get("/health")
async def health_check():
    return {"status": "healthy"}
