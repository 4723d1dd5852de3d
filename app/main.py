import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import get_settings
from app.core.database import Base, engine
from app.core.responses import envelope
from app.core.services import build_services
from app.models import scan_history, user  # noqa: F401
from app.routers import history, scan, users


logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables and build the shared outbound clients"""
    settings = get_settings()
    Base.metadata.create_all(bind=engine)
    if not hasattr(app.state, "services"):
        app.state.services = build_services(settings)
    if not settings.ai_configured:
        logger.warning("OPENAI_API_KEY not set - AI analysis and label OCR are disabled")
    yield


app = FastAPI(
    title="LabelLens Backend",
    version="0.1.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return envelope(False, message=str(exc.detail), status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.info("Rejected request to %s: %s", request.url.path, exc.errors())
    return envelope(False, message="Invalid request.", status_code=400)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    error = None if get_settings().is_production else str(exc)
    return envelope(False, message="Server error. Please try again later.", status_code=500, error=error)


app.include_router(scan.router, prefix="/api")
app.include_router(history.router, prefix="/api")
app.include_router(users.router, prefix="/api")


@app.get("/health")
def health_check():
    return {"status": "ok"}
