# skynest/main.py

import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from skynest.config import get_settings
from skynest.errors import SkyNestError
from skynest.logging_config import setup_logging
from skynest.middleware import RequestIDMiddleware
from skynest.routes.admin import router as admin_router
from skynest.routes.admin_properties import router as admin_properties_router
from skynest.routes.admin_reports import router as admin_reports_router
from skynest.routes.auth import router as auth_router
from skynest.routes.bookings import router as bookings_router
from skynest.routes.guest import router as guest_router
from skynest.routes.health import router as health_router
from skynest.routes.metrics import router as metrics_router
from skynest.routes.payments import router as payments_router
from skynest.routes.public import router as public_router
from skynest.routes.staff import router as staff_router

settings = get_settings()

# Initialize structured logging
setup_logging(settings)
logger = structlog.get_logger(__name__)

app = FastAPI(
    title="Sky Nest Hotel API",
    description="Multi-branch hotel management: bookings, billing, operations and reports",
    version="1.0.0",
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins if "*" not in settings.allowed_origins else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestIDMiddleware)


@app.exception_handler(SkyNestError)
async def skynest_error_handler(request: Request, exc: SkyNestError) -> JSONResponse:
    """Render domain errors as ``{"error": message, ...}``."""
    return JSONResponse(
        status_code=exc.status_code,
        content=jsonable_encoder({"error": exc.message, **exc.extra}),
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("request_validation_failed", path=request.url.path, errors=len(exc.errors()))
    return JSONResponse(
        status_code=400,
        content=jsonable_encoder({"error": "Invalid request payload", "details": exc.errors()}),
    )


# Register routers
app.include_router(health_router, tags=["Health"])
app.include_router(metrics_router, tags=["Metrics"])
app.include_router(auth_router, prefix="/api", tags=["Auth"])
app.include_router(public_router, prefix="/api", tags=["Public"])
app.include_router(bookings_router, prefix="/api", tags=["Bookings"])
app.include_router(payments_router, prefix="/api", tags=["Payments"])
app.include_router(guest_router, prefix="/api", tags=["Guest"])
app.include_router(staff_router, prefix="/api", tags=["Staff"])
app.include_router(admin_router, prefix="/api", tags=["Admin"])
app.include_router(admin_properties_router, prefix="/api", tags=["Admin"])
app.include_router(admin_reports_router, prefix="/api", tags=["Reports"])

app.mount("/uploads", StaticFiles(directory=settings.upload_dir, check_dir=False), name="uploads")


@app.on_event("startup")
def startup_event() -> None:
    """Initialize application on startup."""
    logger.info(
        "FastAPI application starting up...",
        environment=settings.environment,
        allowed_origins=settings.allowed_origins,
    )
