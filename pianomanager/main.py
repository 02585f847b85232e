import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import models, models_invoice, models_license, models_marketing, models_workflow  # noqa: F401
from .database import Base, engine
from .domain.appointments.router import router as appointments_router
from .domain.clients.router import router as clients_router
from .domain.inventory.router import router as inventory_router
from .domain.invoices.router import router as invoices_router
from .domain.licensing.router import codes_router, licenses_router
from .domain.marketing.router import router as marketing_router
from .domain.metrics.router import router as metrics_router
from .domain.notifications.router import router as notifications_router
from .domain.partners.router import router as partners_router
from .domain.pianos.router import router as pianos_router
from .domain.service_records.router import router as services_router
from .domain.translations.router import router as translations_router
from .domain.workflows.router import router as workflows_router
from .routes.smtp import router as smtp_router
from .routes.users import router as users_router

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
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
        logger.info("Database tables created successfully")
    except Exception as e:
        # Ignore "already exists" errors from race conditions between workers
        error_msg = str(e)
        if "already exists" in error_msg or "duplicate key" in error_msg:
            logger.info("Database tables already exist (created by another worker)")
        else:
            logger.error(f"Failed to create database tables: {e}")
            raise

    yield
    logger.info("Application shutting down...")


app = FastAPI(title="Piano Emotion Manager API", version="1.0.0", lifespan=lifespan)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Convert 422 validation errors to 401 when the problem is the Authorization header
    """
    for error in exc.errors():
        if error.get("loc") and "authorization" in str(error.get("loc")).lower():
            logger.warning(
                f"Authentication failed for {request.url.path}: Missing or invalid Authorization header"
            )
            return JSONResponse(
                status_code=401,
                content={
                    "detail": "Not authenticated. Please provide a valid Bearer token in the Authorization header."
                },
            )

    logger.warning(f"Validation error for {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=422, content={"detail": jsonable_errors(exc)})


def jsonable_errors(exc: RequestValidationError) -> list:
    # ctx may hold exception instances from field validators
    errors = []
    for error in exc.errors():
        error = dict(error)
        if "ctx" in error:
            error["ctx"] = {k: str(v) for k, v in error["ctx"].items()}
        errors.append(error)
    return errors


@app.middleware("http")
async def log_requests(request: Request, call_next):
    try:
        response = await call_next(request)
        return response
    except Exception as e:
        logger.error(f"{request.method} {request.url.path} - Error: {str(e)}")
        raise


# CORS Configuration
ALLOWED_ORIGINS = os.getenv(
    "ALLOWED_ORIGINS",
    "https://pianoemotion.com,https://app.pianoemotion.com,http://localhost:3000,http://localhost:5173",
).split(",")

logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)

# Routes
app.include_router(users_router)
app.include_router(clients_router)
app.include_router(pianos_router)
app.include_router(services_router)
app.include_router(appointments_router)
app.include_router(invoices_router)
app.include_router(inventory_router)
app.include_router(partners_router)
app.include_router(codes_router)
app.include_router(licenses_router)
app.include_router(marketing_router)
app.include_router(workflows_router)
app.include_router(notifications_router)
app.include_router(translations_router)
app.include_router(metrics_router)
app.include_router(smtp_router)


@app.get("/")
def root():
    return {"message": "Piano Emotion Manager API is running"}


@app.get("/health")
def health():
    return {"status": "healthy"}
