from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from database.mongodb import db, ensure_indexes
from config import get_settings
from routes import auth, simple_requests, service_requests, csc, technician
from services.errors import (
    AuthError, DuplicateUsernameError, FieldAccessError, InvalidStatusError, NotFoundError, StorageError
)
from services.identity_store import IdentityStore
import logging

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

settings = get_settings()

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifecycle manager for the app"""
    # Startup
    await db.connect(settings.mongo_url, settings.db_name)
    database = db.get_db()
    await ensure_indexes(database)
    if settings.seed_default_principals:
        await IdentityStore(database).seed_defaults()
    logger.info("Service Portal Backend started")
    yield
    # Shutdown
    await db.disconnect()
    logger.info("Service Portal Backend stopped")

# Create FastAPI app
app = FastAPI(
    title="Calibration Service Portal API",
    description="Service and calibration request intake, review and close-out",
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if not settings.is_production else [settings.frontend_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth.router)
app.include_router(simple_requests.router)
app.include_router(service_requests.router)
app.include_router(csc.router)
app.include_router(technician.router)


# ============================================================
# Core errors -> HTTP
# ============================================================

@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})

@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError):
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content={"detail": str(exc)},
        headers={"WWW-Authenticate": "Bearer"},
    )

@app.exception_handler(DuplicateUsernameError)
async def duplicate_username_handler(request: Request, exc: DuplicateUsernameError):
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": "Username already taken"})

@app.exception_handler(FieldAccessError)
async def field_access_handler(request: Request, exc: FieldAccessError):
    return JSONResponse(
        status_code=status.HTTP_403_FORBIDDEN,
        content={"detail": "Not allowed to modify these fields", "fields": exc.fields},
    )

@app.exception_handler(InvalidStatusError)
async def invalid_status_handler(request: Request, exc: InvalidStatusError):
    return JSONResponse(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content={"detail": str(exc)})

@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError):
    logger.error(f"Storage failure during {exc.operation} on {request.url.path}: {exc.cause}")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Storage operation failed, please retry"},
    )


@app.get("/")
async def root():
    return {
        "message": "Calibration Service Portal API",
        "version": "1.0.0",
        "status": "running"
    }

@app.get("/api")
async def api_root():
    return {
        "message": "Calibration Service Portal API",
        "endpoints": {
            "auth": "/api/auth",
            "requests": "/api/requests",
            "service_requests": "/api/service-requests",
            "csc": "/api/csc",
            "technician": "/api/technician"
        }
    }

@app.get("/health")
async def health_check():
    return {"status": "healthy"}
