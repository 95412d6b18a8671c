from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import SQLAlchemyError
import logging

from .config import settings

# Configure logging
logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
logger = logging.getLogger(__name__)

# Import router after logging is configured
from .api_router import api_router
from .api.base import status_code_for
from .services.exceptions import PlannerError
from . import database

app = FastAPI(
    title="Jumbo Roll Planner",
    description="Cutting-plan suggestions for paper mill jumbo rolls",
)

# Planner errors carry their own status code and machine-readable code
@app.exception_handler(PlannerError)
async def planner_exception_handler(request: Request, exc: PlannerError):
    status_code = status_code_for(exc)
    logger.warning(f"⚠️ {type(exc).__name__} on {request.method} {request.url}: {exc.message}")
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "code": exc.code}
    )

# Global exception handler for validation errors
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.error(f"❌ VALIDATION ERROR on {request.method} {request.url}: {exc}")
    return JSONResponse(
        status_code=422,
        content={"detail": f"Validation error: {exc.errors()}", "code": "validation_error"}
    )

# Set up CORS for the planning frontend
cors_origins = settings.get_cors_origins()
logger.info(f"CORS origins: {cors_origins}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API router
app.include_router(api_router)

@app.on_event("startup")
async def startup_event():
    """
    Initialize the database on startup.
    """
    logger.info("Initializing database...")
    try:
        # Create tables if they don't exist
        if database.engine is not None:
            from . import models
            models.Base.metadata.create_all(bind=database.engine)
            logger.info("Database tables created successfully")
    except SQLAlchemyError as e:
        logger.error(f"Failed to initialize database: {e}")

@app.get("/")
async def root():
    return {"message": "Jumbo Roll Planner API is Live"}

@app.get("/health")
async def health_check():
    return {"status": "healthy"}
