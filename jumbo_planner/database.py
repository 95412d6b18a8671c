import logging
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool

from .config import settings

logger = logging.getLogger(__name__)

# Get database URL from environment variable
DATABASE_URL = settings.DATABASE_URL

logger.info(f"Using database URL: {DATABASE_URL}")

Base = declarative_base()


def build_engine(database_url: str):
    """Engine with pool settings suited to the backend in use."""
    if database_url.startswith("sqlite"):
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            # In-memory database: every session must share one connection
            return create_engine(
                database_url,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        return create_engine(database_url, connect_args={"check_same_thread": False})

    return create_engine(
        database_url,
        pool_size=8,
        max_overflow=2,
        pool_pre_ping=True,
        pool_recycle=1800,  # Recycle every 30 min
        echo=False,  # Set to True for SQL debugging
    )


try:
    engine = build_engine(DATABASE_URL)
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
except SQLAlchemyError as e:
    logger.error(f"Database connection error: {e}")
    logger.error("Please check DATABASE_URL in your .env file")
    logger.error("The application will continue but database operations will fail")

    # Allows the app to start even if the DB is not available
    engine = None
    SessionLocal = None


# Dependency to get DB session
def get_db():
    if SessionLocal is None:
        raise SQLAlchemyError("Database connection not available")

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
