import logging
from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker
from lupora.config import settings

logger = logging.getLogger(__name__)

# Handle different database URLs
database_url = settings.DATABASE_URL

# Some hosts provide postgres:// but SQLAlchemy needs postgresql://
if database_url.startswith("postgres://"):
    database_url = database_url.replace("postgres://", "postgresql://", 1)

# SQLite doesn't support pool_size and max_overflow
if database_url.startswith("sqlite"):
    engine = create_engine(
        database_url,
        connect_args={
            "check_same_thread": False,  # Needed for SQLite
            "timeout": settings.DB_CONNECT_TIMEOUT,
        }
    )
else:
    engine = create_engine(
        database_url,
        pool_pre_ping=True,  # Verify connections before using
        pool_size=10,
        max_overflow=20,
        pool_recycle=3600,
        connect_args={"connect_timeout": settings.DB_CONNECT_TIMEOUT},
        echo=False
    )

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


class DatabaseState:
    """Tracks whether the startup connection check has succeeded."""

    def __init__(self):
        self.connected = False


db_state = DatabaseState()


def init_db() -> None:
    """Create tables and verify connectivity. Raises on failure."""
    # Import models so they register on Base.metadata
    import lupora.models  # noqa: F401

    try:
        Base.metadata.create_all(bind=engine)
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
    except SQLAlchemyError:
        db_state.connected = False
        logger.critical("Database connection failed", exc_info=True)
        raise

    db_state.connected = True
    logger.info("Database connected")


def get_db():
    """Dependency for getting database session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
