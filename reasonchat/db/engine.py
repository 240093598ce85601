"""SQLAlchemy engine construction and connectivity probing."""

from pathlib import Path

from sqlalchemy import create_engine, text
from sqlalchemy.engine import URL, Engine, make_url
from sqlalchemy.exc import SQLAlchemyError

from reasonchat.config import Settings, get_settings
from reasonchat.core import get_logger

logger = get_logger(__name__)

# Process-wide engine used by migrations run from the command line.
_engine: Engine | None = None


def _prepare_sqlite(url: URL) -> dict:
    """Create the database directory if needed and return connect args."""
    database = url.database
    if database and database != ":memory:":
        directory = Path(database).parent
        if not directory.exists():
            directory.mkdir(parents=True, exist_ok=True)
            logger.info("Created database directory", data={"path": str(directory)})
    # Store calls may arrive from FastAPI's threadpool.
    return {"check_same_thread": False}


def build_engine(database_url: str, debug: bool = False) -> Engine:
    """Create an engine; SQLite gets a thread-tolerant connection, others a small pool."""
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite":
        engine = create_engine(
            url, connect_args=_prepare_sqlite(url), echo=debug, pool_pre_ping=True
        )
    else:
        engine = create_engine(
            url, echo=debug, pool_pre_ping=True, pool_size=5, max_overflow=10
        )
    logger.info("Database engine created", data={"dialect": engine.dialect.name})
    return engine


def get_engine(settings: Settings | None = None) -> Engine:
    """Return the cached process-wide engine, building it from settings on first use."""
    global _engine
    if _engine is None:
        settings = settings or get_settings()
        _engine = build_engine(settings.database_url, debug=settings.debug)
    return _engine


def verify_database_connection(engine: Engine) -> bool:
    """Run ``SELECT 1``; False when the database cannot be reached."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.error("Database connection failed", data={"error": str(exc)})
        return False
    return True


def dispose_engine() -> None:
    global _engine
    if _engine is not None:
        _engine.dispose()
        _engine = None
        logger.info("Database engine disposed")
