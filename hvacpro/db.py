from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy import create_engine, event
from .config import settings


def engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        # Pool sizing does not apply to SQLite's single-file/in-memory pools
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_size": 5,
        "max_overflow": 10,
        "pool_recycle": 3600,  # Recycle connections after 1 hour
    }


def enable_sqlite_foreign_keys(target) -> None:
    """SQLite ignores ON DELETE rules unless each connection opts in."""
    if target.dialect.name != "sqlite":
        return

    @event.listens_for(target, "connect")
    def _fk_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


engine = create_engine(
    settings.database_url,
    future=True,
    pool_pre_ping=True,
    **engine_options(settings.database_url),
)
enable_sqlite_foreign_keys(engine)

# IMPORTANT: do not use scoped_session with async frameworks; create a fresh Session per request
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)

Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
