import logging
import os

from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker

from billflow.core.config import settings

logger = logging.getLogger(__name__)

DATABASE_URL = settings.database_url
IS_SQLITE = DATABASE_URL.startswith("sqlite")

# Ensure the data directory exists for file-backed SQLite
if IS_SQLITE and ":memory:" not in DATABASE_URL:
    data_dir = os.path.dirname(DATABASE_URL.split("///", 1)[-1])
    if data_dir:
        os.makedirs(data_dir, exist_ok=True)

engine = create_engine(
    DATABASE_URL,
    # Request handlers run in a threadpool, sessions may cross threads
    connect_args={"check_same_thread": False} if IS_SQLITE else {},
    pool_pre_ping=True,
    echo=False,
)

if IS_SQLITE:

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, _connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()

def init_db():
    # Import models so they register on Base.metadata
    from billflow.db import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info(f"Database ready: {DATABASE_URL}")

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
