import os
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, declarative_base
from dotenv import load_dotenv
import urllib.parse

# Load .env file with explicit UTF-8 encoding
load_dotenv(encoding='utf-8')

DEFAULT_DATABASE_URL = "sqlite:///./sykle.db"


def normalize_database_url(url: str | None) -> str:
    url = url or DEFAULT_DATABASE_URL
    # urlunparse collapses the empty authority of sqlite:/// URLs
    if url.startswith("sqlite"):
        return url
    # Ensure proper encoding by parsing and reconstructing the URL
    try:
        parsed = urllib.parse.urlparse(url)
        return urllib.parse.urlunparse(parsed)
    except ValueError:
        return url.encode('utf-8', errors='replace').decode('utf-8')


DATABASE_URL = normalize_database_url(os.getenv("DATABASE_URL"))


def configure_sqlite_engine(engine):
    """Run every SQLite transaction as BEGIN IMMEDIATE.

    pysqlite defers BEGIN until the first write, so two sessions can both read
    a balance before either takes the write lock. Taking the lock up front
    serializes writers the way row locks do on PostgreSQL.
    """

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    return engine


def build_engine(url: str):
    if url.startswith("sqlite"):
        engine = create_engine(url, connect_args={"check_same_thread": False, "timeout": 30})
        return configure_sqlite_engine(engine)

    connect_args = {}
    if url.startswith("postgres"):
        connect_args = {"options": "-c timezone=utc"}
    return create_engine(url, connect_args=connect_args, pool_pre_ping=True)


engine = build_engine(DATABASE_URL)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
