from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base

from planipeda.core.config import settings


def make_engine(database_url: str) -> Engine:
    """
    Builds a SQLAlchemy engine for the given URL.

    For SQLite, connections may be used from the channel worker threads,
    foreign keys are switched on per connection, and every transaction
    starts with BEGIN IMMEDIATE so concurrent channel writers queue on the
    busy timeout (30 seconds) instead of failing on a lock upgrade.
    """
    if database_url.startswith("sqlite"):
        engine = create_engine(
            database_url,
            connect_args={"check_same_thread": False, "timeout": 30},
        )

        @event.listens_for(engine, "connect")
        def _configure_sqlite_connection(dbapi_connection, connection_record):
            # Let SQLAlchemy emit BEGIN itself.
            dbapi_connection.isolation_level = None
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        @event.listens_for(engine, "begin")
        def _begin_immediate(conn):
            conn.exec_driver_sql("BEGIN IMMEDIATE")

        return engine
    return create_engine(database_url, pool_pre_ping=True)


# Create the SQLAlchemy engine.
engine = make_engine(settings.DATABASE_URL)

# Create a configured "Session" class.
# This is not a session instance, but a factory for creating them.
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Create a Base class for our SQLAlchemy models to inherit from.
# All of our schema/table models will be subclasses of this Base.
Base = declarative_base()
