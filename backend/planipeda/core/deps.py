from planipeda.db.backend import RelationalBackend, SqlAlchemyBackend
from planipeda.db.session import SessionLocal, Base

# Importing the models package registers every table on Base.metadata, which
# the backend uses to resolve table names.
import planipeda.models  # noqa: F401

# --- Relational Backend Dependency ---
# A single backend instance wraps the session factory and opens a fresh
# session per primitive.
backend = SqlAlchemyBackend(session_factory=SessionLocal, metadata=Base.metadata)

def get_backend() -> RelationalBackend:
    """
    Dependency function that provides the relational backend used by the
    planning services. Tests replace it through `app.dependency_overrides`.
    """
    return backend
