"""
Pytest configuration and shared fixtures.

Provides an in-memory relational backend with failure injection, the same
catalog seeded into either that fake or a temporary SQLite database, and
services wired to a backend the way the API wires them.
"""

import os
import threading
from collections import defaultdict
from typing import Any, Dict, Iterable, List, Optional, Sequence

# Keep imports of the application from touching the default database file.
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from sqlalchemy.orm import sessionmaker

import planipeda.models  # noqa: F401
from planipeda.core.errors import BackendError
from planipeda.db.backend import JoinSpec, RelationalBackend, Row, SqlAlchemyBackend
from planipeda.db.session import Base, make_engine
from planipeda.services.hydration_service import HydrationService
from planipeda.services.planning_service import PlanningDocumentService
from planipeda.services.sync_service import SynchronizationService

# ==============================================================================
# In-memory backend
# ==============================================================================


class InMemoryBackend(RelationalBackend):
    """
    Dict-backed RelationalBackend for tests.

    `fail_on(operation, table)` makes every later call of that primitive on
    that table raise BackendError. Operation names match the ones the
    SQLAlchemy backend reports: select, select_by_ids, insert, delete, upsert.
    Every call is recorded in `calls`.
    """

    def __init__(self):
        self.tables: Dict[str, Dict[int, Row]] = defaultdict(dict)
        self.failures = set()
        self.calls: List[tuple] = []
        self._next_id: Dict[str, int] = defaultdict(int)
        self._lock = threading.Lock()

    def fail_on(self, operation: str, table: str) -> None:
        self.failures.add((operation, table))

    def seed(self, table: str, rows: Iterable[Row]) -> None:
        for row in rows:
            self._store(table, dict(row))

    def rows(self, table: str) -> List[Row]:
        return [dict(row) for _, row in sorted(self.tables[table].items())]

    def _check(self, operation: str, table: str) -> None:
        with self._lock:
            self.calls.append((operation, table))
        if (operation, table) in self.failures:
            raise BackendError(f"injected {operation} failure on '{table}'")

    def _store(self, table: str, row: Row) -> Row:
        with self._lock:
            if row.get("id") is None:
                row["id"] = max([self._next_id[table], *self.tables[table].keys()]) + 1
            self._next_id[table] = max(self._next_id[table], row["id"])
            self.tables[table][row["id"]] = row
        return dict(row)

    @staticmethod
    def _matches(row: Row, filters: Dict[str, Any]) -> bool:
        for column, value in filters.items():
            if isinstance(value, (list, tuple, set, frozenset)):
                if row.get(column) not in value:
                    return False
            elif row.get(column) != value:
                return False
        return True

    def select_where(self, table: str, filters: Dict[str, Any], order_by: Optional[str] = None) -> List[Row]:
        self._check("select", table)
        rows = [row for row in self.rows(table) if self._matches(row, filters)]
        if order_by:
            rows.sort(key=lambda row: (row.get(order_by), row["id"]))
        return rows

    def select_by_ids_with_joins(self, table: str, ids: Sequence[int], joins: Iterable[JoinSpec] = ()) -> List[Row]:
        self._check("select_by_ids", table)
        stored = self.tables[table]
        rows = [dict(stored[row_id]) for row_id in dict.fromkeys(ids) if row_id in stored]
        for join in joins:
            links = self.rows(join.link_table)
            targets = self.tables[join.target_table]
            for row in rows:
                row[join.name] = [
                    dict(targets[link[join.target_column]])
                    for link in links
                    if link[join.link_column] == row["id"] and link[join.target_column] in targets
                ]
        return rows

    def insert_many(self, table: str, rows: List[Row]) -> List[Row]:
        self._check("insert", table)
        return [self._store(table, dict(row)) for row in rows]

    def delete_where(self, table: str, filters: Dict[str, Any]) -> int:
        self._check("delete", table)
        if not filters:
            raise BackendError(f"Refusing to delete from '{table}' without a filter")
        with self._lock:
            doomed = [row_id for row_id, row in self.tables[table].items() if self._matches(row, filters)]
            for row_id in doomed:
                del self.tables[table][row_id]
        return len(doomed)

    def upsert(self, table: str, row: Row) -> Row:
        self._check("upsert", table)
        row = dict(row)
        existing = self.tables[table].get(row.get("id"))
        if existing is not None:
            row = {**existing, **row}
        return self._store(table, row)


# ==============================================================================
# Sample data
# ==============================================================================

# Insertion order respects the foreign keys of the SQLAlchemy models.
CATALOG = [
    ("levels", [{"id": 1, "name": "Terminale"}]),
    ("options", [{"id": 1, "level_id": 1, "name": "Sciences"}]),
    ("units", [{"id": 1, "option_id": 1, "title": "Mechanics"}]),
    ("chapters", [{"id": 3, "unit_id": 1, "title": "Newton's laws"}]),
    ("objectives", [
        {"id": 11, "chapter_id": 3, "description": "State the three laws"},
        {"id": 12, "chapter_id": 3, "description": "Apply the second law"},
    ]),
    ("activities", [
        {"id": 5, "chapter_id": 3, "title": "Cart on a slope", "description": "Measure the acceleration."},
        {"id": 6, "chapter_id": 3, "title": "Free-fall video", "description": None},
    ]),
    ("activity_objectives", [
        {"id": 1, "activity_id": 5, "objective_id": 12},
        {"id": 2, "activity_id": 5, "objective_id": 11},
    ]),
    ("evaluations", [
        {"id": 9, "chapter_id": 3, "title": "Quiz 1", "evaluation_type": "Formative",
         "introduction": None, "specific_instructions": "Answer every question."},
        {"id": 10, "chapter_id": 3, "title": None, "evaluation_type": "Summative",
         "introduction": "<p>Final test</p>", "specific_instructions": None},
    ]),
    ("knowledge_items", [{"id": 21, "title": "Force"}]),
    ("capabilities", [{"id": 31, "title": "Model a system"}]),
    ("evaluation_objectives", [{"id": 1, "evaluation_id": 9, "objective_id": 12}]),
    ("evaluation_knowledge", [{"id": 1, "evaluation_id": 9, "knowledge_id": 21}]),
    ("evaluation_capabilities", [{"id": 1, "evaluation_id": 9, "capability_id": 31}]),
    ("sequences", [
        {"id": 42, "chapter_id": 3, "title": "Dynamics", "status": "draft"},
        {"id": 43, "chapter_id": 3, "title": "Energy", "status": "obsolete"},
    ]),
    ("chapter_plans", [{"id": 7, "chapter_id": 3, "name": "Plan A", "status": "draft"}]),
]


def seed_catalog(backend: RelationalBackend) -> RelationalBackend:
    for table, rows in CATALOG:
        backend.insert_many(table, [dict(row) for row in rows])
    return backend


# ==============================================================================
# Backend Fixtures
# ==============================================================================


@pytest.fixture
def memory_backend():
    """Provide a seeded in-memory backend; `calls` starts empty."""
    backend = seed_catalog(InMemoryBackend())
    backend.calls.clear()
    return backend


@pytest.fixture
def sqlite_backend(tmp_path):
    """Provide a seeded SqlAlchemyBackend on a temporary SQLite file."""
    engine = make_engine(f"sqlite:///{tmp_path / 'planipeda-test.db'}")
    Base.metadata.create_all(bind=engine)
    session_factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    backend = seed_catalog(SqlAlchemyBackend(session_factory=session_factory, metadata=Base.metadata))
    yield backend
    engine.dispose()


@pytest.fixture(params=["memory", "sqlite"])
def backend(request):
    """Run a test against both backends."""
    return request.getfixturevalue(f"{request.param}_backend")


# ==============================================================================
# Service Fixtures
# ==============================================================================


def make_planning_service(backend: RelationalBackend, **hydration_options) -> PlanningDocumentService:
    hydration_options.setdefault("dangling_policy", "drop")
    hydration_options.setdefault("empty_sentinels", True)
    return PlanningDocumentService(
        backend=backend,
        hydration=HydrationService(backend, max_workers=3, **hydration_options),
        sync=SynchronizationService(backend, max_workers=3),
    )


@pytest.fixture
def planning_service(backend):
    return make_planning_service(backend)


@pytest.fixture
def memory_planning_service(memory_backend):
    return make_planning_service(memory_backend)


@pytest.fixture
def service_factory():
    """Provide the planning service builder, for tests that tune hydration options."""
    return make_planning_service
