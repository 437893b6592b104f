import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence

from sqlalchemy import MetaData, Table, delete, insert, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from planipeda.core.errors import BackendError

# Configure logger for this module
logger = logging.getLogger(__name__)

Row = Dict[str, Any]


@dataclass(frozen=True)
class JoinSpec:
    """
    Describes one nested one-to-many expansion for `select_by_ids_with_joins`.

    Each fetched master row receives a `name` key holding the target rows
    reached through `link_table`, in link insertion order.
    """
    name: str
    link_table: str
    # Column of the link table that points at the master row.
    link_column: str
    target_table: str
    # Column of the link table that points at the target row.
    target_column: str


class RelationalBackend(ABC):
    """
    The generic store primitives the composition engine needs. Services
    receive an instance explicitly so tests can substitute an in-memory fake.

    Every primitive raises `BackendError` when the store rejects the request.
    """

    @abstractmethod
    def select_where(self, table: str, filters: Dict[str, Any], order_by: Optional[str] = None) -> List[Row]:
        ...

    @abstractmethod
    def select_by_ids_with_joins(self, table: str, ids: Sequence[int], joins: Iterable[JoinSpec] = ()) -> List[Row]:
        ...

    @abstractmethod
    def insert_many(self, table: str, rows: List[Row]) -> List[Row]:
        ...

    @abstractmethod
    def delete_where(self, table: str, filters: Dict[str, Any]) -> int:
        ...

    @abstractmethod
    def upsert(self, table: str, row: Row) -> Row:
        ...

    def get_by_id(self, table: str, row_id: int) -> Optional[Row]:
        rows = self.select_where(table, {"id": row_id})
        return rows[0] if rows else None


class SqlAlchemyBackend(RelationalBackend):
    """
    RelationalBackend implementation on top of SQLAlchemy Core.

    Tables are looked up by name in the declarative metadata. Each primitive
    opens its own session and commits it before returning, so no connection
    is held between calls and primitives may run on different threads.
    """

    def __init__(self, session_factory: sessionmaker, metadata: MetaData):
        self.session_factory = session_factory
        self.metadata = metadata

    def _table(self, name: str) -> Table:
        try:
            return self.metadata.tables[name]
        except KeyError:
            raise BackendError(f"Unknown table '{name}'") from None

    @contextmanager
    def _session(self, operation: str, table: str) -> Iterator[Session]:
        db: Session = self.session_factory()
        try:
            yield db
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"SqlAlchemyBackend: {operation} on '{table}' failed: {e}")
            raise BackendError(f"{operation} on '{table}' failed: {e}") from e
        finally:
            db.close()

    def _conditions(self, table: Table, filters: Dict[str, Any]) -> list:
        conditions = []
        for column_name, value in filters.items():
            if column_name not in table.c:
                raise BackendError(f"Unknown column '{column_name}' on table '{table.name}'")
            column = table.c[column_name]
            if isinstance(value, (list, tuple, set, frozenset)):
                conditions.append(column.in_(list(value)))
            else:
                conditions.append(column == value)
        return conditions

    def select_where(self, table: str, filters: Dict[str, Any], order_by: Optional[str] = None) -> List[Row]:
        db_table = self._table(table)
        stmt = select(db_table).where(*self._conditions(db_table, filters))
        if order_by:
            if order_by not in db_table.c:
                raise BackendError(f"Unknown column '{order_by}' on table '{table}'")
            stmt = stmt.order_by(db_table.c[order_by])
        if "id" in db_table.c:
            stmt = stmt.order_by(db_table.c.id)
        with self._session("select", table) as db:
            rows = [dict(row._mapping) for row in db.execute(stmt)]
        logger.debug(f"SqlAlchemyBackend: select on '{table}' with {filters} returned {len(rows)} rows.")
        return rows

    def select_by_ids_with_joins(self, table: str, ids: Sequence[int], joins: Iterable[JoinSpec] = ()) -> List[Row]:
        ids = list(dict.fromkeys(ids))
        if not ids:
            return []
        db_table = self._table(table)
        joins = list(joins)
        with self._session("select_by_ids", table) as db:
            rows = [dict(row._mapping) for row in db.execute(select(db_table).where(db_table.c.id.in_(ids)))]
            by_id = {row["id"]: row for row in rows}
            for join in joins:
                link = self._table(join.link_table)
                target = self._table(join.target_table)
                owner = link.c[join.link_column]
                stmt = (
                    select(owner.label("_owner_id"), target)
                    .join(target, target.c.id == link.c[join.target_column])
                    .where(owner.in_(ids))
                    .order_by(link.c.id)
                )
                for row in by_id.values():
                    row[join.name] = []
                for linked in db.execute(stmt):
                    data = dict(linked._mapping)
                    owner_id = data.pop("_owner_id")
                    by_id[owner_id][join.name].append(data)
        logger.debug(f"SqlAlchemyBackend: fetched {len(rows)}/{len(ids)} rows from '{table}' with joins {[j.name for j in joins]}.")
        return rows

    def insert_many(self, table: str, rows: List[Row]) -> List[Row]:
        if not rows:
            return []
        db_table = self._table(table)
        inserted = []
        with self._session("insert", table) as db:
            for row in rows:
                result = db.execute(insert(db_table).values(**row))
                saved = dict(row)
                if "id" in db_table.c and saved.get("id") is None:
                    saved["id"] = result.inserted_primary_key[0]
                inserted.append(saved)
        logger.debug(f"SqlAlchemyBackend: inserted {len(inserted)} rows into '{table}'.")
        return inserted

    def delete_where(self, table: str, filters: Dict[str, Any]) -> int:
        if not filters:
            raise BackendError(f"Refusing to delete from '{table}' without a filter")
        db_table = self._table(table)
        with self._session("delete", table) as db:
            result = db.execute(delete(db_table).where(*self._conditions(db_table, filters)))
            count = result.rowcount
        logger.debug(f"SqlAlchemyBackend: deleted {count} rows from '{table}' with {filters}.")
        return count

    def upsert(self, table: str, row: Row) -> Row:
        db_table = self._table(table)
        values = {key: value for key, value in row.items() if key in db_table.c}
        row_id = values.pop("id", None)
        with self._session("upsert", table) as db:
            if row_id is not None:
                result = db.execute(update(db_table).where(db_table.c.id == row_id).values(**values))
                if result.rowcount == 0:
                    db.execute(insert(db_table).values(id=row_id, **values))
            else:
                result = db.execute(insert(db_table).values(**values))
                row_id = result.inserted_primary_key[0]
            saved = db.execute(select(db_table).where(db_table.c.id == row_id)).first()
        logger.debug(f"SqlAlchemyBackend: upserted row {row_id} in '{table}'.")
        return dict(saved._mapping)
