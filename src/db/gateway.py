"""Row-level CRUD gateway over the planning tables.

Every operation is scoped to a single named table and a single row, and
returns plain dictionaries keyed by column name. SQLAlchemy errors never leave
this module: they are wrapped in DataAccessError.
"""
from __future__ import annotations

import time
from contextlib import AbstractContextManager
from dataclasses import asdict, dataclass
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence

from sqlalchemy import func, inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..services.field_mapping import field_set_for_table
from ..utils.logging import get_logger, log_batch_delete, log_error, log_row_change, log_timing
from .models import model_for_table

logger = get_logger(__name__)

SessionScope = Callable[[], AbstractContextManager]

# Columns managed by the store, never taken from caller input
MANAGED_COLUMNS = frozenset({"id", "created_at", "updated_at"})
REFERENCE_TABLE_PREFIX = "kepmen_"


class DataAccessError(Exception):
    """Network, query or constraint failure while talking to the store."""

    def __init__(self, message: str, *, table: Optional[str] = None, operation: Optional[str] = None):
        super().__init__(message)
        self.table = table
        self.operation = operation


class RowNotFoundError(DataAccessError):
    """The addressed row id does not exist in the table."""


@dataclass
class DeleteResult:
    """Outcome of deleting one id within a batch."""

    id: str
    ok: bool
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _row_to_dict(obj: Any) -> Dict[str, Any]:
    return {attr.key: getattr(obj, attr.key) for attr in inspect(obj).mapper.column_attrs}


def _row_change(operation: str, table: str, row_id: str) -> Dict[str, Any]:
    field_set = field_set_for_table(table)
    if field_set is None:
        return log_row_change(operation, table, row_id)
    return log_row_change(
        operation, table, row_id, dataset=field_set.dataset.value, level=field_set.level.value
    )


class DataGateway:
    """
    Generic fetch/create/update/delete against a named table.

    Kepmen reference tables are read-only unless the gateway is built with
    ``allow_reference_writes=True`` (used by the reference importer).
    """

    def __init__(
        self,
        session_scope: Optional[SessionScope] = None,
        allow_reference_writes: bool = False,
    ):
        if session_scope is None:
            from .session import get_db_session
            session_scope = get_db_session
        self.session_scope = session_scope
        self.allow_reference_writes = allow_reference_writes

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------

    def _model(self, table: str, operation: str):
        model = model_for_table(table)
        if model is None:
            raise DataAccessError(f"Unknown table: {table}", table=table, operation=operation)
        return model

    def _check_writable(self, table: str, operation: str) -> None:
        if table.startswith(REFERENCE_TABLE_PREFIX) and not self.allow_reference_writes:
            raise DataAccessError(
                f"Reference table {table} is read-only", table=table, operation=operation
            )

    def _clean_values(self, model, table: str, values: Mapping[str, Any], operation: str) -> Dict[str, Any]:
        columns = {attr.key for attr in inspect(model).column_attrs}
        cleaned = {k: v for k, v in values.items() if k not in MANAGED_COLUMNS}
        unknown = sorted(set(cleaned) - columns)
        if unknown:
            raise DataAccessError(
                f"Unknown columns for {table}: {', '.join(unknown)}", table=table, operation=operation
            )
        return cleaned

    def _fail(self, error: SQLAlchemyError, table: str, operation: str) -> DataAccessError:
        logger.error(
            f"{operation} on {table} failed: {error}",
            extra=log_error(error, table=table, operation=operation),
        )
        return DataAccessError(f"{operation} on {table} failed", table=table, operation=operation)

    def _get_or_raise(self, db: Session, model, table: str, item_id: str, operation: str):
        obj = db.get(model, item_id)
        if obj is None:
            raise RowNotFoundError(f"Row {item_id} not found in {table}", table=table, operation=operation)
        return obj

    # ------------------------------------------------------------------
    # operations
    # ------------------------------------------------------------------

    def fetch(self, table: str, filters: Optional[Mapping[str, Any]] = None) -> List[Dict[str, Any]]:
        """
        Fetch all rows of a table ordered ascending by its code field.

        Args:
            table: Physical table name
            filters: Optional column -> value equality filters

        Returns:
            List of row dictionaries
        """
        model = self._model(table, "fetch")
        started = time.time()
        try:
            with self.session_scope() as db:
                query = db.query(model)
                for column, value in (filters or {}).items():
                    if not hasattr(model, column):
                        raise DataAccessError(
                            f"Unknown filter column {column} for {table}", table=table, operation="fetch"
                        )
                    query = query.filter(getattr(model, column) == value)

                field_set = field_set_for_table(table)
                if field_set is not None:
                    query = query.order_by(getattr(model, field_set.code_field).asc())

                rows = [_row_to_dict(obj) for obj in query.all()]
        except SQLAlchemyError as e:
            raise self._fail(e, table, "fetch") from e

        logger.debug(
            f"Fetched {len(rows)} rows from {table}",
            extra=log_timing("fetch", (time.time() - started) * 1000, table=table, rows=len(rows)),
        )
        return rows

    def get(self, table: str, item_id: str) -> Dict[str, Any]:
        """Fetch one row by id; RowNotFoundError when missing."""
        model = self._model(table, "get")
        try:
            with self.session_scope() as db:
                return _row_to_dict(self._get_or_raise(db, model, table, item_id, "get"))
        except SQLAlchemyError as e:
            raise self._fail(e, table, "get") from e

    def create(self, table: str, values: Mapping[str, Any]) -> Dict[str, Any]:
        """Insert one row and return it with generated id and timestamps."""
        model = self._model(table, "create")
        self._check_writable(table, "create")
        cleaned = self._clean_values(model, table, values, "create")
        try:
            with self.session_scope() as db:
                obj = model(**cleaned)
                db.add(obj)
                db.flush()
                db.refresh(obj)
                row = _row_to_dict(obj)
        except SQLAlchemyError as e:
            raise self._fail(e, table, "create") from e

        logger.info(f"Created row {row['id']} in {table}", extra=_row_change("create", table, row["id"]))
        return row

    def update(self, table: str, item_id: str, values: Mapping[str, Any]) -> Dict[str, Any]:
        """Update one row; RowNotFoundError when the id does not exist."""
        model = self._model(table, "update")
        self._check_writable(table, "update")
        cleaned = self._clean_values(model, table, values, "update")
        try:
            with self.session_scope() as db:
                obj = self._get_or_raise(db, model, table, item_id, "update")
                for column, value in cleaned.items():
                    setattr(obj, column, value)
                db.flush()
                db.refresh(obj)
                row = _row_to_dict(obj)
        except SQLAlchemyError as e:
            raise self._fail(e, table, "update") from e

        logger.info(f"Updated row {item_id} in {table}", extra=_row_change("update", table, item_id))
        return row

    def delete(self, table: str, item_id: str) -> None:
        """Delete one row; deleting a missing id raises RowNotFoundError."""
        model = self._model(table, "delete")
        self._check_writable(table, "delete")
        try:
            with self.session_scope() as db:
                obj = self._get_or_raise(db, model, table, item_id, "delete")
                db.delete(obj)
        except SQLAlchemyError as e:
            raise self._fail(e, table, "delete") from e

        logger.info(f"Deleted row {item_id} from {table}", extra=_row_change("delete", table, item_id))

    def delete_many(self, table: str, ids: Iterable[str]) -> List[DeleteResult]:
        """
        Delete several rows, one transaction per id.

        Failures do not roll back rows already deleted; every id gets its own
        result in input order.
        """
        results: List[DeleteResult] = []
        for item_id in ids:
            try:
                self.delete(table, item_id)
                results.append(DeleteResult(id=item_id, ok=True))
            except DataAccessError as e:
                results.append(DeleteResult(id=item_id, ok=False, error=str(e)))

        failed = [r.id for r in results if not r.ok]
        if failed:
            logger.warning(
                f"Batch delete on {table}: {len(failed)}/{len(results)} ids failed",
                extra=log_batch_delete(table, len(results), failed),
            )
        return results

    def count(self, table: str) -> int:
        model = self._model(table, "count")
        try:
            with self.session_scope() as db:
                return int(db.query(func.count(model.id)).scalar() or 0)
        except SQLAlchemyError as e:
            raise self._fail(e, table, "count") from e

    def sum_columns(self, table: str, columns: Sequence[str]) -> Dict[str, float]:
        """Sum numeric columns over the whole table (missing values count as 0)."""
        model = self._model(table, "sum")
        if not columns:
            return {}
        try:
            with self.session_scope() as db:
                totals = db.query(
                    *[func.coalesce(func.sum(getattr(model, c)), 0) for c in columns]
                ).one()
        except SQLAlchemyError as e:
            raise self._fail(e, table, "sum") from e
        return {column: float(total) for column, total in zip(columns, totals)}
