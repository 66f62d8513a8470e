"""
record_store.py
----------------
Keyed storage for crime records on top of the SQLAlchemy ORM.

All writes are insert-or-replace by crime_id. Each call opens its own session
and commits once, so a failed batch never rolls back rows that an earlier
call already committed.
"""

import logging
from typing import Iterable, List, Optional, Union

from sqlalchemy import func, or_, select, delete as sa_delete
from sqlalchemy.exc import SQLAlchemyError

from crime_write_service.models import CrimeRecord, SearchField
from crime_write_service.validation import is_mappable
from .models import Crime
from .session import make_session_factory, init_db

logger = logging.getLogger(__name__)

# Columns matched by search_any_field
ANY_FIELD_COLUMNS = (
    Crime.crime_type,
    Crime.lsoa_name,
    Crime.outcome_category,
    Crime.reported_by,
    Crime.crime_id,
)


class RecordStoreError(Exception):
    """Raised when the database cannot complete a store operation."""


class RecordStore:
    """Durable crime record storage keyed by crime_id."""

    def __init__(self, engine, create_tables=True):
        self.engine = engine
        self.Session = make_session_factory(engine)
        if create_tables:
            init_db(engine)

    def _run(self, operation, func_):
        """Run func_(session) and turn database failures into RecordStoreError."""
        session = self.Session()
        try:
            return func_(session)
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Database error during {operation}: {e}")
            raise RecordStoreError(f"Database error during {operation}: {e}") from e
        finally:
            session.close()

    # ---------- writes ----------

    def insert(self, record: CrimeRecord) -> None:
        """Insert or replace a single record."""
        def op(session):
            session.merge(Crime.from_record(record))
            session.commit()
        self._run("insert", op)
        logger.debug(f"Crime inserted: {record.crime_id}")

    def insert_batch(self, records: Iterable[CrimeRecord]) -> int:
        """Insert or replace many records in one commit. Returns how many were written."""
        records = list(records)
        if not records:
            return 0

        def op(session):
            for record in records:
                session.merge(Crime.from_record(record))
            session.commit()
            return len(records)
        return self._run("batch insert", op)

    def update(self, record: CrimeRecord) -> bool:
        """Replace an existing record. Does nothing (returns False) for an unknown id."""
        def op(session):
            row = session.get(Crime, record.crime_id)
            if row is None:
                return False
            row.crime_type = record.crime_type
            row.reported_by = record.reported_by
            row.lsoa_name = record.lsoa_name
            row.latitude = record.latitude
            row.longitude = record.longitude
            row.outcome_category = record.outcome_category
            row.month = record.month
            session.commit()
            return True
        return self._run("update", op)

    def delete(self, record: Union[CrimeRecord, str]) -> bool:
        """Delete by id (or by record). Returns False when nothing was there."""
        crime_id = record.crime_id if isinstance(record, CrimeRecord) else record

        def op(session):
            row = session.get(Crime, crime_id)
            if row is None:
                return False
            session.delete(row)
            session.commit()
            return True
        return self._run("delete", op)

    def delete_all(self) -> int:
        """Remove every record (used before a fresh import)."""
        def op(session):
            result = session.execute(sa_delete(Crime))
            session.commit()
            return result.rowcount
        deleted = self._run("delete all", op)
        logger.info(f"Deleted {deleted} crimes")
        return deleted

    # ---------- reads ----------

    def get_by_id(self, crime_id: str) -> Optional[CrimeRecord]:
        def op(session):
            row = session.get(Crime, crime_id)
            return row.to_record() if row is not None else None
        return self._run("get by id", op)

    def exists(self, crime_id: str) -> bool:
        def op(session):
            stmt = select(Crime.crime_id).where(Crime.crime_id == crime_id).limit(1)
            return session.execute(stmt).first() is not None
        return self._run("exists", op)

    def get_all(self) -> List[CrimeRecord]:
        """
        All records, newest id first.
        Ids are compared as text, so "CRIME10" sorts before "CRIME9".
        """
        return self._select("get all")

    def count(self) -> int:
        def op(session):
            return session.execute(select(func.count()).select_from(Crime)).scalar_one()
        return self._run("count", op)

    def search_any_field(self, term: str) -> List[CrimeRecord]:
        """Case-insensitive substring match on any text column. An empty term matches everything."""
        needle = (term or "").lower()
        condition = or_(*[
            func.lower(column).contains(needle, autoescape=True)
            for column in ANY_FIELD_COLUMNS
        ])
        return self._select("search any field", condition)

    def search_by_field(self, field: SearchField, term: str) -> List[CrimeRecord]:
        """Same as search_any_field but on one column. SearchField.UNKNOWN searches crime_type."""
        column = getattr(Crime, field.column_name)
        needle = (term or "").lower()
        condition = func.lower(column).contains(needle, autoescape=True)
        return self._select(f"search by {field.column_name}", condition)

    def get_mappable(self) -> List[CrimeRecord]:
        """Records with coordinates that can be drawn on a map."""
        return [r for r in self.get_all() if is_mappable(r.latitude, r.longitude)]

    def _select(self, operation, condition=None) -> List[CrimeRecord]:
        def op(session):
            stmt = select(Crime)
            if condition is not None:
                stmt = stmt.where(condition)
            stmt = stmt.order_by(Crime.crime_id.desc())
            return [row.to_record() for row in session.scalars(stmt)]
        return self._run(operation, op)
