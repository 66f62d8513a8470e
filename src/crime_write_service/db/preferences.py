"""
preferences.py
---------------
Small key-value store in the `preferences` table. Used to keep the logged-in
session across restarts.
"""

from typing import Dict, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError

from .models import Preference
from .record_store import RecordStoreError
from .session import make_session_factory, init_db


class PreferenceStore:
    def __init__(self, engine, create_tables=True):
        self.Session = make_session_factory(engine)
        if create_tables:
            init_db(engine)

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        with self.Session() as session:
            row = session.get(Preference, key)
            return row.value if row is not None else default

    def get_all(self) -> Dict[str, str]:
        with self.Session() as session:
            return {row.key: row.value for row in session.scalars(select(Preference))}

    def put_all(self, values: Dict[str, str]) -> None:
        """Write several keys at once."""
        with self.Session() as session:
            try:
                for key, value in values.items():
                    session.merge(Preference(key=key, value=value))
                session.commit()
            except SQLAlchemyError as e:
                session.rollback()
                raise RecordStoreError(f"Could not save preferences: {e}") from e

    def clear(self) -> None:
        """Remove every key."""
        with self.Session() as session:
            try:
                session.execute(delete(Preference))
                session.commit()
            except SQLAlchemyError as e:
                session.rollback()
                raise RecordStoreError(f"Could not clear preferences: {e}") from e
