"""
CrimeRepository: the single entry point the APIs use for crime data.

Every method takes the caller's UserSession and checks it before touching the
store. Writes go to the local store first and are then offered to the sync
coordinator (which is offline unless a real remote server is configured).
"""

import logging
from pathlib import Path
from typing import List, Optional

from crime_write_service.auth import Operation, require
from crime_write_service.consumers.crime_importer import CrimeImporter
from crime_write_service.models import CrimeRecord, SearchField
from crime_write_service.sync import SyncCoordinator
from crime_write_service.validation import validate_crime

logger = logging.getLogger(__name__)


class CrimeRepository:
    def __init__(self, store, importer=None, sync=None):
        self.store = store
        self.importer = importer or CrimeImporter(store)
        self.sync = sync or SyncCoordinator()

    # ---------- admin operations ----------

    def add_crime(self, session, record: CrimeRecord) -> CrimeRecord:
        require(Operation.CREATE, session)
        validate_crime(record)
        self.store.insert(record)
        logger.info(f"Crime inserted locally: {record.crime_id}")
        self.sync.push_create(record)
        return record

    def update_crime(self, session, record: CrimeRecord) -> bool:
        """Returns False when no crime with that id exists."""
        require(Operation.UPDATE, session)
        validate_crime(record)
        updated = self.store.update(record)
        if updated:
            logger.info(f"Crime updated locally: {record.crime_id}")
            self.sync.push_update(record)
        return updated

    def delete_crime(self, session, crime_id: str) -> bool:
        require(Operation.DELETE, session)
        record = self.store.get_by_id(crime_id)
        if record is None:
            return False
        self.store.delete(record)
        logger.info(f"Crime deleted locally: {crime_id}")
        self.sync.push_delete(record)
        return True

    def import_dataset(self, session, source, listener, background=False):
        """
        Import a CSV path / URL (or an iterable of lines).
        With background=True the import runs on a worker and a Future is returned.
        """
        require(Operation.IMPORT, session)
        if background:
            return self.importer.start_import(source, listener)
        if isinstance(source, (str, Path)):
            return self.importer.import_file(source, listener)
        return self.importer.import_lines(source, listener)

    # ---------- reads ----------

    def get_all(self, session) -> List[CrimeRecord]:
        require(Operation.READ, session)
        return self.store.get_all()

    def get_by_id(self, session, crime_id: str) -> Optional[CrimeRecord]:
        require(Operation.READ, session)
        return self.store.get_by_id(crime_id)

    def count(self, session) -> int:
        require(Operation.READ, session)
        return self.store.count()

    def search_any_field(self, session, term: str) -> List[CrimeRecord]:
        require(Operation.SEARCH, session)
        results = self.store.search_any_field(term)
        logger.debug(f"Search completed locally. Found {len(results)} results")
        return results

    def search_by_field(self, session, field: SearchField, term: str) -> List[CrimeRecord]:
        require(Operation.SEARCH, session)
        return self.store.search_by_field(field, term)
