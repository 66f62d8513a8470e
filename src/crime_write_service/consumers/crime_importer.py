"""
crime_importer.py
-------------------------
CSV -> database import for the crime dataset.

How it works:
- The first line is the header and is only logged.
- Every other line is parsed into a CrimeRecord; short or invalid lines are
  skipped, never fatal.
- Ids already in the store are skipped, so an import never overwrites
  existing rows and re-running the same file imports nothing.
- New records are written in batches (IMPORT_BATCH_SIZE, default 100) and
  on_progress is called after every full batch.
- The listener always gets exactly one on_success or on_error at the end.
  Batches written before a failure stay in the database.

To run it against the configured database:
    python -m crime_write_service.consumers.crime_importer crimeyorkshire.csv
"""

import argparse
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Generator, Iterable, Optional, Protocol

from crime_write_service import config
from crime_write_service.ingestion.csv_source import CsvSourceError, open_csv_source
from crime_write_service.processing.csv_parser import parse_crime_line

logger = logging.getLogger(__name__)

ALREADY_RUNNING_MESSAGE = "An import is already running"


class ImportListener(Protocol):
    def on_progress(self, imported: int) -> None: ...

    def on_success(self, imported: int) -> None: ...

    def on_error(self, message: str) -> None: ...


@dataclass(frozen=True)
class ImportProgress:
    """Emitted after each flushed batch; imported is the running total."""
    imported: int


@dataclass(frozen=True)
class ImportResult:
    imported: int
    skipped_duplicates: int = 0
    skipped_invalid: int = 0


class CrimeImporter:
    """Imports crime CSV data into a RecordStore. One import at a time."""

    def __init__(self, store, batch_size: Optional[int] = None):
        self.store = store
        self.batch_size = batch_size or config.IMPORT_BATCH_SIZE
        self._lock = threading.Lock()
        self._executor: Optional[ThreadPoolExecutor] = None

    @property
    def is_running(self) -> bool:
        return self._lock.locked()

    def iter_import(self, lines: Iterable[str]) -> Generator[ImportProgress, None, ImportResult]:
        """
        Import lines, yielding an ImportProgress after every flushed batch.
        The ImportResult is the generator's return value.

        Source errors and store errors propagate to the caller.
        """
        lines = iter(lines)
        header = next(lines, None)
        logger.info(f"CSV Header: {header}")

        pending = []
        seen_ids = set()
        imported = 0
        duplicates = 0
        invalid = 0

        for line_number, line in enumerate(lines, start=1):
            try:
                crime = parse_crime_line(line, line_number)
            except Exception as e:
                logger.warning(f"Error parsing line {line_number}: {line} ({e})")
                invalid += 1
                continue

            if crime is None:
                invalid += 1
                continue

            if crime.crime_id in seen_ids or self.store.exists(crime.crime_id):
                duplicates += 1
                logger.debug(f"Skipping duplicate crime: {crime.crime_id}")
                continue

            seen_ids.add(crime.crime_id)
            pending.append(crime)
            imported += 1

            if len(pending) >= self.batch_size:
                self.store.insert_batch(pending)
                pending = []
                yield ImportProgress(imported)

        # Insert remaining crimes
        if pending:
            self.store.insert_batch(pending)

        logger.info(f"CSV import completed. Imported: {imported}, "
                    f"Duplicates skipped: {duplicates}, Invalid lines skipped: {invalid}")
        return ImportResult(imported, duplicates, invalid)

    def import_lines(self, lines: Iterable[str], listener: ImportListener) -> Optional[ImportResult]:
        """Import from an iterable of lines (header first), reporting to listener."""
        return self._guarded(listener, lambda: self._drive(lines, listener))

    def import_file(self, location, listener: ImportListener) -> Optional[ImportResult]:
        """Import from a local path or an http(s) URL, reporting to listener."""
        def body():
            logger.info(f"Starting CSV import from: {location}")
            with open_csv_source(location) as lines:
                return self._drive(lines, listener)
        return self._guarded(listener, body)

    def start_import(self, source, listener: ImportListener) -> Future:
        """
        Run import_file (for a path / URL) or import_lines (for anything else)
        on a background worker thread. Callbacks arrive on that thread.
        """
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="crime-import")

        if isinstance(source, (str, Path)):
            return self._executor.submit(self.import_file, source, listener)
        return self._executor.submit(self.import_lines, source, listener)

    def shutdown(self, wait=True):
        if self._executor is not None:
            self._executor.shutdown(wait=wait)
            self._executor = None

    def _drive(self, lines, listener) -> ImportResult:
        events = self.iter_import(lines)
        while True:
            try:
                progress = next(events)
            except StopIteration as stop:
                return stop.value
            listener.on_progress(progress.imported)

    def _guarded(self, listener, body) -> Optional[ImportResult]:
        if not self._lock.acquire(blocking=False):
            logger.warning(ALREADY_RUNNING_MESSAGE)
            listener.on_error(ALREADY_RUNNING_MESSAGE)
            return None

        try:
            result = body()
        except (CsvSourceError, OSError, UnicodeDecodeError) as e:
            logger.error(f"Error reading CSV file: {e}")
            listener.on_error(f"Failed to read CSV file: {e}")
            return None
        except Exception as e:
            logger.exception("Error during CSV import")
            listener.on_error(f"Import failed: {e}")
            return None
        finally:
            self._lock.release()

        listener.on_success(result.imported)
        return result


class ImportJobStatus:
    """
    Listener that remembers how the latest import is going.
    The write API polls it from request threads while the worker updates it.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self.state = "idle"
        self.source = None
        self.imported = 0
        self.error = None

    def start(self, source):
        with self._lock:
            self.state = "running"
            self.source = str(source)
            self.imported = 0
            self.error = None

    def try_start(self, source):
        """Like start(), but returns False and changes nothing while a job is running."""
        with self._lock:
            if self.state == "running":
                return False
            self.state = "running"
            self.source = str(source)
            self.imported = 0
            self.error = None
            return True

    def on_progress(self, imported):
        with self._lock:
            self.imported = imported

    def on_success(self, imported):
        with self._lock:
            self.state = "succeeded"
            self.imported = imported

    def on_error(self, message):
        with self._lock:
            self.state = "failed"
            self.error = message

    def to_dict(self):
        with self._lock:
            return {
                "state": self.state,
                "source": self.source,
                "imported": self.imported,
                "error": self.error,
            }


class LoggingListener:
    """Reports import progress to the log (used by the command line)."""

    def __init__(self):
        self.succeeded = False

    def on_progress(self, imported):
        logger.info(f"Imported {imported} crimes so far...")

    def on_success(self, imported):
        self.succeeded = True
        logger.info(f"Import finished: {imported} new crimes")

    def on_error(self, message):
        logger.error(message)


def main(argv=None):
    from crime_write_service.db.record_store import RecordStore
    from crime_write_service.db.session import make_engine

    parser = argparse.ArgumentParser(description="Import crime CSV data into the database.")
    parser.add_argument("source", nargs="?", default=config.CRIME_CSV, help="CSV path or URL")
    parser.add_argument("--database-url", default=config.DATABASE_URL)
    args = parser.parse_args(argv)

    store = RecordStore(make_engine(args.database_url))
    listener = LoggingListener()
    result = CrimeImporter(store).import_file(args.source, listener)
    if result is not None:
        logger.info(f"Summary: {asdict(result)}; total crimes in database: {store.count()}")
    return 0 if listener.succeeded else 1


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    raise SystemExit(main())
