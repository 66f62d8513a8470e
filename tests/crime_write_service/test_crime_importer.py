"""
Tests for the CSV import pipeline (consumers/crime_importer.py).
"""

import pytest

from crime_write_service.consumers import crime_importer
from crime_write_service.consumers.crime_importer import (
    ALREADY_RUNNING_MESSAGE,
    CrimeImporter,
    ImportJobStatus,
    ImportProgress,
    ImportResult,
)
from crime_write_service.db.record_store import RecordStoreError
from crime_write_service.models import CrimeRecord

HEADER = "crimeId,crimeType,reportedBy,lsoaName,latitude,longitude,outcomeCategory"


def csv_lines(count, start=1, prefix="CRIME"):
    lines = [HEADER]
    for i in range(start, start + count):
        lines.append(f"{prefix}{i:04d},Burglary,West Yorkshire Police,Leeds {i},53.8,-1.5,Under investigation")
    return lines


def test_batches_report_progress_then_success(store, listener):
    result = CrimeImporter(store).import_lines(csv_lines(250), listener)

    assert listener.progress == [100, 200]
    assert listener.successes == [250]
    assert listener.errors == []
    assert result == ImportResult(imported=250, skipped_duplicates=0, skipped_invalid=0)
    assert store.count() == 250


def test_exact_batch_multiple(store, listener):
    CrimeImporter(store, batch_size=10).import_lines(csv_lines(20), listener)
    assert listener.progress == [10, 20]
    assert listener.successes == [20]


def test_header_only(store, listener):
    CrimeImporter(store).import_lines([HEADER], listener)
    assert listener.progress == []
    assert listener.successes == [0]


def test_empty_input(store, listener):
    CrimeImporter(store).import_lines([], listener)
    assert listener.successes == [0]


def test_reimport_imports_nothing(store, listener):
    importer = CrimeImporter(store)
    importer.import_lines(csv_lines(30), listener)
    importer.import_lines(csv_lines(30), listener)

    assert listener.successes == [30, 0]
    assert store.count() == 30


def test_existing_records_are_not_overwritten(store, listener):
    store.insert(CrimeRecord("CRIME0001", "Robbery", month="2023-12"))

    result = CrimeImporter(store).import_lines(csv_lines(3), listener)

    assert listener.successes == [2]
    assert result.skipped_duplicates == 1
    kept = store.get_by_id("CRIME0001")
    assert kept.crime_type == "Robbery"
    assert kept.month == "2023-12"


def test_duplicate_ids_in_one_file_first_wins(store, listener):
    lines = [HEADER,
             "C1,Burglary,P,L,1,2,O",
             "C1,Robbery,P,L,1,2,O"]
    result = CrimeImporter(store).import_lines(lines, listener)

    assert listener.successes == [1]
    assert result.skipped_duplicates == 1
    assert store.get_by_id("C1").crime_type == "Burglary"


def test_invalid_lines_are_skipped_not_fatal(store, listener):
    lines = [HEADER,
             "C1,Burglary,P,L,1,2,O",
             "too,short",
             ",Drugs,P,L,1,2,O",
             "",
             "C2,Drugs,P,L,,,O"]
    result = CrimeImporter(store).import_lines(lines, listener)

    assert listener.errors == []
    assert listener.successes == [2]
    assert result.skipped_invalid == 3
    assert store.get_by_id("C2").latitude == 0.0


def test_unexpected_parse_failure_skips_the_line(store, listener, mocker):
    real_parse = crime_importer.parse_crime_line

    def flaky_parse(line, line_number=0):
        if "BOOM" in line:
            raise RuntimeError("boom")
        return real_parse(line, line_number)

    mocker.patch.object(crime_importer, "parse_crime_line", side_effect=flaky_parse)
    lines = [HEADER, "C1,Burglary,P,L,1,2,O", "BOOM", "C2,Drugs,P,L,1,2,O"]

    CrimeImporter(store).import_lines(lines, listener)

    assert listener.successes == [2]
    assert listener.errors == []


def test_read_failure_keeps_earlier_batches(store, listener):
    def lines():
        yield from csv_lines(150)
        raise OSError("device not ready")

    importer = CrimeImporter(store)
    result = importer.import_lines(lines(), listener)

    assert result is None
    assert listener.progress == [100]
    assert listener.successes == []
    assert listener.errors == ["Failed to read CSV file: device not ready"]
    # First batch was committed, the partial second one was not
    assert store.count() == 100
    assert not importer.is_running


def test_store_failure_reports_import_failed(store, listener, mocker):
    mocker.patch.object(store, "insert_batch", side_effect=RecordStoreError("database is locked"))

    CrimeImporter(store).import_lines(csv_lines(5), listener)

    assert listener.successes == []
    assert listener.errors == ["Import failed: database is locked"]


def test_only_one_import_at_a_time(store, listener):
    importer = CrimeImporter(store, batch_size=1)
    nested = []

    class ReentrantListener:
        def on_progress(self, imported):
            if not nested:
                nested.append(importer.import_lines(csv_lines(1, prefix="OTHER"), listener))

        def on_success(self, imported):
            pass

        def on_error(self, message):
            pass

    importer.import_lines(csv_lines(2), ReentrantListener())

    assert nested == [None]
    assert listener.errors == [ALREADY_RUNNING_MESSAGE]
    assert not store.exists("OTHER0001")


def test_iter_import_yields_progress_and_returns_result(store):
    events = CrimeImporter(store, batch_size=2).iter_import(csv_lines(5))
    progress = []
    with pytest.raises(StopIteration) as stop:
        while True:
            progress.append(next(events))

    assert progress == [ImportProgress(2), ImportProgress(4)]
    assert stop.value.value == ImportResult(5, 0, 0)


def test_import_file(store, listener, tmp_path):
    path = tmp_path / "crimes.csv"
    path.write_text("\r\n".join(csv_lines(3)) + "\r\n", encoding="utf-8")

    CrimeImporter(store).import_file(path, listener)

    assert listener.successes == [3]
    assert store.get_by_id("CRIME0003").outcome_category == "Under investigation"


def test_bad_byte_in_file_does_not_stop_the_import(store, listener, tmp_path):
    lines = csv_lines(150)
    lines.append("CAFE0001,Caf\xe9 theft,P,L,1,2,O")
    lines.append("LAST0001,Drugs,P,L,1,2,O")
    path = tmp_path / "crimes.csv"
    path.write_bytes("\n".join(lines).encode("latin-1"))

    CrimeImporter(store).import_file(path, listener)

    assert listener.errors == []
    assert listener.successes == [152]
    assert store.get_by_id("CAFE0001").crime_type == "Caf\ufffd theft"
    assert store.exists("LAST0001")


def test_import_missing_file(store, listener, tmp_path):
    CrimeImporter(store).import_file(tmp_path / "missing.csv", listener)

    assert listener.successes == []
    assert len(listener.errors) == 1
    assert listener.errors[0].startswith("Failed to read CSV file:")


def test_start_import_runs_in_background(store, listener, tmp_path):
    path = tmp_path / "crimes.csv"
    path.write_text("\n".join(csv_lines(120)), encoding="utf-8")
    importer = CrimeImporter(store)

    future = importer.start_import(str(path), listener)
    result = future.result(timeout=30)
    importer.shutdown()

    assert result.imported == 120
    assert listener.progress == [100]
    assert listener.successes == [120]


def test_start_import_accepts_lines(store, listener):
    importer = CrimeImporter(store)
    importer.start_import(csv_lines(4), listener).result(timeout=30)
    importer.shutdown()
    assert listener.successes == [4]


def test_job_status_tracks_the_import(store, tmp_path):
    status = ImportJobStatus()
    assert status.to_dict()["state"] == "idle"

    status.start(tmp_path / "crimes.csv")
    CrimeImporter(store).import_lines(csv_lines(3), status)
    assert status.to_dict() == {
        "state": "succeeded",
        "source": str(tmp_path / "crimes.csv"),
        "imported": 3,
        "error": None,
    }

    status.on_error("Import failed: nope")
    assert status.to_dict()["state"] == "failed"
    assert status.to_dict()["error"] == "Import failed: nope"


def test_job_status_try_start_refuses_while_running():
    status = ImportJobStatus()

    assert status.try_start("first.csv")
    assert not status.try_start("second.csv")
    assert status.to_dict()["source"] == "first.csv"

    status.on_success(3)
    assert status.try_start("second.csv")
    assert status.to_dict() == {"state": "running", "source": "second.csv", "imported": 0, "error": None}


def test_main_imports_file(tmp_path):
    path = tmp_path / "crimes.csv"
    path.write_text("\n".join(csv_lines(2)), encoding="utf-8")
    assert crime_importer.main([str(path), "--database-url", "sqlite://"]) == 0


def test_main_reports_failure(tmp_path):
    assert crime_importer.main([str(tmp_path / "missing.csv"), "--database-url", "sqlite://"]) == 1
