"""
Tests for CrimeRepository: role checks, validation and sync hand-off.
"""

import pytest

from crime_write_service.auth import AccessDeniedError
from crime_write_service.models import CrimeRecord, SearchField
from crime_write_service.repository import CrimeRepository
from crime_write_service.sync import SyncCoordinator
from crime_write_service.validation import ValidationError

HEADER = "crimeId,crimeType,reportedBy,lsoaName,latitude,longitude,outcomeCategory"


@pytest.fixture
def sync(mocker):
    return mocker.create_autospec(SyncCoordinator, instance=True)


@pytest.fixture
def repository(store, sync):
    return CrimeRepository(store, sync=sync)


def test_admin_can_add_update_delete(repository, store, sync, admin_session):
    record = CrimeRecord("C1", "Drugs", latitude=53.8, longitude=-1.5)

    repository.add_crime(admin_session, record)
    assert store.get_by_id("C1") == record
    sync.push_create.assert_called_once_with(record)

    changed = CrimeRecord("C1", "Robbery", latitude=53.8, longitude=-1.5)
    assert repository.update_crime(admin_session, changed)
    assert store.get_by_id("C1").crime_type == "Robbery"
    sync.push_update.assert_called_once_with(changed)

    assert repository.delete_crime(admin_session, "C1")
    assert store.count() == 0
    sync.push_delete.assert_called_once_with(changed)


def test_update_and_delete_unknown_id(repository, sync, admin_session):
    assert repository.update_crime(admin_session, CrimeRecord("nope", "Drugs")) is False
    assert repository.delete_crime(admin_session, "nope") is False
    sync.push_update.assert_not_called()
    sync.push_delete.assert_not_called()


def test_user_cannot_write(repository, store, user_session):
    store.insert(CrimeRecord("C1", "Drugs"))

    with pytest.raises(AccessDeniedError):
        repository.add_crime(user_session, CrimeRecord("C2", "Drugs"))
    with pytest.raises(AccessDeniedError):
        repository.update_crime(user_session, CrimeRecord("C1", "Robbery"))
    with pytest.raises(AccessDeniedError):
        repository.delete_crime(user_session, "C1")

    assert store.get_by_id("C1").crime_type == "Drugs"
    assert store.count() == 1


def test_user_cannot_import(repository, user_session, listener):
    with pytest.raises(AccessDeniedError):
        repository.import_dataset(user_session, [HEADER, "C1,Drugs,P,L,1,2,O"], listener)
    assert listener.successes == []


def test_invalid_record_is_rejected_before_the_store(repository, store, sync, admin_session):
    with pytest.raises(ValidationError):
        repository.add_crime(admin_session, CrimeRecord("C1", "Drugs", latitude=120.0))
    assert store.count() == 0
    sync.push_create.assert_not_called()


def test_admin_import_from_lines(repository, store, admin_session, listener):
    result = repository.import_dataset(admin_session, [HEADER, "C1,Drugs,P,L,1,2,O"], listener)
    assert result.imported == 1
    assert listener.successes == [1]


def test_admin_import_from_file_in_background(repository, store, admin_session, listener, tmp_path):
    path = tmp_path / "crimes.csv"
    path.write_text(f"{HEADER}\nC1,Drugs,P,L,1,2,O\nC2,Theft,P,L,1,2,O\n", encoding="utf-8")

    future = repository.import_dataset(admin_session, path, listener, background=True)
    future.result(timeout=30)
    repository.importer.shutdown()

    assert listener.successes == [2]
    assert store.count() == 2


def test_reads_need_a_session(repository, store, user_session):
    store.insert_batch([CrimeRecord("C1", "Drugs", lsoa_name="Leeds"), CrimeRecord("C2", "Theft")])

    assert [c.crime_id for c in repository.get_all(user_session)] == ["C2", "C1"]
    assert repository.get_by_id(user_session, "C1").crime_type == "Drugs"
    assert repository.count(user_session) == 2
    assert [c.crime_id for c in repository.search_any_field(user_session, "leeds")] == ["C1"]
    assert [c.crime_id for c in repository.search_by_field(user_session, SearchField.CRIME_TYPE, "the")] == ["C2"]

    with pytest.raises(AccessDeniedError):
        repository.get_all(None)
    with pytest.raises(AccessDeniedError):
        repository.search_any_field(None, "x")
