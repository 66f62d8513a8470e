# src/crime_read_service/processors/search_processor.py

"""
Search processor for read operations.
Turns the field names the clients send into SearchField values and runs the
matching store query. Results are returned as-is: no ranking, no paging.
"""

import logging

from crime_write_service.models import SearchField

logger = logging.getLogger(__name__)

ALL_FIELDS = "All Fields"

# Display names used by the clients, plus the internal column names
FIELD_NAMES = {
    "crime type": SearchField.CRIME_TYPE,
    "crimetype": SearchField.CRIME_TYPE,
    "crime_type": SearchField.CRIME_TYPE,
    "lsoa name": SearchField.LSOA_NAME,
    "lsoaname": SearchField.LSOA_NAME,
    "lsoa_name": SearchField.LSOA_NAME,
    "outcome category": SearchField.OUTCOME_CATEGORY,
    "outcomecategory": SearchField.OUTCOME_CATEGORY,
    "outcome_category": SearchField.OUTCOME_CATEGORY,
    "reported by": SearchField.REPORTED_BY,
    "reportedby": SearchField.REPORTED_BY,
    "reported_by": SearchField.REPORTED_BY,
}


def normalize_field(field_name):
    """
    Map a field name to a SearchField.

    Unknown names give SearchField.UNKNOWN, which searches the crime type.
    """
    return FIELD_NAMES.get((field_name or "").strip().lower(), SearchField.UNKNOWN)


def is_all_fields(field_name):
    return field_name is None or field_name.strip().lower() in ("", ALL_FIELDS.lower(), "all", "any")


class SearchProcessor:
    """Thin query layer over a RecordStore."""

    def __init__(self, store):
        self.store = store

    def search(self, field_name, term):
        """
        Search one field, or every field when field_name is "All Fields" / empty.

        Args:
            field_name: display name ("Crime Type") or column name ("crimeType")
            term: substring to look for, case-insensitive

        Returns:
            List of CrimeRecord, highest crime id first
        """
        if is_all_fields(field_name):
            results = self.store.search_any_field(term)
        else:
            field = normalize_field(field_name)
            if field is SearchField.UNKNOWN:
                logger.info(f"Unknown search field {field_name!r}, searching crime type")
            results = self.store.search_by_field(field, term)

        logger.info(f"Search on {field_name or ALL_FIELDS} for {term!r} found {len(results)} results")
        return results

    def search_by_field(self, field_name, term):
        return self.store.search_by_field(normalize_field(field_name), term)

    def get_all(self):
        return self.store.get_all()

    def get_by_id(self, crime_id):
        return self.store.get_by_id(crime_id)

    def count(self):
        return self.store.count()

    def get_mappable(self):
        return self.store.get_mappable()
