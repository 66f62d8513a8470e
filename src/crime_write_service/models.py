"""Plain data types shared by the write and read services."""

from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any, Dict


@dataclass(frozen=True)
class CrimeRecord:
    """
    One crime incident.

    Instances are snapshots: changing the database never changes a record
    you are already holding, and changing a record never touches the database
    until it is passed back to the store.
    """
    crime_id: str
    crime_type: str
    reported_by: str = ""
    lsoa_name: str = ""
    latitude: float = 0.0
    longitude: float = 0.0
    outcome_category: str = ""
    month: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CrimeRecord":
        return cls(
            crime_id=str(data.get("crime_id") or "").strip(),
            crime_type=str(data.get("crime_type") or "").strip(),
            reported_by=str(data.get("reported_by") or "").strip(),
            lsoa_name=str(data.get("lsoa_name") or "").strip(),
            latitude=float(data.get("latitude") or 0.0),
            longitude=float(data.get("longitude") or 0.0),
            outcome_category=str(data.get("outcome_category") or "").strip(),
            month=str(data.get("month") or "").strip(),
        )


class SearchField(Enum):
    """
    Column selector for single-field searches.

    UNKNOWN stands for a field name nobody recognises; it searches the
    crime type column.
    """
    CRIME_TYPE = "crime_type"
    LSOA_NAME = "lsoa_name"
    OUTCOME_CATEGORY = "outcome_category"
    REPORTED_BY = "reported_by"
    UNKNOWN = "unknown"

    @property
    def column_name(self) -> str:
        if self is SearchField.UNKNOWN:
            return SearchField.CRIME_TYPE.value
        return self.value
