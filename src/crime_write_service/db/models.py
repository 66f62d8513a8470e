"""
models.py
----------
Defines the tables for the crime records service using SQLAlchemy ORM.
Each class here represents one table in the database.
"""

from sqlalchemy import Column, String, Float

from crime_write_service.models import CrimeRecord
from .session import Base


class Crime(Base):
    """
    One crime incident from the Yorkshire crimes dataset.

    Columns match the CSV structure plus a month tag:
    crime_id, crime_type, reported_by, lsoa_name, latitude, longitude,
    outcome_category, month.
    """
    __tablename__ = "crimes"

    # Primary key from the dataset, never edited once set
    crime_id = Column(String(128), primary_key=True)

    crime_type = Column(String(256))
    reported_by = Column(String(256))

    # LSOA (Lower Layer Super Output Area) name
    lsoa_name = Column(String(256))

    # Coordinates for map plotting, 0.0 when the source had none
    latitude = Column(Float, default=0.0)
    longitude = Column(Float, default=0.0)

    outcome_category = Column(String(256))
    month = Column(String(16))

    @classmethod
    def from_record(cls, record: CrimeRecord) -> "Crime":
        return cls(
            crime_id=record.crime_id,
            crime_type=record.crime_type,
            reported_by=record.reported_by,
            lsoa_name=record.lsoa_name,
            latitude=record.latitude,
            longitude=record.longitude,
            outcome_category=record.outcome_category,
            month=record.month,
        )

    def to_record(self) -> CrimeRecord:
        """Detached snapshot of this row."""
        return CrimeRecord(
            crime_id=self.crime_id,
            crime_type=self.crime_type or "",
            reported_by=self.reported_by or "",
            lsoa_name=self.lsoa_name or "",
            latitude=self.latitude if self.latitude is not None else 0.0,
            longitude=self.longitude if self.longitude is not None else 0.0,
            outcome_category=self.outcome_category or "",
            month=self.month or "",
        )

    def __repr__(self):
        return f"<Crime(crime_id={self.crime_id}, crime_type={self.crime_type})>"


class Preference(Base):
    """
    Key-value settings that survive restarts.
    Holds the logged-in session (is_logged_in, user_role, user_name, ...).
    """
    __tablename__ = "preferences"

    key = Column(String(64), primary_key=True)
    value = Column(String(512))
