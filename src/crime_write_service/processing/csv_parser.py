"""
CSV line parsing for the crime dataset.

Expected format: crimeId,crimeType,reportedBy,lsoaName,latitude,longitude,outcomeCategory
"""

import logging
from typing import List, Optional

from crime_write_service import config
from crime_write_service.models import CrimeRecord

logger = logging.getLogger(__name__)


def parse_line(line: str) -> List[str]:
    """
    Split one CSV line into fields.

    A double quote toggles "inside quotes" and is dropped; commas inside quotes
    are kept. Doubled quotes are NOT unescaped, they just toggle twice, so
    'a,""b"",c' gives ['a', 'b', 'c'].
    """
    fields = []
    current = []
    in_quotes = False

    for char in line:
        if char == '"':
            in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            fields.append("".join(current))
            current = []
        else:
            current.append(char)

    # Last field (always emitted, even if empty)
    fields.append("".join(current))
    return fields


def _parse_coordinate(text: str, line_number: int) -> float:
    """Blank or unparseable coordinates become 0.0 instead of rejecting the line."""
    if not text:
        return 0.0
    try:
        return float(text)
    except ValueError:
        logger.warning(f"Invalid coordinate on line {line_number}: {text}")
        return 0.0


def parse_crime_line(line: str, line_number: int = 0) -> Optional[CrimeRecord]:
    """
    Turn one data line into a CrimeRecord.
    Returns None when the line is too short or misses the id / crime type.
    """
    parts = parse_line(line)

    if len(parts) < config.MIN_CSV_FIELDS:
        logger.warning(f"Line {line_number} has insufficient columns: {len(parts)}")
        return None

    crime_id, crime_type, reported_by, lsoa_name, lat_str, lng_str, outcome = (
        part.strip() for part in parts[:config.MIN_CSV_FIELDS]
    )

    if not crime_id or not crime_type:
        logger.warning(f"Line {line_number} missing required fields")
        return None

    latitude = _parse_coordinate(lat_str, line_number)
    longitude = _parse_coordinate(lng_str, line_number)

    return CrimeRecord(
        crime_id=crime_id,
        crime_type=crime_type,
        reported_by=reported_by,
        lsoa_name=lsoa_name,
        latitude=latitude,
        longitude=longitude,
        outcome_category=outcome,
        month=config.DEFAULT_IMPORT_MONTH,
    )
