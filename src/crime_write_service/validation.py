"""
Input validation shared by the import pipeline, the auth service and the APIs.
"""

import re
from typing import Optional

from crime_write_service import config

# Same shape of address the mobile client accepted
EMAIL_PATTERN = re.compile(
    r"[a-zA-Z0-9+._%\-]{1,256}"
    r"@"
    r"[a-zA-Z0-9][a-zA-Z0-9\-]{0,64}"
    r"(\.[a-zA-Z0-9][a-zA-Z0-9\-]{0,25})+"
)


class ValidationError(Exception):
    """Raised when a record or form is rejected before touching the store."""

    def __init__(self, problems):
        if isinstance(problems, str):
            problems = [problems]
        self.problems = list(problems)
        super().__init__("; ".join(self.problems))


def is_valid_email(email: Optional[str]) -> bool:
    return bool(email) and EMAIL_PATTERN.fullmatch(email) is not None


def is_valid_password(password: Optional[str]) -> bool:
    return password is not None and len(password) >= config.MIN_PASSWORD_LENGTH


def validate_email(email: Optional[str]) -> tuple[bool, Optional[str]]:
    """
    Validate email format.
    Returns (is_valid, error_message)
    """
    if not email or not email.strip():
        return False, "Email is required"
    if not is_valid_email(email.strip()):
        return False, "Invalid email format"
    return True, None


def validate_password(password: Optional[str]) -> tuple[bool, Optional[str]]:
    """
    Validate password length.
    Returns (is_valid, error_message)
    """
    if not password:
        return False, "Password is required"
    if len(password) < config.MIN_PASSWORD_LENGTH:
        return False, f"Password must be at least {config.MIN_PASSWORD_LENGTH} characters"
    return True, None


def is_valid_latitude(latitude: float) -> bool:
    return -90.0 <= latitude <= 90.0


def is_valid_longitude(longitude: float) -> bool:
    return -180.0 <= longitude <= 180.0


def is_valid_coordinate(latitude: float, longitude: float) -> bool:
    return is_valid_latitude(latitude) and is_valid_longitude(longitude)


def is_mappable(latitude: float, longitude: float) -> bool:
    """In range and not (0, 0), which is what unparseable coordinates become."""
    return is_valid_coordinate(latitude, longitude) and (latitude != 0.0 or longitude != 0.0)


def validate_crime(record) -> None:
    """Raise ValidationError listing everything wrong with a record from a form or API call."""
    problems = []
    if not record.crime_id or not record.crime_id.strip():
        problems.append("Crime ID is required")
    if not record.crime_type or not record.crime_type.strip():
        problems.append("Crime type is required")
    if not is_valid_latitude(record.latitude):
        problems.append("Latitude must be between -90 and 90")
    if not is_valid_longitude(record.longitude):
        problems.append("Longitude must be between -180 and 180")
    if problems:
        raise ValidationError(problems)
