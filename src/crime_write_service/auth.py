"""
Login, registration and role-based access for the crime records services.

The credential rules are the ones the dataset app has always used for its
demo accounts. They are a business rule, not a security mechanism:

- admin@crimes.com / admin123 logs in as Admin
- user@crimes.com / user123 logs in as User
- any other valid email with a password of 6+ characters logs in, as Admin
  only if the email is the admin address

Sessions are plain UserSession objects. Callers pass them into every
operation that needs authorization; AuthService only persists the current
one so it survives a restart, until logout() clears it.
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from crime_write_service import config
from crime_write_service.validation import is_valid_email, is_valid_password

logger = logging.getLogger(__name__)

KEY_IS_LOGGED_IN = "is_logged_in"
KEY_USER_ID = "user_id"
KEY_USER_ROLE = "user_role"
KEY_USER_NAME = "user_name"
KEY_USER_EMAIL = "user_email"


class Role(Enum):
    ADMIN = "Admin"
    USER = "User"


class Operation(Enum):
    READ = "read"
    SEARCH = "search"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    IMPORT = "import"


ADMIN_OPERATIONS = frozenset({Operation.CREATE, Operation.UPDATE, Operation.DELETE, Operation.IMPORT})


class AuthError(Exception):
    """Login or registration was rejected."""


class AccessDeniedError(Exception):
    """The session may not perform the requested operation."""

    def __init__(self, operation: Operation, session=None):
        self.operation = operation
        if session is None:
            message = f"Access denied: login required to {operation.value}"
        else:
            message = f"Access denied: Admin role required to {operation.value}"
        super().__init__(message)


@dataclass(frozen=True)
class UserSession:
    user_id: str
    display_name: str
    email: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN


def is_admin_email(email: str) -> bool:
    return config.ADMIN_EMAIL.lower() == (email or "").lower()


def is_authorized_for(operation: Operation, session: Optional[UserSession]) -> bool:
    """Import/create/update/delete need Admin; read and search need any session."""
    if session is None:
        return False
    if operation in ADMIN_OPERATIONS:
        return session.role is Role.ADMIN
    return True


def require(operation: Operation, session: Optional[UserSession]) -> None:
    """Raise AccessDeniedError unless session may perform operation."""
    if not is_authorized_for(operation, session):
        logger.warning(f"Denied {operation.value} for "
                       f"{session.email if session else 'anonymous'}")
        raise AccessDeniedError(operation, session)


def _timestamp_id(prefix):
    return f"{prefix}_{int(time.time() * 1000)}"


class AuthService:
    """Local authentication with the session kept in a PreferenceStore."""

    def __init__(self, preferences):
        self.preferences = preferences

    def login(self, email: str, password: str) -> UserSession:
        logger.info(f"Attempting login for: {email}")
        email = email or ""
        password = password or ""

        if not email or not password:
            raise AuthError("Email and password are required")

        if is_admin_email(email) and password == config.ADMIN_PASSWORD:
            return self._save(UserSession("admin_uid", "Admin User", email, Role.ADMIN))

        if config.DEMO_USER_EMAIL.lower() == email.lower() and password == config.DEMO_USER_PASSWORD:
            return self._save(UserSession("user_uid", "Regular User", email, Role.USER))

        # Any valid email with a long enough password is accepted
        if is_valid_email(email) and is_valid_password(password):
            role = Role.ADMIN if is_admin_email(email) else Role.USER
            return self._save(UserSession(_timestamp_id("demo"), "Demo User", email, role))

        raise AuthError("Invalid email format or password too short "
                        f"(minimum {config.MIN_PASSWORD_LENGTH} characters)")

    def register(self, full_name: str, email: str, password: str,
                 requested_role: Union[Role, str] = Role.USER) -> UserSession:
        logger.info(f"Attempting registration for: {email}")

        if not full_name or not email or not password:
            raise AuthError("All fields are required")
        if not is_valid_email(email):
            raise AuthError("Invalid email format")
        if not is_valid_password(password):
            raise AuthError(f"Password must be at least {config.MIN_PASSWORD_LENGTH} characters")

        try:
            role = requested_role if isinstance(requested_role, Role) else Role(requested_role)
        except ValueError:
            raise AuthError(f"Unknown role: {requested_role}")

        # The admin address always gets the Admin role
        if is_admin_email(email):
            role = Role.ADMIN

        return self._save(UserSession(_timestamp_id("user"), full_name, email, role))

    def logout(self) -> None:
        logger.info("Logging out user")
        self.preferences.clear()

    def current_session(self) -> Optional[UserSession]:
        """Rebuild the persisted session, or None when nobody is logged in."""
        values = self.preferences.get_all()
        if values.get(KEY_IS_LOGGED_IN) != "true":
            return None
        try:
            role = Role(values.get(KEY_USER_ROLE, Role.USER.value))
        except ValueError:
            logger.warning(f"Stored role {values.get(KEY_USER_ROLE)!r} is not valid, using User")
            role = Role.USER
        return UserSession(
            user_id=values.get(KEY_USER_ID, ""),
            display_name=values.get(KEY_USER_NAME, ""),
            email=values.get(KEY_USER_EMAIL, ""),
            role=role,
        )

    # Used at process start
    restore = current_session

    def is_logged_in(self) -> bool:
        return self.preferences.get(KEY_IS_LOGGED_IN) == "true"

    def current_role(self) -> str:
        return self.preferences.get(KEY_USER_ROLE, Role.USER.value)

    def current_name(self) -> str:
        return self.preferences.get(KEY_USER_NAME, "")

    def current_email(self) -> str:
        return self.preferences.get(KEY_USER_EMAIL, "")

    def is_current_user_admin(self) -> bool:
        return self.current_role() == Role.ADMIN.value

    def _save(self, session: UserSession) -> UserSession:
        self.preferences.put_all({
            KEY_IS_LOGGED_IN: "true",
            KEY_USER_ID: session.user_id,
            KEY_USER_ROLE: session.role.value,
            KEY_USER_NAME: session.display_name,
            KEY_USER_EMAIL: session.email,
        })
        logger.info(f"User saved to preferences: {session.display_name} ({session.role.value})")
        return session
