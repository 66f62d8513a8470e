"""
Tests for login, registration, the persisted session and role checks.
"""

import pytest

from crime_write_service.auth import (
    AccessDeniedError,
    AuthError,
    AuthService,
    Operation,
    Role,
    is_authorized_for,
    require,
)
from crime_write_service.db.preferences import PreferenceStore


@pytest.fixture
def preferences(engine):
    return PreferenceStore(engine)


@pytest.fixture
def auth(preferences):
    return AuthService(preferences)


@pytest.mark.parametrize("email, password, user_id, name, role", [
    ("admin@crimes.com", "admin123", "admin_uid", "Admin User", Role.ADMIN),
    ("user@crimes.com", "user123", "user_uid", "Regular User", Role.USER),
])
def test_demo_accounts(auth, email, password, user_id, name, role):
    session = auth.login(email, password)
    assert session.user_id == user_id
    assert session.display_name == name
    assert session.email == email
    assert session.role is role


def test_any_valid_email_logs_in_as_user(auth):
    session = auth.login("someone@example.org", "secret1")
    assert session.role is Role.USER
    assert session.display_name == "Demo User"
    assert session.user_id.startswith("demo_")


def test_admin_email_with_other_password_is_still_admin(auth):
    session = auth.login("admin@crimes.com", "different-password")
    assert session.role is Role.ADMIN
    assert session.display_name == "Demo User"


def test_login_requires_both_fields(auth):
    with pytest.raises(AuthError, match="Email and password are required"):
        auth.login("", "whatever")
    with pytest.raises(AuthError, match="Email and password are required"):
        auth.login("someone@example.org", None)


@pytest.mark.parametrize("email, password", [
    ("not-an-email", "secret1"),
    ("someone@example.org", "short"),
])
def test_login_rejects_bad_credentials(auth, email, password):
    with pytest.raises(AuthError, match="minimum 6 characters"):
        auth.login(email, password)
    assert auth.current_session() is None


def test_six_character_password_is_enough(auth):
    assert auth.login("someone@example.org", "123456").role is Role.USER
    assert auth.register("Jane", "jane@example.org", "123456").display_name == "Jane"


def test_register_as_user(auth):
    session = auth.register("Jane Doe", "jane@example.org", "secret1")
    assert session.role is Role.USER
    assert session.display_name == "Jane Doe"
    assert session.user_id.startswith("user_")


def test_register_can_request_admin(auth):
    assert auth.register("Jane Doe", "jane@example.org", "secret1", "Admin").role is Role.ADMIN


def test_register_admin_email_always_gets_admin(auth):
    assert auth.register("Boss", "admin@crimes.com", "secret1", Role.USER).role is Role.ADMIN


@pytest.mark.parametrize("name, email, password, message", [
    ("", "jane@example.org", "secret1", "All fields are required"),
    ("Jane", "jane-at-example", "secret1", "Invalid email format"),
    ("Jane", "jane@example.org", "12345", "Password must be at least 6 characters"),
])
def test_register_validation(auth, name, email, password, message):
    with pytest.raises(AuthError, match=message):
        auth.register(name, email, password)


def test_register_unknown_role(auth):
    with pytest.raises(AuthError, match="Unknown role"):
        auth.register("Jane", "jane@example.org", "secret1", "Superuser")


def test_session_is_persisted_and_restored(preferences):
    AuthService(preferences).login("admin@crimes.com", "admin123")

    # A new service on the same storage sees the same user
    restored = AuthService(preferences).restore()
    assert restored.user_id == "admin_uid"
    assert restored.role is Role.ADMIN

    auth = AuthService(preferences)
    assert auth.is_logged_in()
    assert auth.current_role() == "Admin"
    assert auth.current_name() == "Admin User"
    assert auth.current_email() == "admin@crimes.com"
    assert auth.is_current_user_admin()


def test_logout_clears_everything(auth, preferences):
    auth.login("user@crimes.com", "user123")
    auth.logout()

    assert auth.current_session() is None
    assert not auth.is_logged_in()
    assert auth.current_role() == "User"
    assert auth.current_name() == ""
    assert preferences.get_all() == {}


def test_new_login_replaces_the_previous_session(auth):
    auth.login("admin@crimes.com", "admin123")
    auth.login("user@crimes.com", "user123")
    assert auth.current_session().role is Role.USER


@pytest.mark.parametrize("operation", list(Operation))
def test_nobody_logged_in_may_do_nothing(operation):
    assert not is_authorized_for(operation, None)


@pytest.mark.parametrize("operation, allowed", [
    (Operation.READ, True),
    (Operation.SEARCH, True),
    (Operation.CREATE, False),
    (Operation.UPDATE, False),
    (Operation.DELETE, False),
    (Operation.IMPORT, False),
])
def test_user_permissions(user_session, operation, allowed):
    assert is_authorized_for(operation, user_session) is allowed


@pytest.mark.parametrize("operation", list(Operation))
def test_admin_may_do_everything(admin_session, operation):
    assert is_authorized_for(operation, admin_session)


def test_require_messages(user_session):
    with pytest.raises(AccessDeniedError, match="login required to read"):
        require(Operation.READ, None)
    with pytest.raises(AccessDeniedError, match="Admin role required to delete"):
        require(Operation.DELETE, user_session)
