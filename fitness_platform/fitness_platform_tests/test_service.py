"""
Tests for the credential and token lifecycle service.
"""
from datetime import timedelta

import pytest

from fitness_platform.fitness_platform.auth_service.models import RefreshToken, User
from fitness_platform.fitness_platform.auth_service.repositories import UserRepository
from fitness_platform.fitness_platform.auth_service.auth import TokenIssuer
from fitness_platform.fitness_platform.auth_service.config import Settings
from fitness_platform.fitness_platform.auth_service.utils.clock import utcnow

from .conftest import VALID_PASSWORD


def register(auth_service, email="alice@example.com", password=VALID_PASSWORD, **names):
    result = auth_service.register(email, password, names.get("first_name"), names.get("last_name"))
    assert result.success, result.error
    return result


def token_row(session_factory, value):
    db = session_factory()
    try:
        return db.query(RefreshToken).filter(RefreshToken.token == value).one()
    finally:
        db.close()


def expire_token(session_factory, value, ago=timedelta(minutes=1)):
    db = session_factory()
    try:
        row = db.query(RefreshToken).filter(RefreshToken.token == value).one()
        row.expires_at = utcnow() - ago
        db.commit()
    finally:
        db.close()


# ============================================================================
# Register
# ============================================================================

def test_register_returns_user_and_tokens(auth_service, session_factory):
    result = register(auth_service, email="  Alice@Example.com ", first_name=" Alice ", last_name="Smith")

    user = result.data["user"]
    assert user.email == "alice@example.com"
    assert user.first_name == "Alice"
    assert user.last_name == "Smith"
    assert not hasattr(user, "password_hash")
    assert result.data["access_token"]

    row = token_row(session_factory, result.data["refresh_token"])
    assert row.user_id == user.id
    assert row.is_revoked is False
    assert timedelta(days=6, hours=23) < row.expires_at - utcnow() <= timedelta(days=7)


def test_register_stores_hash_not_password(auth_service, db_session):
    register(auth_service)

    stored = db_session.query(User).filter(User.email == "alice@example.com").one()
    assert stored.password_hash != VALID_PASSWORD
    assert auth_service.hasher.verify(VALID_PASSWORD, stored.password_hash)


def test_register_blank_names_are_stored_as_null(auth_service):
    result = register(auth_service, first_name="   ")
    assert result.data["user"].first_name is None
    assert result.data["user"].last_name is None


@pytest.mark.parametrize("email,password", [(None, VALID_PASSWORD), ("a@b.com", None), ("", ""), (None, None)])
def test_register_requires_email_and_password(auth_service, email, password):
    result = auth_service.register(email, password)

    assert not result.success
    assert result.error.kind == "validation_error"
    assert result.error.message == "Email and password are required"


def test_register_rejects_bad_email_shape(auth_service):
    result = auth_service.register("not-an-email", VALID_PASSWORD)

    assert result.error.kind == "validation_error"
    assert result.error.message == "Invalid email format"


def test_register_lists_all_password_violations(auth_service, db_session):
    result = auth_service.register("alice@example.com", "short")

    assert result.error.kind == "validation_error"
    errors = result.error.details["errors"]
    assert len(errors) == 4
    assert any("8 characters" in e for e in errors)
    assert db_session.query(User).count() == 0


def test_register_same_email_with_different_case_conflicts(auth_service):
    register(auth_service, email="A@B.com")
    result = auth_service.register("a@b.com", VALID_PASSWORD)

    assert not result.success
    assert result.error.kind == "conflict"


def test_register_unique_constraint_is_authoritative(auth_service, monkeypatch):
    """A racing registration that slips past the existence check still conflicts."""
    register(auth_service)
    monkeypatch.setattr(UserRepository, "get_by_email", lambda self, email: None)

    result = auth_service.register("alice@example.com", VALID_PASSWORD)

    assert result.error.kind == "conflict"


def test_register_is_atomic(auth_service, db_session, monkeypatch):
    """A failure after the user insert leaves neither a user nor a token behind."""
    def boom():
        raise RuntimeError("token generation failed")

    monkeypatch.setattr(auth_service.token_issuer, "issue_refresh", boom)

    with pytest.raises(RuntimeError):
        auth_service.register("alice@example.com", VALID_PASSWORD)

    assert db_session.query(User).count() == 0
    assert db_session.query(RefreshToken).count() == 0


# ============================================================================
# Login
# ============================================================================

def test_register_then_login_yields_verifiable_access_token(auth_service):
    register(auth_service)

    result = auth_service.login("ALICE@example.com ", VALID_PASSWORD)
    assert result.success
    assert "user" not in result.data

    verified = auth_service.verify_access_token(result.data["access_token"])
    assert verified.success
    assert verified.data["email"] == "alice@example.com"


def test_login_persists_a_new_refresh_token(auth_service, db_session):
    registered = register(auth_service)
    result = auth_service.login("alice@example.com", VALID_PASSWORD)

    assert result.data["refresh_token"] != registered.data["refresh_token"]
    assert db_session.query(RefreshToken).count() == 2


def test_login_wrong_password_and_unknown_email_look_identical(auth_service):
    register(auth_service)

    wrong_password = auth_service.login("alice@example.com", "Wrong1Pass!")
    unknown = auth_service.login("nobody@example.com", VALID_PASSWORD)

    assert wrong_password.error.kind == unknown.error.kind == "auth_error"
    assert wrong_password.error.message == unknown.error.message == "Invalid email or password"


def test_login_requires_both_fields(auth_service):
    result = auth_service.login("alice@example.com", "")
    assert result.error.kind == "validation_error"


# ============================================================================
# Refresh
# ============================================================================

def test_refresh_issues_new_access_token_without_rotation(auth_service):
    refresh_token = register(auth_service).data["refresh_token"]

    first = auth_service.refresh_access_token(refresh_token)
    second = auth_service.refresh_access_token(refresh_token)

    assert first.success and second.success
    assert auth_service.verify_access_token(first.data["access_token"]).data["email"] == "alice@example.com"


def test_refresh_requires_value(auth_service):
    assert auth_service.refresh_access_token("").error.kind == "validation_error"


def test_refresh_unknown_token_is_rejected(auth_service):
    result = auth_service.refresh_access_token("deadbeef")

    assert result.error.kind == "auth_error"
    assert result.error.message == "Invalid refresh token"


def test_refresh_expired_token_fails_and_revokes_it(auth_service, session_factory):
    refresh_token = register(auth_service).data["refresh_token"]
    expire_token(session_factory, refresh_token)

    result = auth_service.refresh_access_token(refresh_token)

    assert result.error.kind == "auth_error"
    assert result.error.message == "Refresh token expired"
    assert token_row(session_factory, refresh_token).is_revoked is True

    again = auth_service.refresh_access_token(refresh_token)
    assert again.error.message == "Invalid refresh token"


def test_refresh_with_missing_owner_is_an_integrity_fault(auth_service, monkeypatch):
    refresh_token = register(auth_service).data["refresh_token"]
    monkeypatch.setattr(UserRepository, "get_by_id", lambda self, user_id: None)

    result = auth_service.refresh_access_token(refresh_token)

    assert not result.success
    assert result.error.kind == "integrity_fault"
    assert result.error.message == "Invalid refresh token"


# ============================================================================
# Logout
# ============================================================================

def test_logout_without_token_succeeds(auth_service):
    result = auth_service.logout(None)
    assert result.success
    assert result.data["revoked"] == 0


def test_logout_with_unknown_token_succeeds(auth_service):
    result = auth_service.logout("not-a-stored-token")
    assert result.success
    assert result.data["revoked"] == 0


def test_logout_revokes_token_for_later_refresh(auth_service, session_factory):
    refresh_token = register(auth_service).data["refresh_token"]

    result = auth_service.logout(refresh_token)

    assert result.success
    assert result.data["revoked"] == 1
    assert token_row(session_factory, refresh_token).is_revoked is True
    assert auth_service.refresh_access_token(refresh_token).error.message == "Invalid refresh token"


# ============================================================================
# Verify access token
# ============================================================================

@pytest.mark.parametrize("token", [None, "", "   "])
def test_verify_missing_token(auth_service, token):
    assert auth_service.verify_access_token(token).error.kind == "missing"


def test_verify_malformed_token(auth_service):
    assert auth_service.verify_access_token("garbage").error.kind == "malformed"


def test_verify_token_from_other_secret(auth_service):
    user = register(auth_service).data["user"]
    other = TokenIssuer(Settings(_env_file=None, JWT_SECRET="another-secret-0123456789abcdef-0123456789"))

    result = auth_service.verify_access_token(other.issue_access(user))

    assert result.error.kind == "invalid-signature"


def test_verify_expired_token(auth_service, test_settings):
    user = register(auth_service).data["user"]
    stale = TokenIssuer(test_settings, clock=lambda: utcnow() - timedelta(hours=2))

    result = auth_service.verify_access_token(stale.issue_access(user))

    assert result.error.kind == "expired"


def test_get_user_returns_profile(auth_service):
    user = register(auth_service, first_name="Alice").data["user"]

    result = auth_service.get_user(user.id)

    assert result.data["user"].email == "alice@example.com"
    assert auth_service.get_user("missing-id").error.kind == "auth_error"


# ============================================================================
# Cleanup
# ============================================================================

def test_cleanup_revokes_only_expired_tokens_and_is_idempotent(auth_service, session_factory):
    first = register(auth_service, email="one@example.com").data["refresh_token"]
    second = register(auth_service, email="two@example.com").data["refresh_token"]
    live = register(auth_service, email="three@example.com").data["refresh_token"]
    expire_token(session_factory, first)
    expire_token(session_factory, second, ago=timedelta(days=3))

    assert auth_service.cleanup_expired_tokens() == 2
    assert auth_service.cleanup_expired_tokens() == 0

    assert token_row(session_factory, first).is_revoked is True
    assert token_row(session_factory, second).is_revoked is True
    assert token_row(session_factory, live).is_revoked is False
    assert auth_service.refresh_access_token(live).success


def test_cleanup_skips_already_revoked_tokens(auth_service, session_factory):
    refresh_token = register(auth_service).data["refresh_token"]
    auth_service.logout(refresh_token)
    expire_token(session_factory, refresh_token)

    assert auth_service.cleanup_expired_tokens() == 0
