# =============================================================================
# tests/test_session_exchange.py - OAuth Callback Handling Tests
# =============================================================================
# Service-level tests for SessionExchangeService using in-memory fakes.
# =============================================================================

from uuid import uuid4

import pytest

from core.models.account import AuthUser
from core.models.profile import OnboardingStep
from core.models.session import CallbackError, CallbackParams
from core.services.session_exchange import SessionExchangeService
from lib.session_store import AUTH_STORAGE_KEY


@pytest.fixture
def service(identity_store, profile_store):
    return SessionExchangeService(identity_store, profile_store)


# =============================================================================
# Error Branches
# =============================================================================

class TestProviderError:
    """Provider redirected with an error."""

    def test_redirects_to_error_page_with_description(self, service, identity_store, session_store):
        result = service.handle_callback(CallbackParams(
            error="access_denied",
            error_description="User cancelled",
        ))

        assert result.path == "/auth/auth-code-error"
        assert result.query == {"error": "User cancelled"}
        assert result.error == CallbackError.PROVIDER_ERROR
        assert identity_store.exchange_calls == []
        assert session_store.writes == []
        assert result.session_created is False

    def test_falls_back_to_error_code(self, service):
        result = service.handle_callback(CallbackParams(error="server_error"))

        assert result.query == {"error": "server_error"}

    def test_error_wins_over_code(self, service, identity_store, auth_user):
        """A code alongside an error is never exchanged."""
        code = identity_store.issue_code(auth_user)

        result = service.handle_callback(CallbackParams(code=code, error="access_denied"))

        assert result.error == CallbackError.PROVIDER_ERROR
        assert identity_store.exchange_calls == []


class TestMissingCredentials:
    """Neither code nor error present."""

    def test_redirects_to_generic_error_page(self, service, identity_store, session_store):
        result = service.handle_callback(CallbackParams())

        assert result.path == "/auth/auth-code-error"
        assert result.query == {}
        assert result.error == CallbackError.MISSING_CREDENTIALS
        assert identity_store.exchange_calls == []
        assert session_store.writes == []

    def test_same_destination_as_failed_exchange(self, service):
        missing = service.handle_callback(CallbackParams())
        failed = service.handle_callback(CallbackParams(code="not-a-real-code"))

        assert (missing.path, missing.query) == (failed.path, failed.query)


class TestExchangeFailure:
    """The code can't be exchanged."""

    def test_unknown_code(self, service, identity_store, session_store, profile_store):
        result = service.handle_callback(CallbackParams(code="bogus"))

        assert result.path == "/auth/auth-code-error"
        assert result.query == {}
        assert result.error == CallbackError.EXCHANGE_FAILED
        assert identity_store.exchange_calls == ["bogus"]
        assert session_store.writes == []
        assert profile_store.get_calls == []

    def test_error_detail_not_leaked(self, service):
        result = service.handle_callback(CallbackParams(code="bogus"))

        assert "flow state" not in str(result.query)

    def test_code_is_single_use(self, service, identity_store, auth_user):
        """A second exchange with the same code fails, and nothing retries."""
        code = identity_store.issue_code(auth_user)

        first = service.handle_callback(CallbackParams(code=code))
        second = service.handle_callback(CallbackParams(code=code))

        assert first.error is None
        assert second.error == CallbackError.EXCHANGE_FAILED
        assert identity_store.exchange_calls == [code, code]


# =============================================================================
# Successful Exchange
# =============================================================================

class TestSuccessfulExchange:
    """Code exchanged; destination depends on onboarding progress."""

    def test_complete_profile_lands_on_home(self, service, identity_store, profile_store, auth_user):
        profile_store.add(auth_user.id, OnboardingStep.COMPLETE)
        code = identity_store.issue_code(auth_user)

        result = service.handle_callback(CallbackParams(code=code))

        assert result.path == "/home"
        assert result.error is None
        assert result.user_id == auth_user.id
        assert result.session_created is True

    @pytest.mark.parametrize("step", ["not_started", "interests", "deal_breakers"])
    def test_incomplete_profile_goes_to_onboarding(self, service, identity_store, profile_store, auth_user, step):
        profile_store.add(auth_user.id, step)
        code = identity_store.issue_code(auth_user)

        result = service.handle_callback(CallbackParams(code=code))

        assert result.path == "/interests"

    def test_missing_profile_goes_to_onboarding(self, service, identity_store, auth_user):
        code = identity_store.issue_code(auth_user)

        result = service.handle_callback(CallbackParams(code=code, next="/saved"))

        assert result.path == "/interests"
        assert result.error is None

    def test_session_written_once(self, service, identity_store, session_store, auth_user):
        code = identity_store.issue_code(auth_user)

        service.handle_callback(CallbackParams(code=code))

        session_writes = [w for w in session_store.writes if w[0] == "set" and w[1].startswith(AUTH_STORAGE_KEY)]
        assert len(session_writes) == 1
        assert len(identity_store.exchange_calls) == 1

    def test_profile_read_once(self, service, identity_store, profile_store, auth_user):
        code = identity_store.issue_code(auth_user)

        service.handle_callback(CallbackParams(code=code))

        assert profile_store.get_calls == [str(auth_user.id)]

    def test_profile_fault_fails_safe_to_next(self, service, identity_store, profile_store, auth_user):
        profile_store.fail_get = True
        code = identity_store.issue_code(auth_user)

        result = service.handle_callback(CallbackParams(code=code, next="/saved"))

        assert result.path == "/saved"
        assert result.error == CallbackError.PROFILE_LOOKUP_FAILED
        assert result.session_created is True
        assert len(profile_store.get_calls) == 1

    def test_profile_fault_defaults_to_root(self, service, identity_store, profile_store, auth_user):
        profile_store.fail_get = True
        code = identity_store.issue_code(auth_user)

        result = service.handle_callback(CallbackParams(code=code))

        assert result.path == "/"

    @pytest.mark.parametrize("unsafe_next", [
        "https://evil.example.com",
        "//evil.example.com",
        "/\\evil.example.com",
        "saved",
    ])
    def test_off_site_next_is_ignored(self, service, identity_store, profile_store, auth_user, unsafe_next):
        profile_store.fail_get = True
        code = identity_store.issue_code(auth_user)

        result = service.handle_callback(CallbackParams(code=code, next=unsafe_next))

        assert result.path == "/"

    def test_no_user_goes_to_next(self, service, identity_store, profile_store, auth_user):
        identity_store.return_no_user = True
        code = identity_store.issue_code(auth_user)

        result = service.handle_callback(CallbackParams(code=code, next="/saved"))

        assert result.path == "/saved"
        assert profile_store.get_calls == []


# =============================================================================
# Reactivation on Sign-In
# =============================================================================

class TestReactivation:
    """Signing in again clears the deactivated flag."""

    def test_deactivated_account_is_reactivated(self, service, identity_store):
        user = AuthUser(
            id=uuid4(),
            email="back@example.com",
            user_metadata={"is_deactivated": True, "deactivated_at": "2024-01-15T10:30:00+00:00"},
        )
        code = identity_store.issue_code(user)

        service.handle_callback(CallbackParams(code=code))

        assert identity_store.reactivations == [str(user.id)]
        assert identity_store.metadata[str(user.id)]["is_deactivated"] is False

    def test_active_account_untouched(self, service, identity_store, auth_user):
        code = identity_store.issue_code(auth_user)

        service.handle_callback(CallbackParams(code=code))

        assert identity_store.reactivations == []

    def test_reactivation_failure_does_not_block_sign_in(self, service, identity_store, profile_store):
        identity_store.fail_reactivate = True
        user = AuthUser(id=uuid4(), user_metadata={"is_deactivated": True})
        profile_store.add(user.id, "complete")
        code = identity_store.issue_code(user)

        result = service.handle_callback(CallbackParams(code=code))

        assert result.path == "/home"
        assert result.error is None
