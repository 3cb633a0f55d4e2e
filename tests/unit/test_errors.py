# =============================================================================
# tests/unit/test_errors.py
# Unit Tests for the exception hierarchy and handlers
# =============================================================================

import pytest

from fintrack_core.errors import (
    ConfigurationError,
    ErrorContext,
    FinTrackError,
    NotConfiguredError,
    NotFoundError,
    RecordKeyError,
    RejectedError,
    RemoteUnreachableError,
    handle_error,
    safe_execute,
)
from fintrack_core.services.base_service import BaseService, ServiceResult


class TestExceptionHierarchy:
    @pytest.mark.parametrize(
        "error, code",
        [
            (FinTrackError("x"), "FT_000"),
            (NotConfiguredError("x", store="script"), "STORE_000"),
            (RemoteUnreachableError("x", store="supabase", operation="ping"), "STORE_001"),
            (RejectedError("x", email="a@example.com"), "AUTH_001"),
            (NotFoundError("x", key="npf_2025"), "STORE_404"),
            (RecordKeyError("x", kind="weekly"), "DATA_001"),
            (ConfigurationError("x", config_key="url"), "CONFIG_001"),
        ],
    )
    def test_codes(self, error, code):
        assert error.code == code
        assert isinstance(error, FinTrackError)

    def test_record_key_error_is_value_error(self):
        assert isinstance(RecordKeyError("bad"), ValueError)

    def test_details_and_str(self):
        error = RemoteUnreachableError("Timed out", store="script", operation="SAVE")

        assert error.details == {"store": "script", "operation": "SAVE"}
        assert str(error).startswith("[STORE_001] Timed out")
        assert error.to_dict()["error_type"] == "RemoteUnreachableError"

    def test_configuration_error_not_recoverable(self):
        assert ConfigurationError("x").recoverable is False


class TestHandlers:
    def test_handle_error_returns_message(self):
        assert handle_error(RejectedError("Invalid email or password.")) == "Invalid email or password."

    def test_handle_error_shows_streamlit_message(self, mock_streamlit):
        handle_error(RejectedError("Nope"), show_user_message=True)
        mock_streamlit.error.assert_called_once_with("Error: Nope")

    def test_safe_execute_default(self):
        assert safe_execute(lambda: 1 / 0, default=[]) == []

    def test_safe_execute_reraise(self):
        with pytest.raises(ZeroDivisionError):
            safe_execute(lambda: 1 / 0, reraise=True)

    def test_error_context_suppresses_recoverable(self):
        with ErrorContext("mirroring audit entry") as context:
            raise RemoteUnreachableError("down")
        assert isinstance(context.error, RemoteUnreachableError)

    def test_error_context_reraises_unrecoverable(self):
        with pytest.raises(RuntimeError):
            with ErrorContext("startup", recoverable=False):
                raise RuntimeError("boom")


class TestServiceResult:
    def test_from_fintrack_error(self):
        result = ServiceResult.from_exception(NotFoundError("User 9 not found", key="9"))

        assert not result
        assert result.error_code == "STORE_404"
        assert result.metadata == {"key": "9"}

    def test_from_generic_exception(self):
        result = ServiceResult.from_exception(RuntimeError("boom"))
        assert result.error_code == "EXCEPTION"

    def test_ok_is_truthy(self):
        assert ServiceResult.ok(data=1, message="done")


class TestBaseServiceSafeExecute:
    """Exceptions folded into results"""

    @pytest.fixture
    def service(self):
        class YearService(BaseService):
            pass

        return YearService()

    def test_plain_value_wrapped(self, service):
        result = service.safe_execute("Listing years", lambda: [2025, 2026])
        assert result.success
        assert result.data == [2025, 2026]

    def test_returned_result_passes_through(self, service):
        refused = ServiceResult.fail("Year 2025 already exists.", error_code="DUPLICATE_YEAR")
        assert service.safe_execute("Adding year", lambda: refused) is refused

    def test_fintrack_error_keeps_code(self, service):
        def missing():
            raise NotFoundError("User 9 not found", key="9")

        result = service.safe_execute("Deleting user", missing)
        assert result.error_code == "STORE_404"
        assert result.error == "User 9 not found"

    def test_unexpected_error_becomes_failure(self, service):
        result = service.safe_execute("Toggling maintenance", lambda: 1 / 0)
        assert not result
        assert result.error_code == "UNKNOWN"
