"""Tests for errors and common modules."""
import re
from datetime import datetime

from orca_contracts.common import new_session_id, utc_timestamp
from orca_contracts.errors import (
    ERROR_RETRYABILITY,
    NON_RETRYABLE_ERROR_CODES,
    RETRYABLE_ERROR_CODES,
    ErrorCode,
    is_retryable,
)


class TestErrorCodes:
    """Tests for the ErrorCode enum and retryability table."""

    def test_error_code_values(self):
        """Codes serialise to their own names."""
        assert [code.value for code in ErrorCode] == [
            "VALIDATION_ERROR",
            "UNKNOWN_AGENT",
            "SESSION_NOT_FOUND",
            "AGENT_ERROR",
            "TIMEOUT",
            "AUTONOMY_BLOCKED",
            "APPROVAL_REQUIRED",
        ]

    def test_every_code_is_classified(self):
        """The retryability table covers the whole enum."""
        assert set(ERROR_RETRYABILITY) == set(ErrorCode)

    def test_retryable_codes(self):
        """Transient failures are retryable."""
        assert RETRYABLE_ERROR_CODES == {
            ErrorCode.AGENT_ERROR,
            ErrorCode.TIMEOUT,
            ErrorCode.VALIDATION_ERROR,
        }

    def test_non_retryable_codes(self):
        """Permanent and policy failures are not retryable."""
        assert NON_RETRYABLE_ERROR_CODES == {
            ErrorCode.UNKNOWN_AGENT,
            ErrorCode.SESSION_NOT_FOUND,
            ErrorCode.AUTONOMY_BLOCKED,
            ErrorCode.APPROVAL_REQUIRED,
        }

    def test_is_retryable_accepts_strings(self):
        """Lookups work with raw code strings."""
        assert is_retryable("TIMEOUT") is True
        assert is_retryable("UNKNOWN_AGENT") is False

    def test_is_retryable_unknown_code(self):
        """Unrecognised codes are never retried."""
        assert is_retryable("SOMETHING_ELSE") is False


class TestCommon:
    """Tests for shared primitives."""

    def test_new_session_id_is_uuid4(self):
        """Generated session ids are version 4 UUIDs."""
        session_id = new_session_id()
        assert re.match(
            r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
            session_id,
        )
        assert new_session_id() != session_id

    def test_utc_timestamp_format(self):
        """Timestamps are UTC, millisecond precision, Z-suffixed."""
        stamp = utc_timestamp()
        assert re.match(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$", stamp)
        parsed = datetime.fromisoformat(stamp.replace("Z", "+00:00"))
        assert parsed.utcoffset().total_seconds() == 0
