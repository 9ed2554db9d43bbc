"""Unit tests for the sluice-core exception hierarchy."""

from __future__ import annotations

import pytest

from sluice_core.errors import (
    AdaptationError,
    ConfigurationError,
    ParseError,
    ResolutionError,
    SluiceError,
    SpecNotFoundError,
    UnsupportedAnswerError,
    ValidationError,
)


class TestSluiceError:
    """Tests for SluiceError base exception."""

    def test_user_message(self) -> None:
        """SluiceError carries its user message."""
        error = SluiceError("Something went wrong")
        assert str(error) == "Something went wrong"
        assert error.user_message == "Something went wrong"

    def test_internal_details_logged_not_shown(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Internal details reach the log but not the message."""
        error = SluiceError("Spec invalid", internal_details="regex mismatch at line 4")
        assert "regex mismatch" not in str(error)

        captured = capsys.readouterr()
        assert "sluice_error" in captured.out
        assert "regex mismatch at line 4" in captured.out

    def test_no_log_without_details(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Plain errors do not log."""
        SluiceError("quiet")
        assert "sluice_error" not in capsys.readouterr().out

    @pytest.mark.parametrize(
        "error",
        [
            ValidationError("bad"),
            ParseError("bad"),
            ResolutionError(kind="task", name="x", available=[]),
            ConfigurationError("bad"),
            SpecNotFoundError("job", "x"),
            AdaptationError("x", ValueError("bad")),
            UnsupportedAnswerError(1),
        ],
    )
    def test_hierarchy(self, error: SluiceError) -> None:
        """Every error can be caught as SluiceError."""
        assert isinstance(error, SluiceError)


class TestParseError:
    """Tests for ParseError context."""

    def test_field_and_value(self) -> None:
        error = ParseError("invalid duration", field="task.window.size", value="2M x")
        assert str(error) == "invalid duration (field 'task.window.size', value '2M x')"
        assert error.field == "task.window.size"
        assert error.value == "2M x"

    def test_empty_value_is_shown(self) -> None:
        """An empty offending value is still reported."""
        assert str(ParseError("invalid duration", value="")) == "invalid duration (value '')"


class TestConfigurationError:
    """Tests for ConfigurationError context."""

    def test_all_context(self) -> None:
        error = ConfigurationError(
            "Invalid host", file_path="sluice.yaml", line_number=3, field_path="host"
        )
        assert str(error) == "Invalid host (in sluice.yaml, line 3, field 'host')"

    def test_no_context(self) -> None:
        assert str(ConfigurationError("Invalid host")) == "Invalid host"


class TestOtherErrors:
    """Tests for the remaining error messages."""

    def test_resolution_error(self) -> None:
        error = ResolutionError(kind="hook", name="slack", available=["predator", "transporter"])
        assert str(error) == "Hook 'slack' is not registered. Available: predator, transporter"

    def test_spec_not_found(self) -> None:
        assert str(SpecNotFoundError("job", "orders")) == "Job spec 'orders' not found"

    def test_adaptation_error_keeps_cause(self) -> None:
        cause = ValueError("boom")
        error = AdaptationError("orders", cause)
        assert error.entity == "orders"
        assert error.cause is cause
        assert str(error) == "failed to serialize: orders: boom"

    def test_unsupported_answer(self) -> None:
        error = UnsupportedAnswerError(3.5)
        assert error.value == 3.5
        assert str(error) == "unknown type found while parsing input: 3.5"
