"""Unit tests for domain errors."""

import pytest

from stackstrap.domain import errors


class TestInvalidSettingError:
    """Tests for the InvalidSettingError domain error."""

    @staticmethod
    def test_attributes() -> None:
        """The setting name, value and reason are kept on the error."""
        error = errors.InvalidSettingError("COUNTRY", "USA", "expected a 2-letter code")
        assert error.name == "COUNTRY"
        assert error.value == "USA"
        assert error.reason == "expected a 2-letter code"

    @staticmethod
    def test_error_message() -> None:
        """The message names the setting and quotes the bad value."""
        error = errors.InvalidSettingError("COUNTRY", "USA", "expected a 2-letter code")
        assert str(error) == "Invalid value 'USA' for COUNTRY: expected a 2-letter code"

    @staticmethod
    def test_is_a_setting_error() -> None:
        assert isinstance(errors.InvalidSettingError("X", "y", "z"), errors.SettingError)


class TestMissingSettingError:
    """Tests for the MissingSettingError domain error."""

    @staticmethod
    def test_error_message() -> None:
        error = errors.MissingSettingError("KAFKA_LISTENERS")
        assert error.name == "KAFKA_LISTENERS"
        assert str(error) == "Required setting KAFKA_LISTENERS is not set."

    @staticmethod
    def test_exit_code_is_one() -> None:
        assert errors.MissingSettingError("X").exit_code == 1


class TestDependencyTimeoutError:
    """Tests for the DependencyTimeoutError domain error."""

    @staticmethod
    def test_error_message_reports_total_wait() -> None:
        """The message gives attempts and attempts x interval in seconds."""
        error = errors.DependencyTimeoutError("zookeeper:2181", 150, 2.0)
        assert str(error) == (
            "Timed out waiting for zookeeper:2181 after 150 attempts (300s)."
        )
        assert error.exit_code == 1


class TestToolError:
    """Tests for the ToolError domain error."""

    @staticmethod
    @pytest.mark.parametrize(
        ("returncode", "exit_code"), [(2, 2), (127, 127), (0, 1), (-9, 1)]
    )
    def test_exit_code_propagates_tool_status(returncode: int, exit_code: int) -> None:
        """A positive tool status becomes the exit code; anything else maps to 1."""
        error = errors.ToolError(["keytool", "-importkeystore"], returncode, "")
        assert error.exit_code == exit_code

    @staticmethod
    def test_error_message_uses_last_stderr_line() -> None:
        error = errors.ToolError(
            ["keytool", "-list"], 1, "warning: something\nkeytool error: bad password\n"
        )
        assert str(error) == "keytool exited with status 1: keytool error: bad password"

    @staticmethod
    def test_error_message_without_stderr() -> None:
        error = errors.ToolError(["certutil"], 5)
        assert str(error) == "certutil exited with status 5: no output"
        assert error.argv == ["certutil"]


class TestToolNotFoundError:
    """Tests for the ToolNotFoundError domain error."""

    @staticmethod
    def test_attributes() -> None:
        error = errors.ToolNotFoundError("docker")
        assert error.tool == "docker"
        assert error.exit_code == 127
        assert "docker" in str(error)


class TestChainVerificationError:
    """Tests for the ChainVerificationError domain error."""

    @staticmethod
    def test_is_a_certificate_error() -> None:
        error = errors.ChainVerificationError("kafka", "bad signature")
        assert isinstance(error, errors.CertificateError)
        assert str(error) == "Certificate for kafka does not verify: bad signature"


class TestVolumeResetError:
    """Tests for the VolumeResetError domain error."""

    @staticmethod
    def test_error_message_hints_at_sudo() -> None:
        error = errors.VolumeResetError("kafka/data", "Permission denied")
        assert str(error).startswith("Cannot reset kafka/data: Permission denied.")
        assert "sudo" in str(error)
