"""Domain-layer error definitions."""

from collections.abc import Sequence

# ============================================================================
#                           General errors
# ============================================================================


class StackstrapError(Exception):
    """Base class for STACKSTRAP errors.

    `exit_code` is the process status the CLI exits with when the error
    escapes a command.
    """

    exit_code: int = 1


# ============================================================================
#                           Settings errors
# ============================================================================


class SettingError(StackstrapError):
    """Base class for configuration errors."""


class MissingSettingError(SettingError):
    """Raised when a required environment setting is not set or empty."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Required setting {name} is not set.")
        self.name = name


class InvalidSettingError(SettingError):
    """Raised when an environment setting cannot be parsed."""

    def __init__(self, name: str, value: str, reason: str) -> None:
        super().__init__(f"Invalid value {value!r} for {name}: {reason}")
        self.name = name
        self.value = value
        self.reason = reason


# ============================================================================
#                   Missing dependency errors
# ============================================================================


class DependencyTimeoutError(StackstrapError):
    """Raised when a dependency (file, port) does not appear within its bound."""

    def __init__(self, what: str, attempts: int, interval: float) -> None:
        super().__init__(
            f"Timed out waiting for {what} after {attempts} attempts "
            f"({attempts * interval:g}s)."
        )
        self.what = what
        self.attempts = attempts
        self.interval = interval


class EmptyTokenError(StackstrapError):
    """Raised when a service account token file exists but holds no token."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Token file {path} is empty.")
        self.path = path


# ============================================================================
#                   External tool errors
# ============================================================================


class ToolError(StackstrapError):
    """Raised when an external tool exits non-zero.

    The tool's return code becomes the CLI exit code.
    """

    def __init__(self, argv: Sequence[str], returncode: int, stderr: str = "") -> None:
        tool = argv[0] if argv else "<unknown>"
        detail = stderr.strip().splitlines()[-1] if stderr.strip() else "no output"
        super().__init__(f"{tool} exited with status {returncode}: {detail}")
        self.argv = list(argv)
        self.returncode = returncode
        self.stderr = stderr
        self.exit_code = returncode if returncode > 0 else 1


class ToolNotFoundError(StackstrapError):
    """Raised when an external tool is not on PATH."""

    exit_code = 127

    def __init__(self, tool: str) -> None:
        super().__init__(f"{tool} is required but was not found in PATH.")
        self.tool = tool


# ============================================================================
#                   Certificate errors
# ============================================================================


class CertificateError(StackstrapError):
    """Raised for missing or unusable certificate material."""


class ChainVerificationError(CertificateError):
    """Raised when a leaf certificate does not chain to the CA."""

    def __init__(self, service: str, reason: str) -> None:
        super().__init__(f"Certificate for {service} does not verify: {reason}")
        self.service = service
        self.reason = reason


# ============================================================================
#                   Rendered configuration errors
# ============================================================================


class ConfigFileError(StackstrapError):
    """Raised when an existing service config file cannot be parsed."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Cannot update {path}: {reason}")
        self.path = path
        self.reason = reason


# ============================================================================
#                   Volume maintenance errors
# ============================================================================


class VolumeResetError(StackstrapError):
    """Raised when a stack directory cannot be emptied or recreated."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(
            f"Cannot reset {path}: {reason}. Files created by containers may be "
            "owned by root; re-run with sudo."
        )
        self.path = path
        self.reason = reason
