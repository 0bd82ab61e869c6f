"""hcserver exceptions."""

from pathlib import Path  # noqa: TC003 - Used in runtime type annotations


class HCServerError(Exception):
    """Base exception for hcserver errors."""


# =============================================================================
# Lifecycle Exceptions
# =============================================================================


class LifecycleError(HCServerError):
    """Raised when a lifecycle operation is requested in the wrong state.

    Attributes:
        state: The server state at the time of the request.
    """

    def __init__(self, message: str, *, state: str | None = None) -> None:
        """Initialize with error message and state context.

        Args:
            message: Human-readable error message.
            state: The server state at the time of the request.
        """
        super().__init__(message)
        self.state: str | None = state


class AlreadyStartingError(LifecycleError):
    """Raised when start() is called while a start is in progress."""


class AlreadyOnlineError(LifecycleError):
    """Raised when start() is called while a server process exists."""


class NotOnlineError(LifecycleError):
    """Raised when stop(), kill() or a command needs a running server."""


# =============================================================================
# RCON Exceptions
# =============================================================================


class RconError(HCServerError):
    """Base exception for remote console errors."""


class RconConnectionError(RconError):
    """Raised when an RCON session cannot be established.

    Attributes:
        host: The host the connection was attempted against.
        port: The RCON port.
        cause: The underlying exception, if any.
    """

    def __init__(
        self,
        message: str,
        *,
        host: str | None = None,
        port: int | None = None,
        cause: Exception | None = None,
    ) -> None:
        """Initialize with error message and connection context."""
        super().__init__(message)
        self.host: str | None = host
        self.port: int | None = port
        self.cause: Exception | None = cause


class RconCommandError(RconError):
    """Raised when an RCON command is rejected or times out.

    Attributes:
        command: The command that failed.
        cause: The underlying exception, if any.
    """

    def __init__(
        self,
        message: str,
        *,
        command: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        """Initialize with error message and command context."""
        super().__init__(message)
        self.command: str | None = command
        self.cause: Exception | None = cause


# =============================================================================
# Backup Exceptions
# =============================================================================


class ArchiveError(HCServerError):
    """Raised when the archive tool fails.

    Attributes:
        destination: The archive that was being written.
        exit_code: Exit code of the archive tool, if it ran.
    """

    def __init__(
        self,
        message: str,
        *,
        destination: Path | None = None,
        exit_code: int | None = None,
    ) -> None:
        """Initialize with error message and archive context."""
        super().__init__(message)
        self.destination: Path | None = destination
        self.exit_code: int | None = exit_code


class WorldResetError(HCServerError):
    """Raised when a step of the world reset fails.

    The workflow is not rolled back; steps completed before the failing one
    stay completed.

    Attributes:
        step: Name of the step that failed.
        cause: The underlying exception.
    """

    def __init__(
        self,
        message: str,
        *,
        step: str,
        cause: Exception | None = None,
    ) -> None:
        """Initialize with error message and step context.

        Args:
            message: Human-readable error message.
            step: Name of the step that failed.
            cause: The underlying exception.
        """
        super().__init__(message)
        self.step: str = step
        self.cause: Exception | None = cause


# =============================================================================
# Configuration Exceptions
# =============================================================================


class ConfigError(HCServerError):
    """Base exception for configuration errors."""


class ConfigLoadError(ConfigError):
    """Raised when configuration cannot be loaded or parsed."""

    def __init__(
        self,
        message: str,
        *,
        path: Path | None = None,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        """Initialize with error message and optional location context."""
        super().__init__(message)
        self.path: Path | None = path
        self.line: int | None = line
        self.column: int | None = column


class ConfigValidationError(ConfigError):
    """Raised when configuration fails validation."""

    def __init__(
        self,
        message: str,
        *,
        key: str,
        value: object,
        expected: str,
        source: str | None = None,
    ) -> None:
        """Initialize with error message and validation context."""
        super().__init__(message)
        self.key: str = key
        self.value: object = value
        self.expected: str = expected
        self.source: str | None = source
