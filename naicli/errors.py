"""Error hierarchy shared by the nai command-line client."""
from __future__ import annotations

from typing import Any


class CliError(RuntimeError):
    """Base class for failures surfaced to the end user.

    Every subclass carries a stable ``code`` which the CLI prints in front of
    the message, and an ``exit_code`` used for the process exit status."""

    code = "COMMAND_ERROR"

    def __init__(self, message: str, *, details: Any = None, exit_code: int = 1):
        super().__init__(message)
        self.message = message
        self.details = details
        self.exit_code = exit_code


class ConfigError(CliError):
    """Configuration error exception

    Raised whenever the configuration file is invalid or a required
    setting such as the API token is missing"""

    code = "CONFIG_ERROR"


class ValidationError(CliError):
    code = "VALIDATION_ERROR"


class UnsupportedImageError(ValidationError):
    """Image bytes are not PNG, JPEG or WebP, or their header cannot be parsed."""


class InvalidDimensionsError(ValidationError):
    """Image header parsed but declares a zero width or height."""


class UnsupportedResponseError(ValidationError):
    """Response body is neither JSON, a PNG image nor a ZIP bundle."""


class MalformedJsonError(ValidationError):
    """Response body looked like JSON but did not parse."""


class ApiError(CliError):
    """The API answered with a non-retryable failure status."""

    code = "API_ERROR"

    def __init__(self, message: str, *, status: int, endpoint: str, payload: Any = None):
        super().__init__(message, details=payload)
        self.status = status
        self.endpoint = endpoint
        self.payload = payload


class NetworkError(CliError):
    """Transport failure, timeout or cancellation after retries ran out."""

    code = "NETWORK_ERROR"


class FileAccessError(CliError):
    code = "IO_ERROR"


class ArchiveFormatError(FileAccessError):
    """Malformed or unsupported ZIP structure."""


def to_cli_error(exc: BaseException) -> CliError:
    if isinstance(exc, CliError):
        return exc
    message = str(exc) or "An unexpected error occurred."
    error = CliError(message, details=exc)
    error.__cause__ = exc
    return error


def describe(exc: CliError, *, include_code: bool = True) -> str:
    if include_code:
        return f"[{exc.code}] {exc.message}"
    return exc.message


__all__ = [
    "ApiError",
    "ArchiveFormatError",
    "CliError",
    "ConfigError",
    "FileAccessError",
    "InvalidDimensionsError",
    "MalformedJsonError",
    "NetworkError",
    "UnsupportedImageError",
    "UnsupportedResponseError",
    "ValidationError",
    "describe",
    "to_cli_error",
]

