"""Domain errors raised by services and mapped to HTTP responses in main.py."""

from __future__ import annotations


class DebtWatchError(Exception):
    """Base error. ``status_code`` is the HTTP status the API responds with."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationError(DebtWatchError):
    """A required external endpoint or secret is not configured."""

    status_code = 503


class UpstreamError(DebtWatchError):
    """The automation platform call failed or returned a non-success status."""

    status_code = 502

    def __init__(self, message: str, upstream_status: int | None = None):
        super().__init__(message)
        self.upstream_status = upstream_status


class NotFoundError(DebtWatchError):
    """Referenced client does not exist."""

    status_code = 404


class ValidationError(DebtWatchError):
    """Malformed input, rejected before any side effect."""

    status_code = 422
