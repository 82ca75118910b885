from __future__ import annotations


class AppError(Exception):
    """Base error converted to a JSON response at the handler boundary."""

    status_code = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(AppError):
    status_code = 400


class InvalidStateError(AppError):
    status_code = 400


class NotFoundError(AppError):
    status_code = 404


class StaleStatusError(AppError):
    status_code = 409


class ConfigurationError(AppError):
    status_code = 500


class InternalError(AppError):
    status_code = 500


class UpstreamError(AppError):
    """A provider answered with a non-success status or could not be reached."""

    status_code = 502

    def __init__(self, message: str, status_code: int | None = None):
        # Mirror provider statuses only when they are real HTTP errors.
        if status_code is not None and not 400 <= status_code <= 599:
            status_code = None
        super().__init__(message, status_code)


class UpstreamTimeoutError(UpstreamError):
    status_code = 504
