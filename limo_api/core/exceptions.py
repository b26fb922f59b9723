"""Exceptions raised by the quote and booking services."""
from typing import Iterable


class ApiError(Exception):
    """Client-visible failure rendered as ``{"ok": false, "error": ...}``."""

    status_code = 400

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class MissingFieldsError(ApiError):
    """Raised when one or more required request fields are absent or blank."""

    def __init__(self, fields: Iterable[str]):
        self.fields = list(fields)
        super().__init__(f"Missing fields: {', '.join(self.fields)}", status_code=400)


class DistanceProviderError(Exception):
    """Raised by the distance-matrix client; always absorbed by the resolver.

    ``reason`` is a short tag such as ``timeout``, ``http_503``,
    ``api_REQUEST_DENIED`` or ``element_NOT_FOUND``.
    """

    def __init__(self, reason: str, detail: str | None = None):
        super().__init__(f"{reason}: {detail}" if detail else reason)
        self.reason = reason
        self.detail = detail
