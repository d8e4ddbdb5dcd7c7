"""
Verdict Errors.

Evaluation never raises: missing fields become UNKNOWN and type mismatches
become NOT_MET. Exceptions are reserved for malformed input documents
(rejected before evaluation) and for failed callback deliveries.
"""

from __future__ import annotations


class VerdictError(Exception):
    """Base exception for verdict operations."""

    pass


class SerializationError(VerdictError):
    """Raised when a rule document or fact payload is malformed."""

    def __init__(self, message: str, path: str | None = None):
        self.message = message
        self.path = path
        if path:
            message = f"{path}: {message}"
        super().__init__(message)


class RulesFileError(SerializationError):
    """Raised when a rules file cannot be read or parsed."""

    def __init__(self, filename: str, reason: str):
        self.filename = filename
        self.reason = reason
        super().__init__(reason, path=filename)


class DeliveryError(VerdictError):
    """Raised when a notification could not be delivered to its callback URL."""

    def __init__(self, url: str, reason: str, status_code: int | None = None):
        self.url = url
        self.reason = reason
        self.status_code = status_code
        msg = f"Delivery to {url} failed"
        if status_code is not None:
            msg += f" (HTTP {status_code})"
        msg += f": {reason}"
        super().__init__(msg)
