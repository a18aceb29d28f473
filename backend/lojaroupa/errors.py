# Overview: Error kinds raised by services and mapped to HTTP responses by routes.

"""
Every workflow raises the most specific kind as soon as a precondition fails.
Routes translate a LedgerError into {"error", "code"} with its status; anything
else is an Internal fault: logged with traceback, answered generically.
"""

from __future__ import annotations


class LedgerError(Exception):
    """Base class for expected, user-visible failures."""

    status_code = 400
    code = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.message, "code": self.code}


class ValidationError(LedgerError):
    """Missing or malformed input."""

    code = "validation_error"

    def __init__(self, message: str, violations: list[str] | None = None):
        super().__init__(message)
        self.violations = list(violations or [])

    def to_dict(self) -> dict:
        body = super().to_dict()
        if self.violations:
            body["violations"] = self.violations
        return body


class Unauthenticated(LedgerError):
    status_code = 401
    code = "unauthenticated"


class Forbidden(LedgerError):
    status_code = 403
    code = "forbidden"


class NotFound(LedgerError):
    status_code = 404
    code = "not_found"


class ConflictError(LedgerError):
    """409-level business rule conflict (e.g., duplicate email)."""

    status_code = 409
    code = "conflict"


class InvalidState(LedgerError):
    """Wrong transaction type or already returned/exchanged."""

    code = "invalid_state"


class InsufficientStock(LedgerError):
    code = "insufficient_stock"

    def __init__(self, message: str, product_id: int | None = None):
        super().__init__(message)
        self.product_id = product_id


class ValueMismatch(LedgerError):
    """Exchange totals differ from the original transaction price."""

    code = "value_mismatch"


INTERNAL_ERROR_BODY = {"error": "Internal server error", "code": "internal_error"}
