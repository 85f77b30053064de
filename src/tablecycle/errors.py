"""
Error taxonomy surfaced to callers of the lifecycle engine.

Every error carries a stable ``code`` and the HTTP status the API layer maps
it to, so the routing layer never has to guess.
"""

from __future__ import annotations


class TablecycleError(Exception):
    code = "TABLECYCLE_ERROR"
    http_status = 500

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class ValidationError(TablecycleError):
    """Request rejected before anything was written."""

    code = "VALIDATION_ERROR"
    http_status = 400


class NotFound(TablecycleError):
    code = "NOT_FOUND"
    http_status = 404

    def __init__(self, table_id: str) -> None:
        super().__init__(f"Table {table_id} not found")
        self.table_id = table_id


class StoreUnavailable(TablecycleError):
    """The key/value store failed; earlier writes are not rolled back."""

    code = "STORE_UNAVAILABLE"
    http_status = 503
