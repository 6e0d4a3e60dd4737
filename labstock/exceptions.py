"""Errors raised by the inventory services.

Routes never build error responses themselves; the handlers in
``labstock.routes.errors`` turn these into JSON bodies with the matching
status code.
"""

from __future__ import annotations


class InventoryError(Exception):
    status_code = 400

    def __init__(self, message: str, details: str | None = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, str]:
        payload = {"error": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(InventoryError):
    status_code = 400


class NotFoundError(InventoryError):
    status_code = 404


class ConflictError(InventoryError):
    status_code = 409
