from __future__ import annotations

from typing import Any


class EFormError(Exception):
    pass


class ApiError(EFormError):
    def __init__(self, message: str, status_code: int | None = None, body: Any = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class VersioningError(EFormError):
    pass


class ValidationError(EFormError):
    def __init__(self, errors: list[str]) -> None:
        super().__init__("; ".join(errors))
        self.errors = errors


def error_message(body: Any, default: str) -> str:
    """Pick the server's ``error`` text out of a response body."""
    if isinstance(body, dict):
        message = body.get("error") or body.get("message")
        if message:
            return str(message)
    return default
