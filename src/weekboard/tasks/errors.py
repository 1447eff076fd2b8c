# src/weekboard/tasks/errors.py

from __future__ import annotations

from typing import Any


class TaskError(Exception):
    """Base class for every failure the board surfaces to its callers."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        details: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details


class ValidationError(TaskError):
    """Rejected form input (empty/over-length title, missing date, bad category)."""


class AuthError(TaskError):
    """No active session (HTTP 401)."""


class NotFoundError(TaskError):
    """Stale task id (HTTP 404)."""


class TransientError(TaskError):
    """Network failure, timeout or server error."""


def friendly_error_message(err: BaseException) -> str:
    if isinstance(err, ValidationError):
        return err.message
    if isinstance(err, AuthError):
        return "Your session has expired. Please sign in again."
    if isinstance(err, NotFoundError):
        return "That task no longer exists. Refresh the week to resync."
    if isinstance(err, TransientError):
        return f"Could not reach the task service ({err.message}). Your change was undone."
    return "Unexpected error. Your change was undone."
