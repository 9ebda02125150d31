"""Errors raised by the relay and mapped to HTTP responses in main."""

from typing import Any, Optional


class ProviderError(Exception):
    """Non-success answer (or no answer) from the Onfido API."""

    def __init__(self, status: int, message: str, payload: Optional[Any] = None):
        super().__init__(message)
        self.status = status
        self.message = message
        self.payload = payload

    def __repr__(self) -> str:
        return f"ProviderError(status={self.status}, message={self.message!r})"


class RunNotFoundError(Exception):
    """No data known for a workflow run identifier."""

    def __init__(self, run_id: str):
        super().__init__(f"Run {run_id} not found")
        self.run_id = run_id
