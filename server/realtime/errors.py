"""
Relay error types.

Only two conditions are raised as exceptions. Empty or duplicate writes are
expected no-ops and are reported through `WriteOutcome.REJECTED` instead.
"""

from __future__ import annotations


class RelayError(Exception):
    """Base class for relay failures that are reported to a single client."""

    message = "Relay error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        self.message = message or self.message


class InvalidSessionCode(RelayError):
    message = "Invalid session code"

    def __init__(self, code: str | None = None):
        super().__init__()
        self.code = code


class GeneratorExhausted(RelayError):
    message = "Could not allocate a session code"

    def __init__(self, attempts: int):
        super().__init__(f"{self.message} after {attempts} attempts")
        self.attempts = attempts
