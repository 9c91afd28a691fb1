"""Error taxonomy for the conformance harness.

Only ``AuthenticationError`` (and ``ConfigurationError`` before the browser is
started) ever leaves a run. Everything else is caught at the tool boundary and
turned into an outcome.
"""
from __future__ import annotations

# Stored in place of a response body that could not be decoded.
UNREADABLE_BODY = "[Could not read response]"


class HarnessError(Exception):
    """Base class for all harness errors."""


class ConfigurationError(HarnessError):
    """Raised when required settings are missing or invalid."""


class AuthenticationError(HarnessError):
    """Raised when no authenticated session could be established."""


class ElementNotFoundError(HarnessError):
    """Raised when a required UI element is absent on the rendered tab."""

    def __init__(self, selector: str, reason: str | None = None) -> None:
        self.selector = selector
        self.reason = reason or f"{selector} not found"
        super().__init__(self.reason)


class UnexpectedInteractionError(HarnessError):
    """Raised when a UI interaction fails after its preconditions were met."""
