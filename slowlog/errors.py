"""Exception taxonomy for a slow-query report run."""

from __future__ import annotations


class SlowlogError(Exception):
    """Base class for all errors raised by the report pipeline."""


class ConfigError(SlowlogError):
    """Raised when a required option is missing or invalid."""


class FieldValidationError(SlowlogError):
    """Raised when a slow-query event has a missing or mistyped field.

    Always fatal for the run: partial aggregates would under- or over-count.
    """

    def __init__(self, error, line_offset: int | None = None):
        self.error = error
        self.line_offset = line_offset
        message = f"{error.field}: {error.reason}"
        if line_offset is not None:
            message = f"{message} (chunk starting at line {line_offset})"
        super().__init__(message)
