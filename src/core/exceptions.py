#!/usr/bin/env python3
"""
Standardized exception hierarchy for the performance reporting pipeline.

Soft problems (missing timers, unreadable snapshot files, corrupt trend
history) are logged where they happen and never reach these types. The
exceptions below are raised for conditions a caller has to decide about.
"""

from typing import Optional, Dict, Any


class PerfwatchError(Exception):
    """Base exception for all perfwatch errors."""

    def __init__(self, message: str, error_code: Optional[str] = None, context: Optional[Dict[str, Any]] = None):
        """
        Initialize base exception.

        Args:
            message: Human-readable error message
            error_code: Machine-readable error code
            context: Additional error context
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.context = context or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            'error_type': self.__class__.__name__,
            'error_code': self.error_code,
            'message': self.message,
            'context': self.context
        }


# Configuration-related exceptions
class ConfigurationError(PerfwatchError):
    """Configuration is invalid or missing."""

    def __init__(self, config_key: str, issue: str):
        message = f"Configuration error for {config_key}: {issue}"
        context = {
            'config_key': config_key,
            'issue': issue
        }
        super().__init__(message, context=context)


class ThresholdError(ConfigurationError):
    """A threshold override names an unknown category or is not a positive duration."""

    def __init__(self, category: str, value: Any, issue: Optional[str] = None):
        super().__init__(f"threshold.{category}",
                         issue or f"expected a positive number of milliseconds, got {value!r}")


class ThresholdLockedError(ConfigurationError):
    """Thresholds were overridden after metric classification started."""

    def __init__(self, category: str):
        super().__init__(f"threshold.{category}", "thresholds are read-only once classification has begun")


# Validation-related exceptions
class ValidationError(PerfwatchError):
    """Data validation failed."""

    def __init__(self, field: str, value: Any, expected: str):
        message = f"Validation failed for {field}: expected {expected}, got {value!r}"
        context = {
            'field': field,
            'value': str(value),
            'expected': expected,
            'actual_type': type(value).__name__
        }
        super().__init__(message, context=context)


class RunStateError(PerfwatchError):
    """Operation is not allowed in the current run lifecycle state."""

    def __init__(self, operation: str, state: str):
        message = f"Cannot {operation} on a {state} performance run"
        super().__init__(message, context={'operation': operation, 'state': state})


# Input artifact exceptions
class ResultsError(PerfwatchError):
    """Base exception for test-results input errors."""
    pass


class ResultsNotFoundError(ResultsError):
    """No test-results document exists at any candidate path."""

    def __init__(self, candidates: list):
        message = f"No test results found (looked in {len(candidates)} locations)"
        super().__init__(message, context={'candidates': [str(c) for c in candidates]})


class ResultsParseError(ResultsError):
    """Test-results document could not be read or decoded."""

    def __init__(self, path: str, original_error: Exception):
        message = f"Failed to parse test results from {path}"
        context = {
            'path': str(path),
            'original_error': str(original_error)
        }
        super().__init__(message, context=context)


class SnapshotParseError(PerfwatchError):
    """A per-test metrics snapshot file is malformed."""

    def __init__(self, path: str, original_error: Exception):
        message = f"Failed to parse metrics snapshot {path}"
        context = {
            'path': str(path),
            'original_error': str(original_error)
        }
        super().__init__(message, context=context)


# Report output exceptions
class ReportError(PerfwatchError):
    """Base exception for report generation errors."""
    pass


class ReportWriteError(ReportError):
    """A report artifact could not be written."""

    def __init__(self, path: str, original_error: Exception):
        message = f"Failed to write report {path}"
        context = {
            'path': str(path),
            'original_error': str(original_error)
        }
        super().__init__(message, context=context)


# Notification-related exceptions
class NotificationError(PerfwatchError):
    """Base exception for notification errors."""
    pass


class NotificationChannelError(NotificationError):
    """Notification channel unavailable or failed."""

    def __init__(self, channel: str, operation: str, original_error: Exception):
        message = f"Notification {operation} failed for channel {channel}"
        context = {
            'channel': channel,
            'operation': operation,
            'original_error': str(original_error)
        }
        super().__init__(message, context=context)
