#!/usr/bin/env python3
"""
Core data models for performance reporting.

Contains all data structures used throughout the application.
"""

from .metrics import MetricCategory, Section, Metric, Alert, Failure, MetricStats, plain_number
from .run import TestRunSummary, TrendEntry
from .test_record import ResultAttempt, TestRecord, SuiteRecord

__all__ = [
    'MetricCategory', 'Section', 'Metric', 'Alert', 'Failure', 'MetricStats', 'plain_number',
    'TestRunSummary', 'TrendEntry',
    'ResultAttempt', 'TestRecord', 'SuiteRecord',
]
