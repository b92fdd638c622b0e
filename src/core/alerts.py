#!/usr/bin/env python3
"""
Alert and failure collectors.

Both are unbounded append-only lists; identical entries are kept, not merged.
"""

import logging
from typing import Dict, List, Tuple

from core.models.metrics import Alert, Failure
from core.models.timestamps import utc_now_iso

logger = logging.getLogger(__name__)


class AlertCollector:
    """Collects free-form category/message alerts."""

    def __init__(self):
        self._alerts: List[Alert] = []

    def add_alert(self, category: str, message: str) -> Alert:
        alert = Alert(category=category, message=message, timestamp=utc_now_iso())
        self._alerts.append(alert)
        logger.debug(f"Alert [{category}]: {message}")
        return alert

    def __len__(self) -> int:
        return len(self._alerts)

    def all(self) -> Tuple[Alert, ...]:
        return tuple(self._alerts)

    def grouped(self) -> Dict[str, List[Alert]]:
        """Alerts by category, in first-seen category order."""
        groups: Dict[str, List[Alert]] = {}
        for alert in self._alerts:
            groups.setdefault(alert.category, []).append(alert)
        return groups


class FailureCollector:
    """Collects one record per failed test outcome."""

    def __init__(self):
        self._failures: List[Failure] = []

    def add_failure(self, test_name: str, error_text: str) -> Failure:
        failure = Failure(test_name=test_name, error_text=error_text, timestamp=utc_now_iso())
        self._failures.append(failure)
        logger.debug(f"Failure recorded for {test_name}")
        return failure

    def __len__(self) -> int:
        return len(self._failures)

    def all(self) -> Tuple[Failure, ...]:
        return tuple(self._failures)
