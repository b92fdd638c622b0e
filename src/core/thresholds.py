#!/usr/bin/env python3
"""
Per-category duration thresholds.

A metric whose duration exceeds the threshold of its category is flagged
slow. Overrides are accepted until the first threshold is read; after that
the configuration is read-only for the rest of the run.
"""

import logging
from typing import Dict, Mapping, Optional, Union

from core.exceptions import ThresholdError, ThresholdLockedError
from core.models.metrics import MetricCategory

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLDS_MS: Dict[MetricCategory, float] = {
    MetricCategory.PAGE_LOAD: 5000,
    MetricCategory.USER_ACTION: 3000,
    MetricCategory.API_CALL: 2000,
    MetricCategory.NETWORK: 2000,
    MetricCategory.OTHER: 3000,
}


def _known_category(key: Union[str, MetricCategory]) -> Optional[MetricCategory]:
    if isinstance(key, MetricCategory):
        return key
    for category in MetricCategory:
        if key == category.value or key == category.name:
            return category
    return None


class ThresholdConfig:
    """Mapping from metric category to a positive duration in milliseconds."""

    def __init__(self, overrides: Mapping[Union[str, MetricCategory], float] = None):
        self._thresholds: Dict[MetricCategory, float] = {}
        self._locked = False
        if overrides:
            self.override(overrides)

    @property
    def locked(self) -> bool:
        return self._locked

    def override(self, overrides: Mapping[Union[str, MetricCategory], float]) -> None:
        """
        Replace thresholds for the given categories.

        Args:
            overrides: Category (name, value or member) to milliseconds

        Raises:
            ThresholdLockedError: If classification has already started
            ThresholdError: If a category is unknown or a value is not a positive number
        """
        parsed: Dict[MetricCategory, float] = {}
        for key, value in overrides.items():
            category = _known_category(key)
            if category is None:
                raise ThresholdError(str(key), value, f"unknown metric category {key!r}")
            if self._locked:
                raise ThresholdLockedError(category.value)
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
                raise ThresholdError(category.value, value)
            parsed[category] = value

        self._thresholds.update(parsed)
        for category, value in parsed.items():
            logger.debug(f"Threshold for {category.value} set to {value}ms")

    def threshold_for(self, category: MetricCategory) -> float:
        """Threshold for a category, falling back to its default. Locks the config."""
        self._locked = True
        return self._thresholds.get(category, DEFAULT_THRESHOLDS_MS[category])

    def as_dict(self) -> Dict[str, float]:
        """Effective thresholds keyed by category value."""
        return {
            category.value: self._thresholds.get(category, default)
            for category, default in DEFAULT_THRESHOLDS_MS.items()
        }
