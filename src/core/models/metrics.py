#!/usr/bin/env python3
"""
Metrics and performance data models.

Contains the immutable records produced during a test run: timed metrics,
alerts and failures, plus the aggregate statistics derived from them.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Any, Iterable, Optional

from core.exceptions import ValidationError
from core.models.timestamps import utc_now_iso

logger = logging.getLogger(__name__)


class MetricCategory(Enum):
    """Kind of measurement a metric represents."""
    PAGE_LOAD = "pageLoad"
    USER_ACTION = "userAction"
    API_CALL = "apiCall"
    NETWORK = "network"
    OTHER = "other"

    @classmethod
    def parse(cls, value: Any) -> 'MetricCategory':
        """Map a raw category value to a member, defaulting to OTHER."""
        if isinstance(value, cls):
            return value
        for member in cls:
            if value == member.value or value == member.name:
                return member
        return cls.OTHER


class Section(Enum):
    """Report grouping used when rendering metrics."""
    PAGE_LOAD = "Page Load"
    NAVIGATION = "Navigation"
    CRITICAL_OPERATIONS = "Critical Operations"

    @classmethod
    def for_category(cls, category: MetricCategory) -> 'Section':
        if category is MetricCategory.PAGE_LOAD:
            return cls.PAGE_LOAD
        if category is MetricCategory.USER_ACTION:
            return cls.NAVIGATION
        return cls.CRITICAL_OPERATIONS


@dataclass(frozen=True)
class Metric:
    """
    A single timed measurement.

    ``is_slow`` is decided once, when the metric is created, and travels with
    the record from then on. Use ``Metric.create`` rather than the
    constructor so the classification is computed consistently.
    """
    name: str
    category: MetricCategory
    duration_ms: float
    timestamp: str
    context_url: str
    threshold_ms: float
    is_slow: bool

    @classmethod
    def create(cls, name: str, category: MetricCategory, duration_ms: float,
               threshold_ms: float, context_url: str = "N/A",
               timestamp: Optional[str] = None) -> 'Metric':
        """Build a metric and classify it against its threshold."""
        if duration_ms is None or duration_ms < 0:
            raise ValidationError("duration_ms", duration_ms, "a non-negative number")
        return cls(
            name=name,
            category=category,
            duration_ms=duration_ms,
            timestamp=timestamp or utc_now_iso(),
            context_url=context_url or "N/A",
            threshold_ms=threshold_ms,
            is_slow=duration_ms > threshold_ms
        )

    @property
    def section(self) -> Section:
        return Section.for_category(self.category)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "duration": self.duration_ms,
            "category": self.category.value,
            "timestamp": self.timestamp,
            "url": self.context_url,
            "isSlowPerformance": self.is_slow,
            "threshold": self.threshold_ms
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], category: Optional[MetricCategory] = None,
                  default_threshold: Optional[float] = None) -> 'Metric':
        """
        Create from a snapshot dictionary.

        The slow flag is always recomputed from duration and threshold; a
        stored ``isSlowPerformance`` that disagrees is logged and replaced.

        Args:
            data: Metric dictionary as written by ``to_dict``
            category: Category to use instead of the stored one
            default_threshold: Threshold for snapshots that carry none

        Raises:
            ValidationError: If name or duration are missing or invalid
        """
        name = data.get("name")
        duration = data.get("duration")
        if not name:
            raise ValidationError("name", name, "a non-empty string")
        if isinstance(duration, bool) or not isinstance(duration, (int, float)) or duration < 0:
            raise ValidationError("duration", duration, "a non-negative number")

        threshold = data.get("threshold")
        if not isinstance(threshold, (int, float)) or isinstance(threshold, bool):
            threshold = default_threshold if default_threshold is not None else float("inf")

        is_slow = duration > threshold
        stored = data.get("isSlowPerformance")
        if isinstance(stored, bool) and stored != is_slow:
            logger.warning(f"⚠️ Metric {name} stored isSlowPerformance={stored} for "
                           f"{duration}ms against {threshold}ms, using {is_slow}")

        return cls(
            name=str(name),
            category=category or MetricCategory.parse(data.get("category")),
            duration_ms=duration,
            timestamp=data.get("timestamp") or utc_now_iso(),
            context_url=data.get("url") or "N/A",
            threshold_ms=threshold,
            is_slow=is_slow
        )


@dataclass(frozen=True)
class Alert:
    """Free-form performance alert."""
    category: str
    message: str
    timestamp: str

    def to_dict(self) -> Dict[str, Any]:
        return {"category": self.category, "message": self.message, "timestamp": self.timestamp}


@dataclass(frozen=True)
class Failure:
    """A failed test outcome."""
    test_name: str
    error_text: str
    timestamp: str

    def to_dict(self) -> Dict[str, Any]:
        return {"testName": self.test_name, "error": self.error_text, "timestamp": self.timestamp}


@dataclass(frozen=True)
class MetricStats:
    """Aggregate statistics for a group of durations."""
    average: float
    minimum: float
    maximum: float
    count: int

    @classmethod
    def from_durations(cls, durations: Iterable[float]) -> 'MetricStats':
        values = list(durations)
        if not values:
            return cls(average=0.0, minimum=0.0, maximum=0.0, count=0)
        return cls(
            average=sum(values) / len(values),
            minimum=min(values),
            maximum=max(values),
            count=len(values)
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "average": self.average,
            "min": self.minimum,
            "max": self.maximum,
            "count": self.count
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MetricStats':
        return cls(
            average=float(data.get("average", 0.0)),
            minimum=float(data.get("min", 0.0)),
            maximum=float(data.get("max", 0.0)),
            count=int(data.get("count", 0))
        )


def plain_number(value: float):
    """Render whole-number floats without a trailing .0."""
    return int(value) if float(value).is_integer() else value
