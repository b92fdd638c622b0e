#!/usr/bin/env python3
"""
Dependency Injection Container

Wires configuration-driven services (trend store, CI channels, snapshot
collectors, notifiers) in one place so commands never construct them
directly. Services are registered either as singletons or as factories.
"""

import logging
from typing import Any, Dict, Callable, TypeVar, Optional
from functools import wraps
import threading

logger = logging.getLogger(__name__)

T = TypeVar('T')


class Container:
    """Service registry with singleton and factory lifecycles."""

    def __init__(self):
        self._factories: Dict[str, Callable] = {}
        self._singletons: Dict[str, Any] = {}
        self._lock = threading.Lock()

    def register_singleton(self, service_name: str, factory: Callable[[], T]) -> None:
        """
        Register a service created once on first use.

        Re-registering drops any instance already built.
        """
        with self._lock:
            factory._is_singleton = True
            self._factories[service_name] = factory
            self._singletons.pop(service_name, None)

    def register_factory(self, service_name: str, factory: Callable[[], T]) -> None:
        """Register a service built anew on every get()."""
        with self._lock:
            self._factories[service_name] = factory
            self._singletons.pop(service_name, None)

    def get(self, service_name: str) -> Any:
        """
        Resolve a service by name.

        Raises:
            KeyError: If service is not registered
        """
        if service_name in self._singletons:
            return self._singletons[service_name]

        factory = self._factories.get(service_name)
        if factory is None:
            raise KeyError(f"Service '{service_name}' not registered")

        if not getattr(factory, '_is_singleton', False):
            logger.debug(f"Creating new instance for '{service_name}'")
            return factory()

        with self._lock:
            if service_name not in self._singletons:
                self._singletons[service_name] = factory()
                logger.debug(f"Created singleton instance for '{service_name}'")
            return self._singletons[service_name]

    def clear(self) -> None:
        """Forget every registration and instance."""
        with self._lock:
            self._factories.clear()
            self._singletons.clear()


def singleton(factory_func: Callable[[], T]) -> Callable[[], T]:
    """
    Mark a factory function as singleton.

    Usage:
        @singleton
        def create_trend_store():
            return TrendStore(path)
    """
    @wraps(factory_func)
    def wrapper():
        return factory_func()

    wrapper._is_singleton = True
    return wrapper


_container: Optional[Container] = None
_container_lock = threading.Lock()


def get_container() -> Container:
    """Get the process-wide container, building default services on first use."""
    global _container
    if _container is None:
        with _container_lock:
            if _container is None:
                _container = Container()
                _setup_default_services(_container)
    return _container


def reset_container() -> None:
    """Reset global container (useful for testing)."""
    global _container
    with _container_lock:
        if _container:
            _container.clear()
        _container = None


def _setup_default_services(container: Container) -> None:
    """Set up default service registrations with configuration injection."""

    @singleton
    def create_config():
        from core.config import get_config
        return get_config()

    @singleton
    def create_trend_store():
        from core.trend_store import TrendStore
        config = create_config()
        return TrendStore(config.trends.trends_file, max_entries=config.trends.max_entries)

    @singleton
    def create_github_actions():
        from integrations.github_actions import GitHubActions
        return GitHubActions.from_config(create_config().ci)

    def create_snapshot_collector():
        from core.collector import MetricsSnapshotCollector
        return MetricsSnapshotCollector(create_config().paths.metrics_dirs)

    def create_slack_notifier():
        from integrations.slack_notifier import SlackNotifier
        config = create_config()
        if not config.has_slack():
            raise ValueError("Slack configuration not found")
        return SlackNotifier(config.integrations.slack_webhook_url, timeout=config.integrations.slack_timeout)

    # Register services
    container.register_singleton('config', create_config)
    container.register_singleton('trend_store', create_trend_store)
    container.register_singleton('github_actions', create_github_actions)

    # Non-singletons
    container.register_factory('snapshot_collector', create_snapshot_collector)
    container.register_factory('slack_notifier', create_slack_notifier)

    logger.debug("Default services registered in container")

