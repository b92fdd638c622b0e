#!/usr/bin/env python3
"""
Base command class for the perfwatch CLI.

Every command resolves its services (configuration, trend history, GitHub
channels, Slack) through the dependency injection container so tests can
swap them out.
"""

import logging
from abc import ABC, abstractmethod
from argparse import Namespace
from typing import List

from core.container import get_container
from core.exceptions import ConfigurationError, ResultsNotFoundError

logger = logging.getLogger(__name__)


class BaseCommand(ABC):
    """
    Base class for all CLI command endpoints.

    Subclasses list their actions in ``subcommands`` and dispatch to them
    from ``execute``.
    """

    subcommands: List[str] = []

    def __init__(self, container=None):
        """
        Initialize base command with dependency injection container.

        Args:
            container: Optional container instance. If None, uses global container.
        """
        self.logger = logging.getLogger(self.__class__.__name__)
        self._container = container or get_container()

    @property
    def config(self):
        """Get configuration from container."""
        return self._container.get('config')

    @property
    def trend_store(self):
        """Get trend history from container."""
        return self._container.get('trend_store')

    @property
    def github(self):
        """Get GitHub Actions channels from container."""
        return self._container.get('github_actions')

    def create_snapshot_collector(self):
        """Create new metric snapshot collector."""
        return self._container.get('snapshot_collector')

    def create_slack_notifier(self):
        """Create new Slack notifier instance."""
        return self._container.get('slack_notifier')

    @abstractmethod
    def execute(self, subcommand: str, args: Namespace) -> int:
        """
        Execute the command with given subcommand and arguments.

        Args:
            subcommand: The specific action to perform
            args: Parsed command line arguments

        Returns:
            Exit code (0 for success, non-zero for error)
        """
        pass

    def get_available_subcommands(self) -> List[str]:
        return list(self.subcommands)

    def unknown_subcommand(self, subcommand: str) -> int:
        available = ", ".join(self.get_available_subcommands())
        self.logger.error(f"Unknown subcommand '{subcommand}'. Available: {available}")
        return 1

    def handle_error(self, error: BaseException, context: str = "") -> int:
        """
        Standard error handling for commands.

        Args:
            error: The exception that occurred
            context: Additional context about where the error occurred

        Returns:
            Appropriate exit code
        """
        error_msg = f"{context}: {error}" if context else str(error)

        if isinstance(error, KeyboardInterrupt):
            self.logger.info("Command interrupted by user")
            return 130

        self.logger.error(error_msg, exc_info=self.logger.isEnabledFor(logging.DEBUG))

        if isinstance(error, (FileNotFoundError, ResultsNotFoundError)):
            return 2
        elif isinstance(error, PermissionError):
            return 13
        elif isinstance(error, (ValueError, ConfigurationError)):
            return 22
        else:
            return 1
