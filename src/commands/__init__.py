#!/usr/bin/env python3
"""
Command endpoints for the perfwatch CLI.

Each major area (reports, trends, signal parsing, CI channels,
integrations) is handled by a dedicated command class.
"""

from typing import Dict, Type
from .base import BaseCommand
from .report import ReportCommand
from .trends import TrendsCommand
from .signals import SignalsCommand
from .ci import CICommand
from .integrations import IntegrationsCommand

# Command registry for easy extension
COMMANDS: Dict[str, Type[BaseCommand]] = {
    'report': ReportCommand,
    'trends': TrendsCommand,
    'signals': SignalsCommand,
    'ci': CICommand,
    'integrations': IntegrationsCommand,
}


def get_command(command_name: str, container=None) -> BaseCommand:
    """Get a command instance by name."""
    if command_name not in COMMANDS:
        available = ', '.join(COMMANDS.keys())
        raise ValueError(f"Unknown command '{command_name}'. Available: {available}")

    return COMMANDS[command_name](container)


def list_commands() -> Dict[str, str]:
    """Get list of available commands with descriptions."""
    return {name: command_class.__doc__ or 'No description available'
            for name, command_class in COMMANDS.items()}
