#!/usr/bin/env python3
"""
Environment variable loader with .env file support.

Variables already present in the environment always win over the file.
"""

import os
from pathlib import Path
from typing import List, Optional, Union
import logging

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).parent.parent.parent


def parse_env_line(line: str) -> Optional[tuple]:
    """
    Parse one ``KEY=VALUE`` line.

    Returns:
        (key, value), or None for blank lines and comments

    Raises:
        ValueError: If the line is not in KEY=VALUE form
    """
    line = line.strip()
    if not line or line.startswith('#'):
        return None
    if line.startswith('export '):
        line = line[len('export '):].lstrip()
    if '=' not in line:
        raise ValueError(f"expected KEY=VALUE, got: {line}")

    key, value = line.split('=', 1)
    key = key.strip()
    value = value.strip()

    # Remove matching quotes
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ('"', "'"):
        value = value[1:-1]

    return key, value


def load_env_file(env_file_path: Union[str, Path] = ".env", base_dir: Optional[Path] = None) -> int:
    """
    Load environment variables from a .env file if it exists.

    Args:
        env_file_path: Path to the .env file, relative to base_dir unless absolute
        base_dir: Directory to resolve relative paths against (project root by default)

    Returns:
        Number of variables set
    """
    env_path = Path(env_file_path)
    if not env_path.is_absolute():
        env_path = (base_dir or PROJECT_ROOT) / env_path

    if not env_path.exists():
        logger.debug(f"No .env file found at {env_path}")
        return 0

    try:
        with open(env_path, 'r', encoding='utf-8') as f:
            lines = f.readlines()
    except OSError as e:
        logger.error(f"Error loading .env file {env_path}: {e}")
        return 0

    loaded_count = 0
    for line_num, line in enumerate(lines, 1):
        try:
            parsed = parse_env_line(line)
        except ValueError:
            logger.warning(f"Invalid .env format at line {line_num}: {line.strip()}")
            continue
        if parsed is None:
            continue

        key, value = parsed
        if key not in os.environ:
            os.environ[key] = value
            loaded_count += 1
            logger.debug(f"Loaded {key} from .env")
        else:
            logger.debug(f"Skipped {key} (already in environment)")

    logger.info(f"Loaded {loaded_count} variables from {env_path}")
    return loaded_count


def get_env_var(key: str, default: str = None, required: bool = False) -> str:
    """
    Get environment variable with optional default and required validation.

    Raises:
        ValueError: If required variable is missing
    """
    value = os.environ.get(key, default)

    if required and not value:
        raise ValueError(f"Required environment variable {key} is not set")

    return value


def get_env_flag(key: str, default: bool = False) -> bool:
    """Boolean variable; "1", "true", "yes" and "on" are truthy."""
    value = os.environ.get(key)
    if value is None or value == "":
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def get_env_list(key: str, default: Optional[List[str]] = None) -> List[str]:
    """Comma separated variable as a list of non-empty stripped items."""
    value = os.environ.get(key)
    if not value:
        return list(default or [])
    return [item.strip() for item in value.split(',') if item.strip()]
