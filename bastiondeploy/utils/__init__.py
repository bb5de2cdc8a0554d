"""
CLI Utilities

Config discovery and async entry helpers for Bastion Deploy commands.
"""

import asyncio
from pathlib import Path
from typing import Any, Coroutine, Optional, TypeVar

from bastiondeploy.constants import DEFAULT_CONFIG_FILENAME

T = TypeVar("T")


def find_config(config_path: Optional[str] = None) -> Path:
    """
    Locate the topology config file.

    Args:
        config_path: Explicit path from --config, if given

    Returns:
        Path to the config (may not exist; the loader reports that)
    """
    if config_path:
        return Path(config_path).expanduser()

    # Walk up from cwd like git does
    current = Path.cwd()
    for directory in (current, *current.parents):
        candidate = directory / DEFAULT_CONFIG_FILENAME
        if candidate.is_file():
            return candidate

    return current / DEFAULT_CONFIG_FILENAME


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """Run a coroutine from synchronous command code."""
    return asyncio.run(coro)
