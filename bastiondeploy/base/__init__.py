"""
Bastion Deploy Base Command Classes

Abstract base classes for consistent command structure.
"""

from .base_command import BaseCommand
from .project_command import TopologyCommand

__all__ = [
    "BaseCommand",
    "TopologyCommand",
]
