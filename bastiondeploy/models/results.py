"""
Result Models

Dataclass models for per-host operation results.
"""

from dataclasses import dataclass, field
from typing import Dict, Any
from enum import Enum


class ResultStatus(Enum):
    """Status of an operation result."""

    SUCCESS = "success"
    FAILURE = "failure"
    UNCHANGED = "unchanged"


@dataclass
class HostResult:
    """Outcome of a lifecycle operation on one host."""

    host: str
    status: ResultStatus
    message: str = ""
    data: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_success(self) -> bool:
        """Check if the operation succeeded (or had nothing to do)."""
        return self.status != ResultStatus.FAILURE

    @property
    def is_failure(self) -> bool:
        """Check if the operation failed."""
        return self.status == ResultStatus.FAILURE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "host": self.host,
            "status": self.status.value,
            "message": self.message,
            **self.data,
        }

    def __repr__(self) -> str:
        return f"HostResult(host={self.host}, status={self.status.value})"
