"""
Bastion Deploy Domain Models

Clean dataclass-based models for type-safe data handling.
"""

from .results import (
    ResultStatus,
    HostResult,
)
from .deployment import (
    DeploymentState,
    KeyPairState,
)
from .ssh import (
    DIRECT,
    DirectSpawn,
    ProxySpawn,
    ProxyTarget,
    Spawner,
    SSHConfig,
)

__all__ = [
    # Results
    "ResultStatus",
    "HostResult",
    # Deployment
    "DeploymentState",
    "KeyPairState",
    # SSH
    "DIRECT",
    "DirectSpawn",
    "ProxySpawn",
    "ProxyTarget",
    "Spawner",
    "SSHConfig",
]
