"""Core resource lifecycle components"""

from .artifacts import Bundle, LocalArtifactStore
from .config_loader import ConfigLoader, HostConfig, TopologyConfig
from .deployment import CodeDeployment, DeploymentConfig
from .key_pair import CloudKeyPair, KeyRegistry, LocalKeyPair, read_public_key
from .resource import Resource
from .topology import Topology

__all__ = [
    "Bundle",
    "LocalArtifactStore",
    "ConfigLoader",
    "HostConfig",
    "TopologyConfig",
    "CodeDeployment",
    "DeploymentConfig",
    "CloudKeyPair",
    "KeyRegistry",
    "LocalKeyPair",
    "read_public_key",
    "Resource",
    "Topology",
]
