"""
Deployment State Models

Dataclass models for persisted resource state.
"""

from dataclasses import dataclass
from typing import Optional, Dict, Any

from bastiondeploy.models.ssh import ProxyTarget


@dataclass(frozen=True)
class DeploymentState:
    """
    Persisted record of "payload X is running on host Y".

    When ``proxy`` is set, every network operation for this deployment is
    routed through it.
    """

    address: str
    key_path: str
    payload_fingerprint: str
    proxy: Optional[ProxyTarget] = None

    @property
    def is_proxied(self) -> bool:
        """Check if the host is only reachable through a proxy."""
        return self.proxy is not None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "address": self.address,
            "key_path": self.key_path,
            "payload_fingerprint": self.payload_fingerprint,
            "proxy": self.proxy.to_dict() if self.proxy else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DeploymentState":
        """Create from dictionary."""
        return cls(
            address=data["address"],
            key_path=data["key_path"],
            payload_fingerprint=data["payload_fingerprint"],
            proxy=ProxyTarget.from_dict(data.get("proxy")),
        )

    def __repr__(self) -> str:
        via = f", via={self.proxy.address}" if self.proxy else ""
        return f"DeploymentState(address={self.address}, fingerprint={self.payload_fingerprint}{via})"


@dataclass(frozen=True)
class KeyPairState:
    """State of a locally generated key pair."""

    id: str
    private_key_path: str
    public_key_path: str
    key_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "private_key_path": self.private_key_path,
            "public_key_path": self.public_key_path,
            "key_name": self.key_name,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "KeyPairState":
        """Create from dictionary."""
        return cls(
            id=data["id"],
            private_key_path=data["private_key_path"],
            public_key_path=data["public_key_path"],
            key_name=data.get("key_name"),
        )

    def __repr__(self) -> str:
        return f"KeyPairState(id={self.id}, name={self.key_name})"
