"""
SSH Configuration Models

Dataclass models for SSH operations.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from bastiondeploy.constants import (
    DEFAULT_SSH_USER,
    SSH_BASE_OPTIONS,
    SSH_CONNECTION_TIMEOUT,
)


@dataclass
class SSHConfig:
    """SSH configuration shared by every host in a topology."""

    user: str = DEFAULT_SSH_USER
    connect_timeout: int = SSH_CONNECTION_TIMEOUT

    def connection_options(self, key_path: str) -> List[str]:
        """Options for ssh/scp: no host key checks, short connect timeout."""
        return [
            *SSH_BASE_OPTIONS,
            "-o",
            f"ConnectTimeout={self.connect_timeout}",
            "-i",
            key_path,
        ]

    def connection_string(self, host: str) -> str:
        """Get SSH connection string (user@host)."""
        return f"{self.user}@{host}"

    def __repr__(self) -> str:
        return f"SSHConfig(user={self.user}, timeout={self.connect_timeout}s)"


@dataclass(frozen=True)
class ProxyTarget:
    """Address and private key of the host used as an intermediate hop."""

    address: str
    key_path: str

    def to_dict(self) -> Dict[str, Any]:
        return {"address": self.address, "key_path": self.key_path}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["ProxyTarget"]:
        if not data:
            return None
        return cls(address=data["address"], key_path=data["key_path"])


@dataclass(frozen=True)
class DirectSpawn:
    """Run ssh/scp as a local subprocess."""

    def describe(self) -> str:
        return "direct"


@dataclass(frozen=True)
class ProxySpawn:
    """Run the same ssh/scp invocation as a remote command on a proxy host."""

    key_path: str
    host: str

    @classmethod
    def for_proxy(cls, proxy: ProxyTarget) -> "ProxySpawn":
        return cls(key_path=proxy.key_path, host=proxy.address)

    def describe(self) -> str:
        return f"via {self.host}"


Spawner = Union[DirectSpawn, ProxySpawn]

DIRECT = DirectSpawn()
