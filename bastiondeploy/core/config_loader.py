"""Configuration management for Bastion Deploy topologies"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from bastiondeploy import constants
from bastiondeploy.core.deployment import DeploymentConfig
from bastiondeploy.exceptions import ConfigurationError, HostNotFoundError
from bastiondeploy.models.ssh import SSHConfig


@dataclass
class HostConfig:
    """One host of the topology, as produced by the cloud provisioning."""

    name: str
    address: str
    payload: str
    key_path: Optional[str] = None
    proxy: Optional[str] = None


@dataclass
class PathsConfig:
    """Local paths, relative to the config file's directory"""

    state_file: Path
    keys_dir: Path
    artifacts_dir: Path
    logs_dir: Path


@dataclass
class TopologyConfig:
    """Represents a loaded and validated topology configuration"""

    project_name: str
    base_dir: Path
    paths: PathsConfig
    ssh: SSHConfig = field(default_factory=SSHConfig)
    deployment: DeploymentConfig = field(default_factory=DeploymentConfig)
    hosts: Dict[str, HostConfig] = field(default_factory=dict)

    def get_host(self, name: str) -> HostConfig:
        """
        Get host by name.

        Raises:
            HostNotFoundError: If host is not in the topology
        """
        if name not in self.hosts:
            raise HostNotFoundError(name, list(self.hosts))
        return self.hosts[name]

    def payload_path(self, host: HostConfig) -> Path:
        return (self.base_dir / host.payload).resolve()

    def ordered_hosts(self) -> List[HostConfig]:
        """Hosts in config order."""
        return list(self.hosts.values())


class ConfigLoader:
    """Loads topology configuration from YAML."""

    def __init__(self, config_path: Path):
        self.config_path = Path(config_path)

    def load(self) -> TopologyConfig:
        """
        Load, apply defaults and validate.

        Raises:
            ConfigurationError: If the file is missing or invalid
        """
        if not self.config_path.is_file():
            raise ConfigurationError(
                constants.ERROR_CONFIG_NOT_FOUND.format(path=self.config_path),
                context=f"Create {constants.DEFAULT_CONFIG_FILENAME} or pass --config",
            )

        try:
            with open(self.config_path, "r") as f:
                raw = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Invalid YAML in {self.config_path}", context=str(e)
            ) from e

        if not isinstance(raw, dict):
            raise ConfigurationError(
                f"Invalid config: {self.config_path} must contain a mapping"
            )

        return self._build(raw)

    def _build(self, raw: Dict[str, Any]) -> TopologyConfig:
        base_dir = self.config_path.resolve().parent

        project = raw.get("project")
        if not isinstance(project, dict) or not project.get("name"):
            raise ConfigurationError(
                "Missing required field: 'project.name'",
                context="Example:\nproject:\n  name: echo",
            )

        ssh_raw = raw.get("ssh") or {}
        ssh = SSHConfig(
            user=str(ssh_raw.get("user", constants.DEFAULT_SSH_USER)),
            connect_timeout=int(
                ssh_raw.get("connect_timeout", constants.SSH_CONNECTION_TIMEOUT)
            ),
        )

        paths_raw = raw.get("paths") or {}
        paths = PathsConfig(
            state_file=base_dir / paths_raw.get("state_file", constants.DEFAULT_STATE_FILE),
            keys_dir=base_dir / paths_raw.get("keys_dir", constants.DEFAULT_KEYS_DIR),
            artifacts_dir=base_dir
            / paths_raw.get("artifacts_dir", constants.DEFAULT_ARTIFACTS_DIR),
            logs_dir=base_dir / paths_raw.get("logs_dir", constants.DEFAULT_LOGS_DIR),
        )

        hosts = {}
        for name, host_raw in (raw.get("hosts") or {}).items():
            hosts[name] = self._build_host(name, host_raw or {})

        config = TopologyConfig(
            project_name=str(project["name"]),
            base_dir=base_dir,
            paths=paths,
            ssh=ssh,
            deployment=DeploymentConfig.from_dict(raw.get("deployment")),
            hosts=hosts,
        )
        self._validate(config)
        return config

    def _build_host(self, name: str, host_raw: Dict[str, Any]) -> HostConfig:
        for required in ("address", "payload"):
            if not host_raw.get(required):
                raise ConfigurationError(
                    f"Missing required field: 'hosts.{name}.{required}'"
                )

        key_path = host_raw.get("key_path")
        return HostConfig(
            name=name,
            address=str(host_raw["address"]),
            payload=str(host_raw["payload"]),
            key_path=str(Path(key_path).expanduser()) if key_path else None,
            proxy=host_raw.get("proxy"),
        )

    def _validate(self, config: TopologyConfig) -> None:
        if not config.hosts:
            raise ConfigurationError("No hosts defined", context="Add a 'hosts' section")

        if config.ssh.connect_timeout <= 0:
            raise ConfigurationError(
                f"Invalid connect_timeout: {config.ssh.connect_timeout} (must be > 0)"
            )

        for host in config.hosts.values():
            if host.proxy is None:
                continue
            if host.proxy == host.name:
                raise ConfigurationError(f"Host '{host.name}' cannot proxy through itself")
            if host.proxy not in config.hosts:
                raise HostNotFoundError(host.proxy, list(config.hosts))
            if config.hosts[host.proxy].proxy is not None:
                raise ConfigurationError(
                    f"Host '{host.name}' proxies through '{host.proxy}', which is itself proxied",
                    context="Only a single intermediate hop is supported",
                )
