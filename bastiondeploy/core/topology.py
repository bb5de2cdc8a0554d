"""
Topology orchestration.

Wires the configured hosts to their key pairs, proxies and deployments and
runs the lifecycle operations for the whole topology. Deployments of
different hosts run concurrently; the steps of each one run in order.
"""

import asyncio
from typing import Dict, List, Optional

from bastiondeploy.core.artifacts import LocalArtifactStore
from bastiondeploy.core.config_loader import HostConfig, TopologyConfig
from bastiondeploy.core.deployment import CodeDeployment
from bastiondeploy.core.key_pair import LocalKeyPair
from bastiondeploy.exceptions import ConfigurationError, ExecutionError
from bastiondeploy.logger import DeployLogger
from bastiondeploy.models.deployment import DeploymentState
from bastiondeploy.models.results import HostResult, ResultStatus
from bastiondeploy.models.ssh import ProxyTarget
from bastiondeploy.services.ssh_service import SSHService
from bastiondeploy.services.state_service import StateService


class Topology:
    """Runs keys/up/status/down across every host of a topology config."""

    def __init__(
        self,
        config: TopologyConfig,
        state: StateService,
        ssh: Optional[SSHService] = None,
        logger: Optional[DeployLogger] = None,
    ):
        self.config = config
        self.state = state
        self.logger = logger
        self.ssh = ssh or SSHService(config.ssh, logger=logger)
        self.artifacts = LocalArtifactStore(config.paths.artifacts_dir)
        self.deployment = CodeDeployment(
            self.ssh, self.artifacts, config.deployment, logger=logger
        )
        self.key_pairs = LocalKeyPair(self.ssh, config.paths.keys_dir, logger=logger)

    def key_path_for(self, host: HostConfig) -> str:
        """
        Private key for a host: configured explicitly or generated by ``keys``.

        Raises:
            ConfigurationError: If neither exists
        """
        if host.key_path:
            return host.key_path

        key_pair = self.state.get_key_pair(host.name)
        if key_pair is None:
            raise ConfigurationError(
                f"No key pair for host '{host.name}'",
                context="Run: bastiondeploy keys (or set hosts.<name>.key_path)",
            )
        return key_pair.private_key_path

    def proxy_for(self, host: HostConfig) -> Optional[ProxyTarget]:
        if host.proxy is None:
            return None
        proxy_host = self.config.get_host(host.proxy)
        return ProxyTarget(address=proxy_host.address, key_path=self.key_path_for(proxy_host))

    async def ensure_keys(self) -> List[HostResult]:
        """Create a key pair for every host without an explicit key_path."""
        results = []
        for host in self.config.ordered_hosts():
            if host.key_path:
                results.append(
                    HostResult(host.name, ResultStatus.UNCHANGED, "explicit key_path")
                )
                continue

            existing = self.state.get_key_pair(host.name)
            if existing:
                key_pair = await self.key_pairs.update(existing)
                status = ResultStatus.UNCHANGED
            else:
                key_pair = await self.key_pairs.create()
                self.state.set_key_pair(host.name, key_pair)
                status = ResultStatus.SUCCESS

            results.append(
                HostResult(
                    host.name,
                    status,
                    key_pair.public_key_path,
                    data={"public_key_path": key_pair.public_key_path},
                )
            )
        return results

    async def deploy_host(self, host: HostConfig) -> HostResult:
        """Create or update the deployment of one host and persist it."""
        bundle = self.artifacts.put(self.config.payload_path(host))
        key_path = self.key_path_for(host)
        proxy = self.proxy_for(host)

        previous = self.state.get_deployment(host.name)
        if previous is None:
            deployment = await self.deployment.create(bundle, host.address, key_path, proxy)
            status = ResultStatus.SUCCESS
        else:
            deployment = await self.deployment.update(
                previous, bundle, host.address, key_path, proxy
            )
            status = ResultStatus.UNCHANGED if deployment == previous else ResultStatus.SUCCESS

        self.state.set_deployment(host.name, deployment)
        return HostResult(
            host.name,
            status,
            f"{deployment.payload_fingerprint} on {deployment.address}",
            data=deployment.to_dict(),
        )

    async def deploy_all(self) -> List[HostResult]:
        """
        Deploy every host concurrently.

        Successful deployments are persisted even if others fail; the first
        failure is re-raised after all of them have finished.
        """
        hosts = self.config.ordered_hosts()
        outcomes = await asyncio.gather(
            *(self.deploy_host(host) for host in hosts), return_exceptions=True
        )

        results = []
        first_error: Optional[BaseException] = None
        for host, outcome in zip(hosts, outcomes):
            if isinstance(outcome, BaseException):
                first_error = first_error or outcome
                if self.logger:
                    self.logger.log(f"Deploying {host.name} failed: {outcome}", "ERROR")
                results.append(HostResult(host.name, ResultStatus.FAILURE, str(outcome)))
            else:
                results.append(outcome)

        if first_error is not None:
            raise first_error
        return results

    async def _status_of(self, deployment: DeploymentState) -> str:
        try:
            return await self.deployment.status(deployment)
        except ExecutionError as e:
            # systemctl status exits non-zero for inactive units
            return e.stdout or e.stderr or e.message

    async def status_host(self, name: str) -> str:
        """
        ``systemctl status`` output of one host.

        Raises:
            HostNotFoundError: If the host is not in the topology
            HostNotDeployedError: If nothing is deployed on it yet
        """
        host = self.config.get_host(name)
        return await self._status_of(self.state.require_deployment(host.name))

    async def status_all(self) -> Dict[str, str]:
        """``systemctl status`` output per deployed host."""
        statuses = {}
        for host in self.config.ordered_hosts():
            deployment = self.state.get_deployment(host.name)
            if deployment is None:
                statuses[host.name] = "not deployed"
            else:
                statuses[host.name] = await self._status_of(deployment)
        return statuses

    async def destroy_all(self, keep_keys: bool = False) -> List[HostResult]:
        """
        Delete every deployment, then (optionally) every key pair.

        Stopping units never raises; only local filesystem errors while
        removing key files propagate.
        """
        deployments = self.state.get_all_deployments()

        await asyncio.gather(
            *(self.deployment.delete(deployment) for deployment in deployments.values())
        )

        results = []
        for host in deployments:
            self.state.remove_deployment(host)
            results.append(HostResult(host, ResultStatus.SUCCESS, "deployment removed"))

        if not keep_keys:
            for host, key_pair in self.state.get_all_key_pairs().items():
                await self.key_pairs.delete(key_pair)
                self.state.remove_key_pair(host)
                results.append(HostResult(host, ResultStatus.SUCCESS, "key pair removed"))

        return results
