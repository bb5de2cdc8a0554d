"""
Code deployment resource.

Pushes a single-file payload onto a host and runs it as a transient systemd
unit. Hosts without a direct route are reached through a proxy: the payload
and the runtime binary are staged on the proxy first and copied onward from
there, using a key that is only relayed to the proxy for the duration of the
operation.
"""

import asyncio
import posixpath
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

from bastiondeploy import constants
from bastiondeploy.core.artifacts import ArtifactResolver, Bundle
from bastiondeploy.logger import DeployLogger
from bastiondeploy.models.deployment import DeploymentState
from bastiondeploy.models.ssh import DIRECT, ProxySpawn, ProxyTarget, Spawner
from bastiondeploy.services.credential_relay import CredentialRelay
from bastiondeploy.services.retry import retry_for
from bastiondeploy.services.ssh_service import SSHService


@dataclass
class DeploymentConfig:
    """Remote paths, unit name and retry budgets for one class of deployments."""

    unit_name: str = constants.DEFAULT_UNIT_NAME
    remote_home: str = constants.DEFAULT_REMOTE_HOME
    entry_name: str = constants.DEFAULT_ENTRY_NAME
    proxy_entry_name: str = constants.DEFAULT_PROXY_ENTRY_NAME
    runtime_command: str = constants.DEFAULT_RUNTIME_COMMAND
    runtime_binary: str = constants.DEFAULT_RUNTIME_BINARY
    remote_runtime_name: str = constants.DEFAULT_REMOTE_RUNTIME_NAME
    liveness_command: str = constants.DEFAULT_LIVENESS_COMMAND
    relay_dir: str = constants.DEFAULT_RELAY_DIR
    copy_timeout: float = constants.COPY_TIMEOUT
    proxy_copy_timeout: float = constants.PROXY_COPY_TIMEOUT
    liveness_timeout: float = constants.LIVENESS_TIMEOUT
    relay_timeout: float = constants.RELAY_TIMEOUT
    delete_timeout: float = constants.DELETE_TIMEOUT

    @property
    def entry_path(self) -> str:
        return posixpath.join(self.remote_home, self.entry_name)

    @property
    def proxy_entry_path(self) -> str:
        return posixpath.join(self.remote_home, self.proxy_entry_name)

    @property
    def remote_runtime_path(self) -> str:
        return posixpath.join(self.remote_home, self.remote_runtime_name)

    def start_command(self, runtime: str) -> str:
        return f"sudo systemd-run --unit={self.unit_name} {runtime} {self.entry_path}"

    @property
    def status_command(self) -> str:
        return f"systemctl status {self.unit_name}.service --no-pager"

    @property
    def stop_command(self) -> str:
        unit = f"{self.unit_name}.service"
        return f"(sudo systemctl stop {unit} && sudo systemctl reset-failed {unit}) || true"

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "DeploymentConfig":
        """Build from a config section, ignoring unknown keys."""
        data = data or {}
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})


class CodeDeployment:
    """
    create/update/delete handlers for "payload P runs on host H".

    Implements the ``Resource[DeploymentState]`` contract.
    """

    def __init__(
        self,
        ssh: SSHService,
        artifacts: ArtifactResolver,
        config: Optional[DeploymentConfig] = None,
        logger: Optional[DeployLogger] = None,
    ):
        self.ssh = ssh
        self.artifacts = artifacts
        self.config = config or DeploymentConfig()
        self.logger = logger
        self.relay = CredentialRelay(
            ssh,
            relay_dir=self.config.relay_dir,
            copy_timeout=self.config.relay_timeout,
            logger=logger,
        )

    async def create(
        self,
        bundle: Bundle,
        address: str,
        key_path: str,
        proxy: Optional[ProxyTarget] = None,
    ) -> DeploymentState:
        """Deploy ``bundle`` to ``address`` and start it."""
        entry_path = self.artifacts.resolve_artifact(bundle.destination)

        if proxy:
            await self._deploy_via_proxy(entry_path, address, key_path, proxy)
        else:
            await self._deploy_direct(entry_path, address, key_path)

        return DeploymentState(
            address=address,
            key_path=key_path,
            payload_fingerprint=bundle.fingerprint,
            proxy=proxy,
        )

    async def update(
        self,
        state: DeploymentState,
        bundle: Bundle,
        address: str,
        key_path: str,
        proxy: Optional[ProxyTarget] = None,
    ) -> DeploymentState:
        """
        Redeploy when the payload or address changed.

        A host runs one payload at a time, so a new payload on the same
        address stops the old unit first. A changed address means the old
        host is gone and is not touched.
        """
        if bundle.fingerprint == state.payload_fingerprint and address == state.address:
            return state

        if address == state.address:
            await self._stop_unit(state)

        return await self.create(bundle, address, key_path, proxy)

    async def delete(self, state: DeploymentState) -> None:
        """
        Stop the unit, giving up on the stop after ``delete_timeout`` seconds.

        Never raises: teardown must not block on a host we can no longer
        reach. Only the remote stop is bounded; a relayed key is always
        removed from the proxy before this returns.
        """
        try:
            if state.proxy is None:
                await self._bounded_stop(state, state.key_path)
            else:
                async with self.relay.relayed_key(state.key_path, state.proxy) as relayed_key:
                    await self._bounded_stop(
                        state, relayed_key, ProxySpawn.for_proxy(state.proxy)
                    )
        except Exception as e:
            if self.logger:
                self.logger.warning(f"Failed to delete deployment on {state.address}: {e}")

    async def _bounded_stop(
        self, state: DeploymentState, key_path: str, spawner: Spawner = DIRECT
    ) -> None:
        task = asyncio.ensure_future(
            self.ssh.run_command(key_path, state.address, self.config.stop_command, spawner)
        )
        done, _ = await asyncio.wait({task}, timeout=self.config.delete_timeout)
        if not done:
            task.cancel()
            if self.logger:
                self.logger.warning(
                    f"Stopping {self.config.unit_name} on {state.address} did not finish "
                    f"within {self.config.delete_timeout:g}s, abandoning"
                )
            return
        task.result()

    async def status(self, state: DeploymentState) -> str:
        """Return ``systemctl status`` output for the unit."""
        return await self._run_on_host(
            state.address, state.key_path, state.proxy, self.config.status_command
        )

    async def _deploy_direct(self, entry_path: Path, address: str, key_path: str) -> None:
        cfg = self.config

        await retry_for(
            cfg.copy_timeout,
            lambda: self.ssh.copy_to_remote(key_path, address, str(entry_path), cfg.entry_path),
            self.logger,
            description=f"copy payload to {address}",
        )
        await retry_for(
            cfg.liveness_timeout,
            lambda: self.ssh.run_command(key_path, address, cfg.liveness_command),
            self.logger,
            description=f"runtime check on {address}",
        )

        await self.ssh.run_command(key_path, address, cfg.start_command(cfg.runtime_command))
        if self.logger:
            self.logger.success(f"Started {cfg.unit_name} on {address}")

    async def _deploy_via_proxy(
        self,
        entry_path: Path,
        address: str,
        key_path: str,
        proxy: ProxyTarget,
    ) -> None:
        cfg = self.config

        await retry_for(
            cfg.proxy_copy_timeout,
            lambda: self.ssh.copy_to_remote(
                proxy.key_path, proxy.address, str(entry_path), cfg.proxy_entry_path
            ),
            self.logger,
            description=f"copy payload to proxy {proxy.address}",
        )

        spawner = ProxySpawn.for_proxy(proxy)
        async with self.relay.relayed_key(key_path, proxy) as relayed_key:
            await retry_for(
                cfg.copy_timeout,
                lambda: self.ssh.copy_to_remote(
                    relayed_key, address, cfg.proxy_entry_path, cfg.entry_path, spawner
                ),
                self.logger,
                description=f"copy payload {proxy.address} -> {address}",
            )

            # No NAT on the private subnet: ship the runtime from the proxy too
            await retry_for(
                cfg.copy_timeout,
                lambda: self.ssh.copy_to_remote(
                    relayed_key, address, cfg.runtime_binary, cfg.remote_runtime_path, spawner
                ),
                self.logger,
                description=f"copy runtime {proxy.address} -> {address}",
            )

            await self.ssh.run_command(
                relayed_key, address, cfg.start_command(cfg.remote_runtime_path), spawner
            )

        if self.logger:
            self.logger.success(f"Started {cfg.unit_name} on {address} via {proxy.address}")

    async def _stop_unit(self, state: DeploymentState) -> None:
        await self._run_on_host(
            state.address, state.key_path, state.proxy, self.config.stop_command
        )

    async def _run_on_host(
        self,
        address: str,
        key_path: str,
        proxy: Optional[ProxyTarget],
        command: str,
    ) -> str:
        if proxy is None:
            return await self.ssh.run_command(key_path, address, command)

        spawner = ProxySpawn.for_proxy(proxy)
        async with self.relay.relayed_key(key_path, proxy) as relayed_key:
            return await self.ssh.run_command(relayed_key, address, command, spawner)
