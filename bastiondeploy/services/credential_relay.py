"""
Ephemeral credential relay.

Instead of ssh jump hosts or ProxyCommand, the target host's private key is
copied onto the proxy for the duration of one operation and removed again
afterwards, so the proxy can reach the target on our behalf.
"""

import posixpath
import uuid
from contextlib import asynccontextmanager
from pathlib import PurePath
from typing import AsyncIterator, Awaitable, Callable, Optional, TypeVar

from bastiondeploy.constants import DEFAULT_RELAY_DIR, RELAY_TIMEOUT
from bastiondeploy.exceptions import ExecutionError
from bastiondeploy.logger import DeployLogger
from bastiondeploy.models.ssh import ProxyTarget
from bastiondeploy.services.retry import retry_for
from bastiondeploy.services.ssh_service import SSHService

T = TypeVar("T")


class CredentialRelay:
    """Places a third host's private key on a proxy, then guarantees its removal."""

    def __init__(
        self,
        ssh: SSHService,
        relay_dir: str = DEFAULT_RELAY_DIR,
        copy_timeout: float = RELAY_TIMEOUT,
        logger: Optional[DeployLogger] = None,
    ):
        self.ssh = ssh
        self.relay_dir = relay_dir
        self.copy_timeout = copy_timeout
        self.logger = logger

    def remote_key_path(self, target_key_path: str) -> str:
        """
        A fresh path on the proxy for one relay session.

        Unique per call so that concurrent sessions, and keys the proxy user
        already owns under the same name, are never overwritten or removed.
        """
        name = PurePath(target_key_path).name
        return posixpath.join(self.relay_dir, f"{name}-{uuid.uuid4().hex}")

    @asynccontextmanager
    async def relayed_key(
        self, target_key_path: str, proxy: ProxyTarget
    ) -> AsyncIterator[str]:
        """
        Copy ``target_key_path`` to the proxy for the duration of the block.

        Yields the key's path on the proxy. The copy is removed exactly once
        on every exit path; a failed removal is raised only when the block
        itself succeeded, otherwise it is logged and the block's error wins.
        """
        remote_path = self.remote_key_path(target_key_path)

        await retry_for(
            self.copy_timeout,
            lambda: self.ssh.copy_to_remote(
                proxy.key_path, proxy.address, target_key_path, remote_path
            ),
            self.logger,
            description=f"relay key to {proxy.address}",
        )
        if self.logger:
            self.logger.log(f"Relayed key to {proxy.address}:{remote_path}")

        body_failed = False
        try:
            yield remote_path
        except BaseException:
            body_failed = True
            raise
        finally:
            try:
                await self.ssh.run_command(
                    proxy.key_path, proxy.address, f"rm {remote_path}"
                )
            except ExecutionError as e:
                if self.logger:
                    self.logger.warning(
                        f"Failed to remove relayed key {proxy.address}:{remote_path}: {e.message}"
                    )
                if not body_failed:
                    raise

    async def with_relayed_key(
        self,
        target_key_path: str,
        proxy: ProxyTarget,
        body: Callable[[str], Awaitable[T]],
    ) -> T:
        """Run ``body(remote_key_path)`` inside a relay session."""
        async with self.relayed_key(target_key_path, proxy) as remote_path:
            return await body(remote_path)
