"""
SSH key pair resources.

A key pair is generated once with ssh-keygen and kept for the lifetime of the
host that uses it; updates never rotate it.
"""

import os
import uuid
from dataclasses import replace
from pathlib import Path
from typing import Optional, Protocol

from bastiondeploy.constants import KEYS_DIR_MODE, SSH_KEY_BITS, SSH_KEY_TYPE
from bastiondeploy.exceptions import KeyPairError
from bastiondeploy.logger import DeployLogger
from bastiondeploy.models.deployment import KeyPairState
from bastiondeploy.services.ssh_service import SSHService


def read_public_key(state: KeyPairState) -> str:
    """Read the public half. Not cached: always the current file contents."""
    return Path(state.public_key_path).read_text(encoding="utf-8")


class KeyRegistry(Protocol):
    """Cloud provider key-pair registration."""

    async def register(self, name: str, public_key: str) -> str:
        """Register ``public_key`` and return the provider-assigned key name."""
        ...

    async def deregister(self, key_name: str) -> None:
        ...


class LocalKeyPair:
    """Implements ``Resource[KeyPairState]`` for key files on local disk."""

    def __init__(
        self,
        ssh: SSHService,
        keys_dir: Path,
        logger: Optional[DeployLogger] = None,
    ):
        self.ssh = ssh
        self.keys_dir = Path(keys_dir)
        self.logger = logger

    async def create(self) -> KeyPairState:
        """Generate a new passphrase-less RSA key pair under a fresh id."""
        key_id = str(uuid.uuid4())
        dest = self.keys_dir / key_id

        self.keys_dir.mkdir(parents=True, exist_ok=True)
        # ssh refuses keys in group/world accessible directories
        os.chmod(self.keys_dir, KEYS_DIR_MODE)

        await self.ssh.spawn_local(
            "ssh-keygen",
            ["-t", SSH_KEY_TYPE, "-b", str(SSH_KEY_BITS), "-q", "-N", "", "-f", str(dest)],
        )
        if self.logger:
            self.logger.log(f"Generated key pair {key_id}")

        return KeyPairState(
            id=key_id,
            private_key_path=str(dest),
            public_key_path=f"{dest}.pub",
        )

    async def update(self, state: KeyPairState) -> KeyPairState:
        """Keep the existing pair, even if generation parameters changed."""
        return state

    async def delete(self, state: KeyPairState) -> None:
        """Remove both key files; already-missing files count as deleted."""
        for path in (state.public_key_path, state.private_key_path):
            Path(path).unlink(missing_ok=True)


class CloudKeyPair:
    """A local key pair whose public half is registered with the cloud provider."""

    def __init__(self, local: LocalKeyPair, registry: KeyRegistry):
        self.local = local
        self.registry = registry

    async def create(self, name: str) -> KeyPairState:
        state = await self.local.create()
        try:
            key_name = await self.registry.register(name, read_public_key(state))
        except Exception as e:
            await self.local.delete(state)
            raise KeyPairError(
                f"Failed to register key pair '{name}'", context=str(e)
            ) from e
        return replace(state, key_name=key_name)

    async def update(self, state: KeyPairState) -> KeyPairState:
        return state

    async def delete(self, state: KeyPairState) -> None:
        if state.key_name:
            await self.registry.deregister(state.key_name)
        await self.local.delete(state)
