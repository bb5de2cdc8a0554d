"""Shared fixtures: a recording SSH service and on-disk topology configs."""

import asyncio
from pathlib import Path
from typing import Callable, List, Optional, Tuple

import pytest
import yaml

from bastiondeploy.exceptions import ExecutionError
from bastiondeploy.models.ssh import SSHConfig
from bastiondeploy.services.ssh_service import SSHService


class RecordingSSH(SSHService):
    """
    SSHService whose local processes are recorded instead of spawned.

    ``handler(cmd, args)`` may return stdout, raise, or await forever; by
    default every process succeeds with empty output.
    """

    def __init__(self, handler: Optional[Callable] = None):
        super().__init__(SSHConfig())
        self.calls: List[Tuple[str, List[str]]] = []
        self.handler = handler

    async def spawn_local(self, cmd: str, args: List[str]) -> str:
        self.calls.append((cmd, list(args)))
        if self.handler is None:
            return ""
        result = self.handler(cmd, list(args))
        if asyncio.iscoroutine(result):
            result = await result
        return result or ""

    def remote_commands(self) -> List[str]:
        """Last argument of every ssh call: the command run on the far side."""
        return [args[-1] for cmd, args in self.calls if cmd == "ssh"]


def fake_keygen(cmd, args):
    """Write the files ssh-keygen would produce; other commands succeed."""
    if cmd != "ssh-keygen":
        return ""
    dest = Path(args[args.index("-f") + 1])
    dest.write_text("PRIVATE\n")
    Path(f"{dest}.pub").write_text(f"ssh-rsa AAAA {dest.name}\n")
    return ""


def fail(cmd: str = "ssh", returncode: int = 255) -> ExecutionError:
    return ExecutionError(cmd, returncode=returncode, stderr="Connection refused")


@pytest.fixture
def ssh():
    return RecordingSSH()


@pytest.fixture
def payload(tmp_path: Path) -> Path:
    path = tmp_path / "app" / "server.js"
    path.parent.mkdir()
    path.write_text("require('http').createServer().listen(8080)\n")
    return path


@pytest.fixture
def write_config(tmp_path: Path):
    """Write a bastiondeploy.yml and return its path."""

    def _write(data: dict) -> Path:
        path = tmp_path / "bastiondeploy.yml"
        path.write_text(yaml.safe_dump(data))
        return path

    return _write


@pytest.fixture
def topology_data(payload: Path) -> dict:
    return {
        "project": {"name": "echo"},
        "hosts": {
            "bastion": {
                "address": "10.0.1.9",
                "payload": "app/server.js",
                "key_path": "/keys/bastion",
            },
            "private": {
                "address": "10.0.0.5",
                "payload": "app/server.js",
                "key_path": "/keys/private",
                "proxy": "bastion",
            },
        },
    }
