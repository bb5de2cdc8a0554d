"""SSH service for executing commands and copying files on remote hosts."""

import asyncio
import shlex
from typing import List, Optional

from bastiondeploy.exceptions import ExecutionError
from bastiondeploy.logger import DeployLogger
from bastiondeploy.models.ssh import DIRECT, ProxySpawn, Spawner, SSHConfig


def quote_args(args: List[str]) -> str:
    """
    Join arguments into one remote shell command string.

    Arguments are POSIX-quoted only when they contain characters the shell
    would interpret (whitespace, quotes, ``$``, ``;`` ...).
    """
    return " ".join(shlex.quote(arg) for arg in args)


class SSHService:
    """
    Service for SSH operations.

    Every operation can run *direct* (ssh/scp spawned on this machine) or be
    *indirected* through a proxy host, in which case the identical ssh/scp
    invocation is sent to the proxy as a remote command.
    """

    def __init__(self, config: SSHConfig, logger: Optional[DeployLogger] = None):
        """
        Initialize SSH service.

        Args:
            config: SSH configuration
            logger: Optional logger receiving commands and stderr output
        """
        self.config = config
        self.logger = logger

    async def run_command(
        self,
        key_path: str,
        host: str,
        command: str,
        spawner: Spawner = DIRECT,
    ) -> str:
        """
        Execute command on remote host via SSH.

        Args:
            key_path: Private key accepted by the host
            host: Host IP or hostname
            command: Shell command to execute remotely
            spawner: Where the ssh client itself runs

        Returns:
            Captured stdout of the command

        Raises:
            ExecutionError: On non-zero exit, signal or connection failure
        """
        args = [
            *self.config.connection_options(key_path),
            self.config.connection_string(host),
            command,
        ]
        return await self.spawn("ssh", args, spawner)

    async def copy_to_remote(
        self,
        key_path: str,
        host: str,
        source: str,
        destination: str,
        spawner: Spawner = DIRECT,
    ) -> str:
        """
        Copy a single file to the remote host via SCP.

        With a proxy spawner, ``source`` is a path on the proxy.
        """
        args = [
            *self.config.connection_options(key_path),
            source,
            f"{self.config.connection_string(host)}:{destination}",
        ]
        return await self.spawn("scp", args, spawner)

    async def copy_from_remote(
        self,
        key_path: str,
        host: str,
        source: str,
        destination: str,
        spawner: Spawner = DIRECT,
    ) -> str:
        """Copy a single file from the remote host via SCP."""
        args = [
            *self.config.connection_options(key_path),
            f"{self.config.connection_string(host)}:{source}",
            destination,
        ]
        return await self.spawn("scp", args, spawner)

    async def spawn(self, cmd: str, args: List[str], spawner: Spawner = DIRECT) -> str:
        """Run ``cmd args`` locally or on the proxy described by ``spawner``."""
        if self.logger:
            self.logger.log(f"{cmd} {spawner.describe()}", "DEBUG")
        if isinstance(spawner, ProxySpawn):
            return await self.run_command(
                spawner.key_path, spawner.host, f"{cmd} {quote_args(args)}"
            )
        return await self.spawn_local(cmd, args)

    async def spawn_local(self, cmd: str, args: List[str]) -> str:
        """
        Run a local subprocess, buffering stdout and streaming stderr to the log.

        Returns:
            Decoded stdout

        Raises:
            ExecutionError: If the process cannot start, exits non-zero or is
                killed by a signal
        """
        command_line = shlex.join([cmd, *args])
        if self.logger:
            self.logger.log_command(command_line)

        try:
            process = await asyncio.create_subprocess_exec(
                cmd,
                *args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise ExecutionError(command_line, stderr=str(e)) from e

        stdout, stderr = await asyncio.gather(
            process.stdout.read(),
            self._pump_stderr(cmd, process.stderr),
        )
        returncode = await process.wait()
        output = stdout.decode("utf-8", errors="replace")

        if returncode != 0:
            raise ExecutionError(
                command_line,
                returncode=returncode if returncode > 0 else None,
                signal=-returncode if returncode < 0 else None,
                stdout=output,
                stderr=stderr,
            )

        return output

    async def _pump_stderr(self, cmd: str, stream: asyncio.StreamReader) -> str:
        """Forward stderr lines to the logger as they arrive."""
        lines = []
        async for raw in stream:
            line = raw.decode("utf-8", errors="replace")
            lines.append(line)
            if self.logger:
                self.logger.log_output(line, f"stderr <{cmd}>")
        return "".join(lines)
