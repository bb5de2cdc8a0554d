"""Tests for SSH/SCP invocation and proxy indirection."""

import asyncio
import shlex

import pytest

from bastiondeploy.exceptions import ExecutionError
from bastiondeploy.models.ssh import ProxySpawn, SSHConfig
from bastiondeploy.services.ssh_service import SSHService, quote_args

from conftest import RecordingSSH

OPTIONS = [
    "-o",
    "StrictHostKeyChecking=no",
    "-o",
    "UserKnownHostsFile=/dev/null",
    "-o",
    "ConnectTimeout=5",
]


class FakeStream:
    def __init__(self, data: bytes):
        self.data = data

    async def read(self) -> bytes:
        return self.data

    def __aiter__(self):
        self._lines = iter(self.data.splitlines(keepends=True))
        return self

    async def __anext__(self) -> bytes:
        try:
            return next(self._lines)
        except StopIteration:
            raise StopAsyncIteration


class FakeProcess:
    def __init__(self, returncode=0, stdout=b"", stderr=b""):
        self.returncode = returncode
        self.stdout = FakeStream(stdout)
        self.stderr = FakeStream(stderr)

    async def wait(self) -> int:
        return self.returncode


@pytest.fixture
def fake_exec(monkeypatch):
    """Replace asyncio.create_subprocess_exec, recording argv."""
    calls = []
    processes = []

    async def create_subprocess_exec(*argv, **kwargs):
        calls.append(list(argv))
        return processes.pop(0) if processes else FakeProcess()

    monkeypatch.setattr(asyncio, "create_subprocess_exec", create_subprocess_exec)
    return calls, processes


class TestQuoteArgs:
    def test_plain_args_unquoted(self):
        assert quote_args(["-i", "/keys/a", "ubuntu@10.0.0.5"]) == "-i /keys/a ubuntu@10.0.0.5"

    def test_args_with_spaces_survive_remote_shell(self):
        quoted = quote_args(["ubuntu@10.0.0.5", "sudo systemd-run --unit=test node x.js"])
        assert shlex.split(quoted) == ["ubuntu@10.0.0.5", "sudo systemd-run --unit=test node x.js"]

    def test_metacharacters_are_quoted(self):
        arg = "(a && b) || true; rm $HOME"
        assert shlex.split(quote_args([arg])) == [arg]


class TestSpawnLocal:
    @pytest.mark.asyncio
    async def test_returns_stdout(self, fake_exec):
        calls, processes = fake_exec
        processes.append(FakeProcess(stdout=b"v18.0.0\n"))

        output = await SSHService(SSHConfig()).spawn_local("node", ["-v"])

        assert output == "v18.0.0\n"
        assert calls == [["node", "-v"]]

    @pytest.mark.asyncio
    async def test_nonzero_exit_raises_execution_error(self, fake_exec):
        _, processes = fake_exec
        processes.append(FakeProcess(returncode=255, stderr=b"Connection refused\n"))

        with pytest.raises(ExecutionError) as exc_info:
            await SSHService(SSHConfig()).spawn_local("ssh", ["host", "true"])

        assert exc_info.value.returncode == 255
        assert exc_info.value.signal is None
        assert "Connection refused" in exc_info.value.stderr
        assert "255" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_killed_by_signal(self, fake_exec):
        _, processes = fake_exec
        processes.append(FakeProcess(returncode=-9))

        with pytest.raises(ExecutionError) as exc_info:
            await SSHService(SSHConfig()).spawn_local("scp", ["a", "b"])

        assert exc_info.value.returncode is None
        assert exc_info.value.signal == 9

    @pytest.mark.asyncio
    async def test_missing_binary_raises_execution_error(self, monkeypatch):
        async def create_subprocess_exec(*argv, **kwargs):
            raise FileNotFoundError(2, "No such file or directory", argv[0])

        monkeypatch.setattr(asyncio, "create_subprocess_exec", create_subprocess_exec)

        with pytest.raises(ExecutionError):
            await SSHService(SSHConfig()).spawn_local("no-such-binary", [])


class TestDirectCommands:
    @pytest.mark.asyncio
    async def test_run_command_argv(self, ssh: RecordingSSH):
        await ssh.run_command("/keys/a", "10.0.0.5", "node -v")

        assert ssh.calls == [
            ("ssh", [*OPTIONS, "-i", "/keys/a", "ubuntu@10.0.0.5", "node -v"])
        ]

    @pytest.mark.asyncio
    async def test_copy_to_remote_argv(self, ssh: RecordingSSH):
        await ssh.copy_to_remote("/keys/a", "10.0.0.5", "/tmp/x.js", "/home/ubuntu/entry.js")

        assert ssh.calls == [
            (
                "scp",
                [*OPTIONS, "-i", "/keys/a", "/tmp/x.js", "ubuntu@10.0.0.5:/home/ubuntu/entry.js"],
            )
        ]

    @pytest.mark.asyncio
    async def test_copy_from_remote_argv(self, ssh: RecordingSSH):
        await ssh.copy_from_remote("/keys/a", "10.0.0.5", "/var/log/x", "/tmp/x")

        assert ssh.calls[0][1][-2:] == ["ubuntu@10.0.0.5:/var/log/x", "/tmp/x"]

    @pytest.mark.asyncio
    async def test_connect_timeout_from_config(self):
        ssh = RecordingSSH()
        ssh.config = SSHConfig(user="admin", connect_timeout=12)

        await ssh.run_command("/k", "host", "true")

        args = ssh.calls[0][1]
        assert "ConnectTimeout=12" in args
        assert "admin@host" in args


class TestProxySpawn:
    @pytest.mark.asyncio
    async def test_command_runs_on_proxy(self, ssh: RecordingSSH):
        spawner = ProxySpawn(key_path="/keys/bastion", host="10.0.1.9")

        await ssh.run_command("/home/ubuntu/.ssh/private", "10.0.0.5", "node -v", spawner)

        assert len(ssh.calls) == 1
        cmd, args = ssh.calls[0]
        assert cmd == "ssh"
        assert args[:-1] == [*OPTIONS, "-i", "/keys/bastion", "ubuntu@10.0.1.9"]

        inner = shlex.split(args[-1])
        assert inner == [
            "ssh",
            *OPTIONS,
            "-i",
            "/home/ubuntu/.ssh/private",
            "ubuntu@10.0.0.5",
            "node -v",
        ]

    @pytest.mark.asyncio
    async def test_copy_runs_on_proxy(self, ssh: RecordingSSH):
        spawner = ProxySpawn(key_path="/keys/bastion", host="10.0.1.9")

        await ssh.copy_to_remote(
            "/home/ubuntu/.ssh/private",
            "10.0.0.5",
            "/home/ubuntu/proxy-entry.js",
            "/home/ubuntu/entry.js",
            spawner,
        )

        inner = shlex.split(ssh.remote_commands()[0])
        assert inner[0] == "scp"
        assert inner[-2:] == ["/home/ubuntu/proxy-entry.js", "ubuntu@10.0.0.5:/home/ubuntu/entry.js"]
