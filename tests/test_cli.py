"""End-to-end tests of the click commands with processes stubbed out."""

import json

import pytest
from click.testing import CliRunner

from bastiondeploy.main import cli
from bastiondeploy.services.ssh_service import SSHService

from conftest import fake_keygen


@pytest.fixture
def spawned(monkeypatch):
    """Stub every local process; returns the recorded (cmd, args) list."""
    calls = []

    async def spawn_local(self, cmd, args):
        calls.append((cmd, list(args)))
        if cmd == "ssh" and args[-1].startswith("systemctl status"):
            return "active (running)\n"
        return fake_keygen(cmd, list(args))

    monkeypatch.setattr(SSHService, "spawn_local", spawn_local)
    return calls


@pytest.fixture
def config_path(write_config, topology_data):
    del topology_data["hosts"]["private"]["key_path"]
    return str(write_config(topology_data))


def invoke(*args, input=None):
    return CliRunner().invoke(cli, list(args), input=input, catch_exceptions=False)


class TestCli:
    def test_help_lists_commands(self):
        result = invoke("--help")
        assert result.exit_code == 0
        for name in ("keys", "up", "status", "down"):
            assert name in result.output

    def test_missing_config_fails(self, tmp_path):
        result = invoke("up", "--json", "-c", str(tmp_path / "missing.yml"))

        assert result.exit_code == 1
        assert json.loads(result.output)["type"] == "ConfigurationError"

    def test_keys_up_status_down(self, config_path, spawned):
        result = invoke("keys", "--json", "-c", config_path)
        assert result.exit_code == 0
        keys = {k["host"]: k for k in json.loads(result.output)["keys"]}
        assert keys["private"]["status"] == "success"
        assert keys["private"]["public_key_path"].endswith(".pub")

        result = invoke("up", "--json", "-c", config_path)
        assert result.exit_code == 0
        deployments = {d["host"]: d for d in json.loads(result.output)["deployments"]}
        assert deployments["private"]["proxy"]["address"] == "10.0.1.9"
        assert deployments["bastion"]["address"] == "10.0.1.9"

        result = invoke("up", "--json", "-c", config_path)
        statuses = [d["status"] for d in json.loads(result.output)["deployments"]]
        assert statuses == ["unchanged", "unchanged"]

        result = invoke("status", "--json", "-c", config_path)
        assert json.loads(result.output)["status"]["bastion"] == "active (running)\n"

        result = invoke("down", "--json", "-c", config_path)
        assert result.exit_code == 0
        removed = json.loads(result.output)["removed"]
        assert {r["host"] for r in removed} == {"bastion", "private"}

    def test_down_asks_for_confirmation(self, config_path, spawned):
        invoke("keys", "--json", "-c", config_path)
        invoke("up", "--json", "-c", config_path)

        result = invoke("down", "-c", config_path, input="n\n")

        assert result.exit_code == 0
        assert "Cancelled" in result.output
        assert not any("systemctl stop" in args[-1] for cmd, args in spawned)

    def test_status_single_host(self, config_path, spawned):
        invoke("keys", "--json", "-c", config_path)
        invoke("up", "--json", "-c", config_path)

        result = invoke("status", "--host", "bastion", "--json", "-c", config_path)

        assert result.exit_code == 0
        assert json.loads(result.output)["status"] == {"bastion": "active (running)\n"}

    def test_status_shows_proxy_of_interior_host(self, config_path, spawned):
        invoke("keys", "--json", "-c", config_path)
        invoke("up", "--json", "-c", config_path)

        result = invoke("status", "--host", "private", "-c", config_path)

        assert result.exit_code == 0
        assert "10.0.0.5 via 10.0.1.9" in result.output

    def test_status_of_undeployed_host_fails(self, config_path, spawned):
        invoke("keys", "--json", "-c", config_path)

        result = invoke("status", "--host", "private", "--json", "-c", config_path)

        assert result.exit_code == 1
        assert json.loads(result.output)["type"] == "HostNotDeployedError"
        assert not any(cmd == "ssh" for cmd, _ in spawned)
