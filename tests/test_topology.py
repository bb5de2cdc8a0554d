"""Tests for topology-wide keys/up/status/down orchestration."""

from pathlib import Path

import pytest

from bastiondeploy.core.config_loader import ConfigLoader
from bastiondeploy.core.topology import Topology
from bastiondeploy.exceptions import (
    ConfigurationError,
    ExecutionError,
    HostNotDeployedError,
    HostNotFoundError,
)
from bastiondeploy.models.results import ResultStatus
from bastiondeploy.services.state_service import StateService

from conftest import RecordingSSH, fail, fake_keygen


def build(config_path, ssh: RecordingSSH) -> Topology:
    config = ConfigLoader(config_path).load()
    return Topology(config, StateService(config.paths.state_file), ssh=ssh)


class TestDeploy:
    @pytest.mark.asyncio
    async def test_deploy_all_persists_every_host(self, write_config, topology_data, ssh):
        topology = build(write_config(topology_data), ssh)

        results = await topology.deploy_all()

        assert [r.status for r in results] == [ResultStatus.SUCCESS] * 2
        bastion = topology.state.get_deployment("bastion")
        private = topology.state.get_deployment("private")
        assert bastion.proxy is None
        assert private.proxy.address == "10.0.1.9"
        assert private.proxy.key_path == "/keys/bastion"
        assert bastion.payload_fingerprint == private.payload_fingerprint

    @pytest.mark.asyncio
    async def test_second_run_is_noop(self, write_config, topology_data, ssh):
        config_path = write_config(topology_data)
        await build(config_path, ssh).deploy_all()

        rerun = RecordingSSH()
        results = await build(config_path, rerun).deploy_all()

        assert [r.status for r in results] == [ResultStatus.UNCHANGED] * 2
        assert rerun.calls == []

    @pytest.mark.asyncio
    async def test_changed_payload_redeploys(self, write_config, topology_data, payload, ssh):
        config_path = write_config(topology_data)
        await build(config_path, ssh).deploy_all()

        payload.write_text("console.log('v2')\n")
        rerun = RecordingSSH()
        results = await build(config_path, rerun).deploy_all()

        assert [r.status for r in results] == [ResultStatus.SUCCESS] * 2
        assert any("systemctl stop" in c for c in rerun.remote_commands())

    @pytest.mark.asyncio
    async def test_one_failure_keeps_other_successes(self, write_config, topology_data):
        def handler(cmd, args):
            if cmd == "ssh" and "systemd-run" in args[-1] and "10.0.0.5" in args[-1]:
                raise fail()
            return ""

        topology = build(write_config(topology_data), RecordingSSH(handler))

        with pytest.raises(ExecutionError):
            await topology.deploy_all()

        assert topology.state.get_deployment("bastion") is not None
        assert topology.state.get_deployment("private") is None

    @pytest.mark.asyncio
    async def test_missing_key_is_configuration_error(self, write_config, topology_data, ssh):
        del topology_data["hosts"]["bastion"]["key_path"]
        topology = build(write_config(topology_data), ssh)

        with pytest.raises(ConfigurationError, match="No key pair"):
            await topology.deploy_host(topology.config.get_host("bastion"))


class TestKeys:
    @pytest.mark.asyncio
    async def test_generates_only_missing_keys(self, write_config, topology_data):
        del topology_data["hosts"]["private"]["key_path"]
        topology = build(write_config(topology_data), RecordingSSH(fake_keygen))

        results = await topology.ensure_keys()

        assert {r.host: r.status for r in results} == {
            "bastion": ResultStatus.UNCHANGED,
            "private": ResultStatus.SUCCESS,
        }
        key_pair = topology.state.get_key_pair("private")
        assert topology.key_path_for(topology.config.get_host("private")) == key_pair.private_key_path

        again = await topology.ensure_keys()
        assert {r.host: r.status for r in again}["private"] == ResultStatus.UNCHANGED
        assert len(topology.ssh.calls) == 1


class TestStatus:
    @pytest.mark.asyncio
    async def test_reports_not_deployed_and_inactive_units(self, write_config, topology_data, ssh):
        config_path = write_config(topology_data)
        topology = build(config_path, ssh)
        await topology.deploy_host(topology.config.get_host("bastion"))

        def handler(cmd, args):
            raise ExecutionError("ssh", returncode=3, stdout="inactive (dead)\n")

        statuses = await build(config_path, RecordingSSH(handler)).status_all()

        assert statuses == {"bastion": "inactive (dead)\n", "private": "not deployed"}

    @pytest.mark.asyncio
    async def test_status_host_queries_only_that_host(self, write_config, topology_data, ssh):
        topology = build(write_config(topology_data), ssh)
        await topology.deploy_all()
        ssh.calls.clear()
        ssh.handler = lambda cmd, args: "active (running)\n"

        output = await topology.status_host("bastion")

        assert output == "active (running)\n"
        assert ssh.remote_commands() == ["systemctl status test.service --no-pager"]

    @pytest.mark.asyncio
    async def test_status_host_not_deployed(self, write_config, topology_data, ssh):
        topology = build(write_config(topology_data), ssh)

        with pytest.raises(HostNotDeployedError, match="private"):
            await topology.status_host("private")
        assert ssh.calls == []

    @pytest.mark.asyncio
    async def test_status_host_unknown(self, write_config, topology_data, ssh):
        topology = build(write_config(topology_data), ssh)

        with pytest.raises(HostNotFoundError):
            await topology.status_host("nope")


class TestDestroy:
    @pytest.mark.asyncio
    async def test_removes_deployments_and_keys(self, write_config, topology_data):
        del topology_data["hosts"]["private"]["key_path"]
        topology = build(write_config(topology_data), RecordingSSH(fake_keygen))
        await topology.ensure_keys()
        await topology.deploy_all()
        key_pair = topology.state.get_key_pair("private")

        results = await topology.destroy_all()

        assert topology.state.get_all_deployments() == {}
        assert topology.state.get_all_key_pairs() == {}
        assert {r.host for r in results} == {"bastion", "private"}
        assert not Path(key_pair.private_key_path).exists()

    @pytest.mark.asyncio
    async def test_unreachable_hosts_do_not_block_teardown(self, write_config, topology_data, ssh):
        topology_data["deployment"] = {"delete_timeout": 0.05, "relay_timeout": 0}
        config_path = write_config(topology_data)
        await build(config_path, ssh).deploy_all()

        def handler(cmd, args):
            raise fail()

        topology = build(config_path, RecordingSSH(handler))
        await topology.destroy_all(keep_keys=True)

        assert topology.state.get_all_deployments() == {}
