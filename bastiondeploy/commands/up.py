"""
Up Command

Deploy each host's payload, directly or through its proxy.
"""

import click
from dataclasses import dataclass
from typing import Optional

from bastiondeploy.base import TopologyCommand
from bastiondeploy.constants import SUCCESS_TOPOLOGY_DEPLOYED
from bastiondeploy.ui_components import show_results
from bastiondeploy.utils import run_async


@dataclass
class UpOptions:
    """Options for up command."""

    host: Optional[str] = None


class UpCommand(TopologyCommand):
    """
    Create or update the deployment of every host.

    Features:
    - Concurrent deployment across hosts
    - No-op when payload and address are unchanged
    - State persisted per host as soon as it succeeds
    """

    def __init__(
        self,
        options: UpOptions,
        config_path: Optional[str] = None,
        verbose: bool = False,
        json_output: bool = False,
    ):
        super().__init__(config_path, verbose=verbose, json_output=json_output)
        self.options = options

    def execute(self) -> None:
        """Execute up command."""
        topology = self.ensure_topology("up")

        self.show_header(
            title="Deploy Topology",
            project=self.project_name,
            details={"Hosts": len(self.config.hosts)},
        )

        if self.logger:
            self.logger.step("Deploying payloads")

        if self.options.host:
            host = self.config.get_host(self.options.host)
            results = [run_async(topology.deploy_host(host))]
        else:
            results = run_async(topology.deploy_all())

        if self.json_output:
            self.output_json({"deployments": [r.to_dict() for r in results]})
            return

        show_results(results, console=self.console)

        if self.logger:
            self.logger.success(SUCCESS_TOPOLOGY_DEPLOYED)
            self.console.print(f"\n[dim]Logs saved to:[/dim] {self.logger.log_path}\n")


@click.command()
@click.option("--host", help="Deploy a single host only")
@click.option("--config", "-c", "config_path", help="Path to bastiondeploy.yml")
@click.option("--verbose", "-v", is_flag=True, help="Show all command output")
@click.option("--json", "json_output", is_flag=True, help="Output in JSON format")
def up(host, config_path, verbose, json_output):
    """
    Deploy payloads to all hosts

    Copies each host's payload and starts it as a transient systemd unit.
    Hosts behind a proxy receive the payload and runtime through it.

    Examples:
        # Deploy everything
        bastiondeploy up

        # Redeploy one host with full output
        bastiondeploy up --host private -v
    """
    options = UpOptions(host=host)
    cmd = UpCommand(options, config_path=config_path, verbose=verbose, json_output=json_output)
    cmd.run()
