"""
Status Command

Show the systemd unit status of every deployed host.
"""

import click
from dataclasses import dataclass
from typing import Optional

from bastiondeploy.base import TopologyCommand
from bastiondeploy.utils import run_async


@dataclass
class StatusOptions:
    """Options for status command."""

    host: Optional[str] = None


class StatusCommand(TopologyCommand):
    """Query ``systemctl status`` on each deployed host."""

    def __init__(
        self,
        options: StatusOptions,
        config_path: Optional[str] = None,
        verbose: bool = False,
        json_output: bool = False,
    ):
        super().__init__(config_path, verbose=verbose, json_output=json_output)
        self.options = options

    def execute(self) -> None:
        """Execute status command."""
        topology = self.ensure_topology("status")

        self.show_header(title="Topology Status", project=self.project_name)

        if self.options.host:
            statuses = {self.options.host: run_async(topology.status_host(self.options.host))}
        else:
            statuses = run_async(topology.status_all())

        if self.json_output:
            self.output_json({"status": statuses})
            return

        for host, output in statuses.items():
            self.console.print(f"[bold cyan]{host}[/bold cyan][dim]{self._where(host)}[/dim]")
            self.console.print(output.rstrip(), markup=False, highlight=False)
            self.console.print()

    def _where(self, host: str) -> str:
        deployment = self.state_service.get_deployment(host)
        if deployment is None:
            return ""
        if deployment.is_proxied:
            return f" ({deployment.address} via {deployment.proxy.address})"
        return f" ({deployment.address})"


@click.command()
@click.option("--host", help="Show a single host only")
@click.option("--config", "-c", "config_path", help="Path to bastiondeploy.yml")
@click.option("--verbose", "-v", is_flag=True, help="Show all command output")
@click.option("--json", "json_output", is_flag=True, help="Output in JSON format")
def status(host: Optional[str], config_path: Optional[str], verbose: bool, json_output: bool):
    """
    Show deployment status

    Examples:
        bastiondeploy status
        bastiondeploy status --host private
        bastiondeploy status --json
    """
    options = StatusOptions(host=host)
    cmd = StatusCommand(options, config_path=config_path, verbose=verbose, json_output=json_output)
    cmd.run()
