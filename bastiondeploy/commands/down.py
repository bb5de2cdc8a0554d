"""
Down Command

Stop deployed units and clean up key pairs and local state.
"""

import click
from dataclasses import dataclass
from typing import Optional

from bastiondeploy.base import TopologyCommand
from bastiondeploy.constants import SUCCESS_TOPOLOGY_DESTROYED
from bastiondeploy.ui_components import show_results
from bastiondeploy.utils import run_async


@dataclass
class DownOptions:
    """Options for down command."""

    yes: bool = False
    keep_keys: bool = False


class DownCommand(TopologyCommand):
    """
    Tear down the topology's deployments.

    Stopping a unit is bounded in time and never fails the command, so an
    unreachable host cannot block teardown.
    """

    def __init__(
        self,
        options: DownOptions,
        config_path: Optional[str] = None,
        verbose: bool = False,
        json_output: bool = False,
    ):
        super().__init__(config_path, verbose=verbose, json_output=json_output)
        self.options = options

    def execute(self) -> None:
        """Execute down command."""
        self.load_config()

        self.show_header(
            title="Destroy Topology",
            project=self.project_name,
            details={"Keep keys": "yes" if self.options.keep_keys else "no"},
        )

        deployed = self.ensure_state_service().get_all_deployments()
        if not self.options.yes and not self.json_output:
            hosts = ", ".join(deployed) or "none"
            if not self.confirm(f"Stop deployments on: {hosts}?", default=False):
                self.print_warning("Cancelled")
                return

        topology = self.ensure_topology("down")

        if self.logger:
            self.logger.step("Stopping deployments")

        results = run_async(topology.destroy_all(keep_keys=self.options.keep_keys))

        if self.json_output:
            self.output_json({"removed": [r.to_dict() for r in results]})
            return

        if results:
            show_results(results, console=self.console)
        else:
            self.print_dim("Nothing to remove")

        if self.logger:
            self.logger.success(SUCCESS_TOPOLOGY_DESTROYED)


@click.command()
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompt")
@click.option("--keep-keys", is_flag=True, help="Keep generated key pairs")
@click.option("--config", "-c", "config_path", help="Path to bastiondeploy.yml")
@click.option("--verbose", "-v", is_flag=True, help="Show all command output")
@click.option("--json", "json_output", is_flag=True, help="Output in JSON format")
def down(yes, keep_keys, config_path, verbose, json_output):
    """
    Stop deployments and remove local state

    Warning: generated key pairs are deleted unless --keep-keys is given.

    Examples:
        # Destroy with confirmation
        bastiondeploy down

        # Skip confirmation, keep keys for the next up
        bastiondeploy down --yes --keep-keys
    """
    options = DownOptions(yes=yes, keep_keys=keep_keys)
    cmd = DownCommand(options, config_path=config_path, verbose=verbose, json_output=json_output)
    cmd.run()
