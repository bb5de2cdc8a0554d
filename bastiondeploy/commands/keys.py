"""
Keys Command

Generate SSH key pairs for hosts that don't bring their own.
"""

import click
from dataclasses import dataclass
from typing import Optional

from bastiondeploy.base import TopologyCommand
from bastiondeploy.ui_components import show_results
from bastiondeploy.utils import run_async


@dataclass
class KeysOptions:
    """Options for keys command."""

    show_public: bool = False


class KeysCommand(TopologyCommand):
    """
    Ensure a key pair exists for every host.

    Existing pairs are never rotated. The printed public key paths are what
    the cloud provisioning step registers with the provider.
    """

    def __init__(
        self,
        options: KeysOptions,
        config_path: Optional[str] = None,
        verbose: bool = False,
        json_output: bool = False,
    ):
        super().__init__(config_path, verbose=verbose, json_output=json_output)
        self.options = options

    def execute(self) -> None:
        """Execute keys command."""
        topology = self.ensure_topology("keys")

        self.show_header(
            title="Key Pairs",
            project=self.project_name,
            details={"Keys dir": self.config.paths.keys_dir},
        )

        if self.logger:
            self.logger.step("Generating key pairs")

        results = run_async(topology.ensure_keys())

        if self.json_output:
            self.output_json({"keys": [r.to_dict() for r in results]})
            return

        show_results(results, console=self.console)

        if self.options.show_public:
            from bastiondeploy.core.key_pair import read_public_key

            for host, key_pair in self.state_service.get_all_key_pairs().items():
                self.console.print(f"\n[bold]{host}[/bold]")
                self.console.print(read_public_key(key_pair).strip(), markup=False)

        if self.logger:
            self.logger.success("Key pairs ready")


@click.command()
@click.option("--show-public", is_flag=True, help="Print public key contents")
@click.option("--config", "-c", "config_path", help="Path to bastiondeploy.yml")
@click.option("--verbose", "-v", is_flag=True, help="Show all command output")
@click.option("--json", "json_output", is_flag=True, help="Output in JSON format")
def keys(show_public, config_path, verbose, json_output):
    """
    Generate SSH key pairs for the topology

    Creates a passphrase-less RSA key pair for every host without an
    explicit key_path. Run this before provisioning the hosts.

    Examples:
        # Generate missing key pairs
        bastiondeploy keys

        # Show the public keys to register with the provider
        bastiondeploy keys --show-public
    """
    options = KeysOptions(show_public=show_public)
    cmd = KeysCommand(
        options, config_path=config_path, verbose=verbose, json_output=json_output
    )
    cmd.run()
