"""
Topology Command Base Class

Base class for commands that operate on a topology config.
Provides automatic config, state and orchestration initialization.
"""

from pathlib import Path
from typing import Optional

from .base_command import BaseCommand
from bastiondeploy.core.config_loader import ConfigLoader, TopologyConfig
from bastiondeploy.core.topology import Topology
from bastiondeploy.services import StateService
from bastiondeploy.utils import find_config


class TopologyCommand(BaseCommand):
    """
    Base class for topology commands.

    Provides:
    - Config discovery and validation
    - Pre-configured state access
    - A Topology wired to the command logger
    """

    def __init__(
        self,
        config_path: Optional[str] = None,
        verbose: bool = False,
        json_output: bool = False,
    ):
        super().__init__(verbose=verbose, json_output=json_output)
        self.config_path: Path = find_config(config_path)
        self.config: Optional[TopologyConfig] = None
        self.state_service: Optional[StateService] = None
        self.topology: Optional[Topology] = None

    @property
    def project_name(self) -> str:
        return self.config.project_name if self.config else "unknown"

    def load_config(self) -> TopologyConfig:
        """
        Load and validate the topology config.

        Raises:
            ConfigurationError: If the config is missing or invalid
        """
        if self.config is None:
            self.config = ConfigLoader(self.config_path).load()
        return self.config

    def ensure_state_service(self) -> StateService:
        if self.state_service is None:
            self.state_service = StateService(self.load_config().paths.state_file)
        return self.state_service

    def ensure_topology(self, command_name: str) -> Topology:
        """
        Build the Topology, initializing the command logger first.

        Args:
            command_name: Used for the log file name
        """
        if self.topology is None:
            config = self.load_config()
            logger = self.init_logger(config.project_name, command_name, config.paths.logs_dir)
            self.topology = Topology(config, self.ensure_state_service(), logger=logger)
        return self.topology
