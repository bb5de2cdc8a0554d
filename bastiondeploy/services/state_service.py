"""
State Management Service

Typed access to persisted deployment and key pair states.
"""

from pathlib import Path
from typing import Dict, Optional

from bastiondeploy.state_manager import StateManager
from bastiondeploy.models.deployment import DeploymentState, KeyPairState
from bastiondeploy.exceptions import HostNotDeployedError


class StateService:
    """
    Centralized state management service with type-safe models.

    Every mutation is written through to disk immediately, so a failure in
    one deployment never loses the state of another.
    """

    DEPLOYMENTS = "deployments"
    KEYS = "keys"

    def __init__(self, state_file: Path):
        """
        Initialize state service.

        Args:
            state_file: Path to the YAML state file
        """
        self.state_manager = StateManager(state_file)

    def _section(self, name: str) -> Dict[str, dict]:
        return self.state_manager.load_state().get(name) or {}

    def _put(self, section: str, host: str, value: Optional[dict]) -> None:
        state = self.state_manager.load_state()
        entries = state.setdefault(section, {}) or {}
        if value is None:
            entries.pop(host, None)
        else:
            entries[host] = value
        state[section] = entries
        self.state_manager.save_state(state)

    # Deployments

    def get_deployment(self, host: str) -> Optional[DeploymentState]:
        data = self._section(self.DEPLOYMENTS).get(host)
        return DeploymentState.from_dict(data) if data else None

    def require_deployment(self, host: str) -> DeploymentState:
        """
        Raises:
            HostNotDeployedError: If no deployment is recorded for the host
        """
        deployment = self.get_deployment(host)
        if deployment is None:
            raise HostNotDeployedError(host)
        return deployment

    def get_all_deployments(self) -> Dict[str, DeploymentState]:
        return {
            host: DeploymentState.from_dict(data)
            for host, data in self._section(self.DEPLOYMENTS).items()
        }

    def set_deployment(self, host: str, deployment: DeploymentState) -> None:
        self._put(self.DEPLOYMENTS, host, deployment.to_dict())

    def remove_deployment(self, host: str) -> None:
        self._put(self.DEPLOYMENTS, host, None)

    # Key pairs

    def get_key_pair(self, host: str) -> Optional[KeyPairState]:
        data = self._section(self.KEYS).get(host)
        return KeyPairState.from_dict(data) if data else None

    def get_all_key_pairs(self) -> Dict[str, KeyPairState]:
        return {
            host: KeyPairState.from_dict(data)
            for host, data in self._section(self.KEYS).items()
        }

    def set_key_pair(self, host: str, key_pair: KeyPairState) -> None:
        self._put(self.KEYS, host, key_pair.to_dict())

    def remove_key_pair(self, host: str) -> None:
        self._put(self.KEYS, host, None)
