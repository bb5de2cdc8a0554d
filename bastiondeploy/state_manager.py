"""
State Manager - file-based (state.yml)

Persists resource states between runs so that the next run can decide between
create, update and delete.
"""

import os
import tempfile
from pathlib import Path
from typing import Dict, Any

import yaml

from bastiondeploy.exceptions import StateError


class StateManager:
    """Reads and writes the raw state document."""

    def __init__(self, state_file: Path):
        self.state_file = Path(state_file)

    def load_state(self) -> Dict[str, Any]:
        """Load state from disk; a missing file is an empty state."""
        if not self.state_file.exists():
            return {}

        try:
            with open(self.state_file, "r") as f:
                state = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise StateError(
                f"Failed to read {self.state_file}",
                context=str(e),
            ) from e

        if not isinstance(state, dict):
            raise StateError(f"Corrupt state file: {self.state_file}")

        return state

    def save_state(self, state: Dict[str, Any]) -> None:
        """Save state atomically (write temp file, then replace)."""
        self.state_file.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_path = tempfile.mkstemp(
            dir=self.state_file.parent, prefix=".state-", suffix=".yml"
        )
        try:
            with os.fdopen(fd, "w") as f:
                yaml.safe_dump(state, f, default_flow_style=False, sort_keys=True)
            os.replace(tmp_path, self.state_file)
        except BaseException:
            Path(tmp_path).unlink(missing_ok=True)
            raise
