"""
Bastion Deploy Constants

Centralized constants for magic values, defaults, and configuration.
"""

# Config / state file names
DEFAULT_CONFIG_FILENAME = "bastiondeploy.yml"
DEFAULT_STATE_FILE = ".bastiondeploy/state.yml"
DEFAULT_KEYS_DIR = "out/keys"
DEFAULT_ARTIFACTS_DIR = ".bastiondeploy/artifacts"
DEFAULT_LOGS_DIR = "logs"

# Default SSH Configuration
DEFAULT_SSH_USER = "ubuntu"

# SSH Timeout Configuration
SSH_CONNECTION_TIMEOUT = 5

# ssh is rather unfriendly to programmatic use-cases.
# Host keys are neither checked nor remembered: every host is throwaway.
SSH_BASE_OPTIONS = [
    "-o",
    "StrictHostKeyChecking=no",
    "-o",
    "UserKnownHostsFile=/dev/null",
]

# Key generation (ssh-keygen)
SSH_KEY_TYPE = "rsa"
SSH_KEY_BITS = 4096
KEYS_DIR_MODE = 0o700

# Default Deployment Configuration
DEFAULT_UNIT_NAME = "test"
DEFAULT_REMOTE_HOME = "/home/ubuntu"
DEFAULT_ENTRY_NAME = "entry.js"
DEFAULT_PROXY_ENTRY_NAME = "proxy-entry.js"
DEFAULT_RUNTIME_COMMAND = "node"
DEFAULT_RUNTIME_BINARY = "/usr/bin/node"
DEFAULT_REMOTE_RUNTIME_NAME = "node"
DEFAULT_LIVENESS_COMMAND = "node -v"
DEFAULT_RELAY_DIR = "/home/ubuntu/.ssh"

# Retry budgets (seconds)
COPY_TIMEOUT = 30.0
PROXY_COPY_TIMEOUT = 60.0
LIVENESS_TIMEOUT = 15.0
RELAY_TIMEOUT = 15.0
DELETE_TIMEOUT = 15.0

# Log Configuration
LOG_DATE_FORMAT = "%Y-%m-%d"
LOG_TIME_FORMAT = "%H-%M-%S"

# Error Messages
ERROR_CONFIG_NOT_FOUND = "Config file not found: {path}"
ERROR_HOST_NOT_FOUND = "Host '{host}' not found in topology"
ERROR_NOT_DEPLOYED = "Host '{host}' is not deployed"

# Success Messages
SUCCESS_TOPOLOGY_DEPLOYED = "Topology deployed successfully"
SUCCESS_TOPOLOGY_DESTROYED = "Topology torn down"
