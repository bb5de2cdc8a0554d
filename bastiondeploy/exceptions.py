"""
Bastion Deploy Exception Hierarchy

Clean exception hierarchy for consistent error handling across the CLI.
"""

from typing import Optional

from bastiondeploy.constants import ERROR_HOST_NOT_FOUND, ERROR_NOT_DEPLOYED


class BastionDeployError(Exception):
    """Base exception for all Bastion Deploy errors."""

    def __init__(self, message: str, context: Optional[str] = None):
        self.message = message
        self.context = context
        super().__init__(self.format_message())

    def format_message(self) -> str:
        """Format error message with optional context."""
        if self.context:
            return f"{self.message}\nContext: {self.context}"
        return self.message


class ConfigurationError(BastionDeployError):
    """Raised when configuration is invalid or missing."""

    pass


class StateError(BastionDeployError):
    """Raised when state management operations fail."""

    pass


class KeyPairError(BastionDeployError):
    """Raised when key pair generation or registration fails."""

    pass


class ExecutionError(BastionDeployError):
    """
    Raised when a spawned process (ssh, scp, ssh-keygen) fails.

    Covers non-zero exit codes, signal termination and connection-level
    failures, which ssh reports as exit code 255.
    """

    def __init__(
        self,
        command: str,
        returncode: Optional[int] = None,
        signal: Optional[int] = None,
        stdout: str = "",
        stderr: str = "",
    ):
        self.command = command
        self.returncode = returncode
        self.signal = signal
        self.stdout = stdout
        self.stderr = stderr
        message = (
            f"non-zero exit code or signal: {returncode} [signal: {signal}]"
        )
        super().__init__(message, context=command)


class HostNotFoundError(ConfigurationError):
    """Raised when a host is not part of the topology."""

    def __init__(self, host_name: str, available_hosts: list[str]):
        self.host_name = host_name
        self.available_hosts = available_hosts
        message = ERROR_HOST_NOT_FOUND.format(host=host_name)
        context = f"Available hosts: {', '.join(available_hosts) or 'none'}"
        super().__init__(message, context)


class HostNotDeployedError(StateError):
    """Raised when no deployment is recorded for a host."""

    def __init__(self, host_name: str):
        self.host_name = host_name
        message = ERROR_NOT_DEPLOYED.format(host=host_name)
        context = "Run: bastiondeploy up"
        super().__init__(message, context)
