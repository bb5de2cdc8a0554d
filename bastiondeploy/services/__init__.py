"""
Bastion Deploy Services Layer

Remote execution, retries, credential relay and state persistence.
"""

from .credential_relay import CredentialRelay
from .retry import retry_for
from .ssh_service import SSHService, quote_args
from .state_service import StateService

__all__ = [
    "CredentialRelay",
    "retry_for",
    "SSHService",
    "quote_args",
    "StateService",
]
