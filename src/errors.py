"""
Errors raised while provisioning or tearing down a web app environment
"""

from typing import Optional


class ProvisionerError(Exception):
    """Base class for all environment provisioning failures"""


class AuthenticationError(ProvisionerError):
    """Service principal login was rejected by the identity provider"""


class NoSubscriptionError(ProvisionerError):
    """The authenticated identity has no usable subscription"""


class ConfigError(ProvisionerError):
    """Configuration is missing, unreadable, or incomplete"""


class AccessError(ProvisionerError):
    """The identity cannot see the configured resource group"""


class InvalidTemplateError(ProvisionerError):
    """The web app template file is absent, unparseable, or misshapen"""


class NameAvailabilityError(ProvisionerError):
    """The web app name availability check failed"""


class ProvisioningError(ProvisionerError):
    """A create, update, or delete call against the web app failed"""

    def __init__(self, message: str, environment_name: Optional[str] = None):
        super().__init__(message)
        self.environment_name = environment_name

    def __str__(self) -> str:
        message = super().__str__()
        if self.environment_name:
            return f"{self.environment_name}: {message}"
        return message


class FileWriteError(ProvisionerError):
    """The variables file could not be written"""


class SchemaDeletionError(ProvisionerError):
    """The database schema cleanup command failed"""
