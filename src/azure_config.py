"""
Configuration loading for the web app environment provisioner.

The YAML file maps config codes to Azure provider settings so that one file
can serve several build plans:

    azure:
      dev:
        client_id: ...
        secret: ...
        tenant_id: ...
        resource_group: my-group
        resource_type: Microsoft.Web/sites
        env_prefix: APP
        scm_user: deployer
        scm_password: ...
        webapp:
          location: Australia East
          serverFarmId: /subscriptions/.../serverfarms/plan
          siteConfig: {...}
    database:
      primary_connection_strings: [...]
      backup_connection_strings: [...]
      backup_schema: "{schema}_backup"
      delete_command: [...]
    logging:
      level: INFO
"""

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from errors import ConfigError

DEFAULT_CONFIG_PATH = "config/azure.yaml"
CONFIG_CODE_ENV_VARS = ("AZURE_CONFIG_CODE", "bamboo_azure_config_code")
DEFAULT_TEMPLATES_DIR = "templates"


class WebappSettings(BaseModel):
    """Overrides applied on top of the web app template."""

    model_config = ConfigDict(populate_by_name=True)

    location: str = Field(..., description="Azure region of the web app")
    server_farm_id: str = Field(..., alias="serverFarmId", description="App Service plan resource id")
    site_config: Dict[str, Any] = Field(default_factory=dict, alias="siteConfig")


class AzureConfig(BaseModel):
    """Service principal and resource settings for one config code."""

    client_id: str = Field(..., description="Service principal client id")
    secret: str = Field(..., description="Service principal secret")
    tenant_id: str = Field(..., description="Azure AD tenant id")
    resource_group: Optional[str] = None
    resource_type: str = "Microsoft.Web/sites"
    env_prefix: str = Field(..., description="Prefix of every environment name")
    scm_user: str = ""
    scm_password: str = ""
    webapp: WebappSettings

    @property
    def redis_connection_template(self) -> str:
        """Redis connection string whose database index is swapped per environment."""
        try:
            return self.webapp.site_config["appSettings"][2]["value"]
        except (KeyError, IndexError, TypeError) as e:
            raise ConfigError(
                "webapp.siteConfig.appSettings[2].value must hold the Redis connection string"
            ) from e


class DatabaseConfig(BaseModel):
    """Settings for the config-driven database schema manager."""

    primary_connection_strings: List[str] = Field(default_factory=list)
    backup_connection_strings: List[str] = Field(default_factory=list)
    backup_schema: str = "{schema}_backup"
    delete_command: List[str] = Field(default_factory=list)


class ProvisionerConfig(BaseModel):
    """Everything read from the config file for a single run."""

    config_code: str
    azure: AzureConfig
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    log_level: Optional[str] = None


class PipelineContext(BaseModel):
    """Where the build is running and which branch it builds."""

    cwd: Path = Field(default_factory=Path.cwd)
    templates_dir: str = DEFAULT_TEMPLATES_DIR
    branch_name: Optional[str] = None


def resolve_config_code(code: Optional[str] = None) -> str:
    """Pick the config code from the argument or the build environment"""
    if code:
        return code
    for env_var in CONFIG_CODE_ENV_VARS:
        value = os.getenv(env_var)
        if value:
            return value
    raise ConfigError(
        f"No config code given. Pass --config-code or set one of: {', '.join(CONFIG_CODE_ENV_VARS)}"
    )


def _load_yaml(config_path: str) -> Dict[str, Any]:
    try:
        with open(config_path, 'r') as f:
            return yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Could not load config {config_path}: {e}") from e


def load_config(config_path: str = DEFAULT_CONFIG_PATH, code: Optional[str] = None) -> ProvisionerConfig:
    """
    Load the provider configuration selected by a config code.

    Raises:
        ConfigError: If the file is unreadable, the code is unknown,
            or the selected entry is incomplete.
    """
    raw = _load_yaml(config_path)
    config_code = resolve_config_code(code)

    providers = raw.get('azure') or {}
    if config_code not in providers:
        raise ConfigError(f"Config code '{config_code}' not found under 'azure' in {config_path}")

    try:
        return ProvisionerConfig(
            config_code=config_code,
            azure=providers[config_code],
            database=raw.get('database') or {},
            log_level=(raw.get('logging') or {}).get('level'),
        )
    except ValidationError as e:
        raise ConfigError(f"Invalid config for '{config_code}': {e}") from e
