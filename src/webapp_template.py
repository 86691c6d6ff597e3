"""
filename: webapp_template.py

Typed model of the web app definition stored at
``{templates_dir}/azure-specs/webapp.json``.

The template is a loose ARM-style site document. Only the parts this tool
writes to are modelled; every other key is kept as-is and sent back to
Azure untouched. Five slots are overwritten per environment:

    siteConfig.connectionStrings[0]  primary database connection string 0
    siteConfig.connectionStrings[1]  primary database connection string 1
    siteConfig.appSettings[0]        public host name of the site
    siteConfig.appSettings[1]        backup database schema
    siteConfig.appSettings[2]        Redis connection string
"""

import copy
import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from azure_config import PipelineContext
from errors import InvalidTemplateError

TEMPLATE_SUBDIR = "azure-specs"
TEMPLATE_FILENAME = "webapp.json"


class ConnectionStringEntry(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    connection_string: str = Field("", alias="connectionString")


class AppSettingEntry(BaseModel):
    model_config = ConfigDict(extra="allow")

    value: str = ""


class SiteConfig(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    connection_strings: List[ConnectionStringEntry] = Field(..., alias="connectionStrings", min_length=2)
    app_settings: List[AppSettingEntry] = Field(..., alias="appSettings", min_length=3)


class EnvironmentTemplate(BaseModel):
    """Web app definition sent as the create-or-update payload."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    location: Optional[str] = None
    server_farm_id: Optional[str] = Field(None, alias="serverFarmId")
    site_config: SiteConfig = Field(..., alias="siteConfig")

    @property
    def primary_connection_string_0(self) -> str:
        return self.site_config.connection_strings[0].connection_string

    @property
    def primary_connection_string_1(self) -> str:
        return self.site_config.connection_strings[1].connection_string

    @property
    def site_host_setting(self) -> str:
        return self.site_config.app_settings[0].value

    @property
    def backup_schema_setting(self) -> str:
        return self.site_config.app_settings[1].value

    @property
    def redis_connection_setting(self) -> str:
        return self.site_config.app_settings[2].value

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EnvironmentTemplate":
        """Validate a raw site document, raising InvalidTemplateError on a bad shape."""
        if not isinstance(data, dict):
            raise InvalidTemplateError("Invalid azure environment: template must be a JSON object")
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise InvalidTemplateError(f"Invalid azure environment: {e}") from e

    def to_payload(self) -> Dict[str, Any]:
        payload = self.model_dump(by_alias=True)
        # location and serverFarmId stay out of the payload until merged with config
        for key in ('location', 'serverFarmId'):
            if payload.get(key) is None:
                payload.pop(key, None)
        return payload

    def merged(
        self,
        location: str,
        server_farm_id: str,
        site_config_overrides: Dict[str, Any],
    ) -> "EnvironmentTemplate":
        """
        Overlay config values onto a copy of the template.

        ``siteConfig`` is merged shallowly and config keys win, so arrays
        supplied by the config replace the template's arrays wholesale.
        The result is re-validated so the five slots still exist.
        """
        payload = self.to_payload()
        payload['location'] = location
        payload['serverFarmId'] = server_farm_id
        payload['siteConfig'] = {**payload['siteConfig'], **copy.deepcopy(site_config_overrides)}
        return EnvironmentTemplate.from_dict(payload)

    def fill_slots(
        self,
        primary_connection_string_0: str,
        primary_connection_string_1: str,
        site_host: str,
        backup_schema: str,
        redis_connection_string: str,
    ) -> "EnvironmentTemplate":
        """Return a copy with the five per-environment slots written."""
        filled = self.model_copy(deep=True)
        filled.site_config.connection_strings[0].connection_string = primary_connection_string_0
        filled.site_config.connection_strings[1].connection_string = primary_connection_string_1
        filled.site_config.app_settings[0].value = site_host
        filled.site_config.app_settings[1].value = backup_schema
        filled.site_config.app_settings[2].value = redis_connection_string
        return filled


def template_path(context: PipelineContext) -> Path:
    return Path(context.cwd) / context.templates_dir / TEMPLATE_SUBDIR / TEMPLATE_FILENAME


def load_template(context: PipelineContext) -> EnvironmentTemplate:
    """Read and validate the project's web app template"""
    path = template_path(context)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise InvalidTemplateError(f"Invalid azure environment template {path}: {e}") from e
    return EnvironmentTemplate.from_dict(data)
