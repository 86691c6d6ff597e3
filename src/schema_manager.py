"""
Database schema manager used by web app environments.

Every environment gets its own schema named after the environment. The
manager hands out the connection strings the web app is configured with and
drops the schema when the environment is torn down.
"""

import subprocess
from typing import List, Protocol

from azure_config import AzureConfig, DatabaseConfig, PipelineContext
from errors import ConfigError, SchemaDeletionError
from jira_issue import get_jira_issue_key
from logger import get_logger
from naming import environment_name


class SchemaManager(Protocol):
    """Database operations the provisioner depends on"""

    def primary_connection_string(self, context: PipelineContext, index: int) -> str: ...

    def backup_connection_string(self, context: PipelineContext, index: int) -> str: ...

    def backup_schema(self, context: PipelineContext) -> str: ...

    def delete_all_schema_and_data(self, context: PipelineContext) -> None: ...


class ConfiguredSchemaManager:
    """Schema manager driven by the ``database`` section of the config file.

    Connection strings and the delete command are templates that may use
    ``{schema}`` (environment name with dashes replaced by underscores),
    ``{environment}`` and ``{index}``. Any other braces, such as
    ``Driver={ODBC Driver 17 for SQL Server}``, are left untouched.
    """

    def __init__(self, database_config: DatabaseConfig, azure_config: AzureConfig):
        self.logger = get_logger()
        self.database_config = database_config
        self.azure_config = azure_config

    def _environment(self, context: PipelineContext) -> str:
        return environment_name(self.azure_config.env_prefix, get_jira_issue_key(context))

    def schema_name(self, context: PipelineContext) -> str:
        return self._environment(context).replace('-', '_')

    def _render(self, template: str, context: PipelineContext, index: int = 0) -> str:
        placeholders = {
            '{schema}': self.schema_name(context),
            '{environment}': self._environment(context),
            '{index}': str(index),
        }
        for placeholder, value in placeholders.items():
            template = template.replace(placeholder, value)
        return template

    def _connection_string(self, templates: List[str], kind: str, context: PipelineContext, index: int) -> str:
        if index >= len(templates):
            raise ConfigError(f"No {kind} connection string configured at index {index}")
        return self._render(templates[index], context, index)

    def primary_connection_string(self, context: PipelineContext, index: int) -> str:
        return self._connection_string(
            self.database_config.primary_connection_strings, "primary", context, index
        )

    def backup_connection_string(self, context: PipelineContext, index: int) -> str:
        return self._connection_string(
            self.database_config.backup_connection_strings, "backup", context, index
        )

    def backup_schema(self, context: PipelineContext) -> str:
        return self._render(self.database_config.backup_schema, context)

    def delete_all_schema_and_data(self, context: PipelineContext) -> None:
        """Run the configured cleanup command for the environment's schema"""
        command = self.database_config.delete_command
        schema = self.schema_name(context)
        if not command:
            self.logger.warning(f"No database.delete_command configured; schema {schema} was left in place")
            return

        argv = [self._render(part, context) for part in command]
        self.logger.info(f"Deleting database schema and data: {schema}")
        try:
            subprocess.run(
                argv,
                cwd=str(context.cwd),
                check=True,
                capture_output=True,
                text=True
            )
        except (subprocess.CalledProcessError, FileNotFoundError) as e:
            stderr = getattr(e, 'stderr', None) or str(e)
            raise SchemaDeletionError(f"Could not delete schema {schema}: {stderr.strip()}") from e
        self.logger.success(f"Deleted database schema {schema}")
