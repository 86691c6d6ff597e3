"""
Azure Web App Environment Manager
Provisions and tears down per-branch QA web apps named after the Jira issue key
"""

import random
from pathlib import Path
from typing import Any, Callable, Optional, Tuple

from azure.core.exceptions import ClientAuthenticationError, HttpResponseError
from azure.identity import ClientSecretCredential
from azure.mgmt.resource import ResourceManagementClient
from azure.mgmt.resource.subscriptions import SubscriptionClient
from azure.mgmt.web import WebSiteManagementClient
from azure.mgmt.web.models import ResourceNameAvailabilityRequest

import naming
from azure_config import AzureConfig, PipelineContext
from errors import (
    AccessError,
    AuthenticationError,
    ConfigError,
    NameAvailabilityError,
    NoSubscriptionError,
    ProvisioningError,
)
from git_manager import GitManager
from jira_issue import get_jira_issue_key
from logger import get_logger, register_secret
from schema_manager import SchemaManager
from variables_file import build_variables, write_variables_file
from webapp_template import load_template

MANAGEMENT_SCOPE = "https://management.azure.com/.default"
CLONE_DIR = "Temp"


class EnvironmentManager:
    """Runs the provisioning pipeline for one web app environment"""

    def __init__(
        self,
        config: AzureConfig,
        context: PipelineContext,
        schema_manager: SchemaManager,
        git_manager: Optional[GitManager] = None,
        rng: Optional[random.Random] = None,
        credential_factory: Callable[..., Any] = ClientSecretCredential,
        subscription_client_factory: Callable[..., Any] = SubscriptionClient,
        resource_client_factory: Callable[..., Any] = ResourceManagementClient,
        web_client_factory: Callable[..., Any] = WebSiteManagementClient,
    ):
        self.logger = get_logger()
        self.config = config
        self.context = context
        self.schema_manager = schema_manager
        self.git_manager = git_manager or GitManager()
        self.rng = rng or random.Random()
        self.credential_factory = credential_factory
        self.subscription_client_factory = subscription_client_factory
        self.resource_client_factory = resource_client_factory
        self.web_client_factory = web_client_factory
        register_secret(config.secret)
        register_secret(config.scm_password)

    # Pipeline stages

    def authenticate(self):
        """Log in with the service principal and return the credential"""
        self.logger.info("Authenticating service principal...")
        credential = self.credential_factory(
            tenant_id=self.config.tenant_id,
            client_id=self.config.client_id,
            client_secret=self.config.secret,
        )
        try:
            credential.get_token(MANAGEMENT_SCOPE)
        except ClientAuthenticationError as e:
            raise AuthenticationError(e.message or str(e)) from e
        self.logger.success("Authenticated with Azure")
        return credential

    def get_subscription_id(self, credential) -> str:
        """First subscription visible to the credential"""
        subscription_client = self.subscription_client_factory(credential)
        subscription = next(iter(subscription_client.subscriptions.list()), None)
        subscription_id = getattr(subscription, 'subscription_id', None)

        if not subscription_id or not subscription_id.strip():
            raise NoSubscriptionError("No subscriptions available for this user.")

        self.logger.info(f"Subscription ID: {subscription_id}")
        return subscription_id

    def validate_group_access(self, credential, subscription_id: str) -> Tuple[Any, str]:
        """Ensure the configured resource group is visible; pass inputs through"""
        resource_group = self.config.resource_group
        if not resource_group or not resource_group.strip():
            raise ConfigError("No resource_group has been specified in your config file.")

        resource_client = self.resource_client_factory(credential, subscription_id)
        groups = list(resource_client.resource_groups.list())

        if not groups:
            raise AccessError("No groups available for this user.")

        if not any(group.name == resource_group for group in groups):
            raise AccessError("This user doesn't have access to the specified group.")

        self.logger.success(f"Access to resource group {resource_group} confirmed")
        return credential, subscription_id

    def get_environment_name(self) -> str:
        return naming.environment_name(self.config.env_prefix, get_jira_issue_key(self.context))

    def environment_exists(self, credential, subscription_id: str, environment_name: str) -> bool:
        """True when the web app name is already taken"""
        web_client = self.web_client_factory(credential, subscription_id)
        request = ResourceNameAvailabilityRequest(name=environment_name, type=self.config.resource_type)
        try:
            result = web_client.check_name_availability(request)
        except HttpResponseError as e:
            raise NameAvailabilityError(str(e)) from e
        exists = not result.name_available
        self.logger.info(f"Environment {environment_name} {'exists' if exists else 'does not exist'}")
        return exists

    def create_environment(self, credential, subscription_id: str, environment_name: str) -> str:
        return self._create_or_update_environment(credential, subscription_id, environment_name, False)

    def update_environment(self, credential, subscription_id: str, environment_name: str) -> str:
        return self._create_or_update_environment(credential, subscription_id, environment_name, True)

    def build_site_envelope(self, environment_name: str):
        """Template merged with config and filled for one environment"""
        webapp = self.config.webapp
        template = load_template(self.context).merged(
            webapp.location,
            webapp.server_farm_id,
            webapp.site_config,
        )
        return template.fill_slots(
            primary_connection_string_0=self.schema_manager.primary_connection_string(self.context, 0),
            primary_connection_string_1=self.schema_manager.primary_connection_string(self.context, 1),
            site_host=naming.webapp_host(environment_name),
            backup_schema=self.schema_manager.backup_schema(self.context),
            redis_connection_string=self._redis_connection_string(environment_name),
        )

    def _redis_connection_string(self, environment_name: str) -> str:
        default_name = naming.environment_name(self.config.env_prefix, "")
        database_index = naming.redis_database_index(environment_name, default_name, self.rng)
        self.logger.debug(f"Using Redis database {database_index} for {environment_name}")
        return naming.redis_connection_string(self.config.redis_connection_template, database_index)

    def _create_or_update_environment(
        self,
        credential,
        subscription_id: str,
        environment_name: str,
        update_mode: bool
    ) -> str:
        action = "Updating" if update_mode else "Creating"
        self.logger.info(f"{action} environment {environment_name}...")

        envelope = self.build_site_envelope(environment_name)
        web_client = self.web_client_factory(credential, subscription_id)
        try:
            poller = web_client.web_apps.begin_create_or_update(
                self.config.resource_group,
                environment_name,
                envelope.to_payload()
            )
            poller.result()
        except HttpResponseError as e:
            raise ProvisioningError(str(e), environment_name) from e

        self.logger.success(f"Environment {environment_name} {'updated' if update_mode else 'created'}")
        if update_mode:
            return environment_name

        # clone with user and password so the credential manager stores them for later pushes
        repository_url = naming.scm_url(environment_name, self.config.scm_user, self.config.scm_password)
        self.git_manager.clone_repository(repository_url, f"{CLONE_DIR}/{environment_name}", self.context.cwd)
        return environment_name

    def delete_environment(self, credential, subscription_id: str, environment_name: str) -> None:
        """Delete the web app, then its database schema"""
        self.logger.info(f"Deleting environment {environment_name}...")
        web_client = self.web_client_factory(credential, subscription_id)
        try:
            web_client.web_apps.delete(
                self.config.resource_group,
                environment_name,
                delete_metrics=True
            )
        except HttpResponseError as e:
            raise ProvisioningError(str(e), environment_name) from e

        self.logger.success(f"Environment {environment_name} deleted")
        self.schema_manager.delete_all_schema_and_data(self.context)

    # URLs and variables

    def get_deployment_url(self) -> str:
        return naming.deployment_url(self.get_environment_name(), self.config.scm_user)

    def get_webapp_url(self) -> str:
        return naming.webapp_url(self.get_environment_name())

    def create_variables_file(self):
        """Write Temp/azureWebappVariables.txt for the build plan"""
        variables = build_variables(
            deployment_url=self.get_deployment_url(),
            webapp_url=self.get_webapp_url(),
            jira_issue_key=get_jira_issue_key(self.context),
            primary_connection_strings=(
                self.schema_manager.primary_connection_string(self.context, 0),
                self.schema_manager.primary_connection_string(self.context, 1),
            ),
            backup_connection_strings=(
                self.schema_manager.backup_connection_string(self.context, 0),
                self.schema_manager.backup_connection_string(self.context, 1),
            ),
        )
        # always under the process working directory, independent of --cwd
        output_path = write_variables_file(variables, Path.cwd())
        self.logger.success(f"Variables written to: {output_path}")
        return output_path

    # Orchestration

    def connect(self) -> Tuple[Any, str]:
        """Authenticate, resolve the subscription and check group access"""
        self.logger.banner("Connecting to Azure")
        credential = self.authenticate()
        subscription_id = self.get_subscription_id(credential)
        return self.validate_group_access(credential, subscription_id)

    def provision(self) -> str:
        """Create the environment, or update it when it already exists"""
        credential, subscription_id = self.connect()
        environment_name = self.get_environment_name()

        self.logger.banner(f"Provisioning {environment_name}")
        if self.environment_exists(credential, subscription_id, environment_name):
            self.update_environment(credential, subscription_id, environment_name)
        else:
            self.create_environment(credential, subscription_id, environment_name)

        self.create_variables_file()
        return environment_name

    def teardown(self) -> str:
        credential, subscription_id = self.connect()
        environment_name = self.get_environment_name()

        self.logger.banner(f"Tearing down {environment_name}")
        self.delete_environment(credential, subscription_id, environment_name)
        return environment_name
