"""Shared fixtures for the environment provisioner tests."""

import json
import random
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

import logger
from azure_config import AzureConfig, PipelineContext

REDIS_TEMPLATE = "qa-cache.redis.cache.windows.net:6380,password=secret,ssl=True,database=9"

TEMPLATE = {
    "kind": "app",
    "httpsOnly": True,
    "siteConfig": {
        "alwaysOn": False,
        "nodeVersion": "10.14.1",
        "connectionStrings": [
            {"name": "PrimaryDb0", "connectionString": "", "type": "SQLAzure"},
            {"name": "PrimaryDb1", "connectionString": "", "type": "SQLAzure"},
        ],
        "appSettings": [
            {"name": "SITE_ORIGIN_HOST", "value": ""},
            {"name": "DB_BACKUP_SCHEMA", "value": ""},
            {"name": "REDIS_CONNECTION_STRING", "value": ""},
        ],
    },
}


@pytest.fixture(autouse=True)
def isolated_run(tmp_path, monkeypatch):
    """Run every test from a scratch directory with no masked secrets."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(logger, "_secrets", set())


class FakeSchemaManager:
    """Records calls instead of talking to a database."""

    def __init__(self):
        self.deleted = []

    def primary_connection_string(self, context, index):
        return f"primary-{index}"

    def backup_connection_string(self, context, index):
        return f"backup-{index}"

    def backup_schema(self, context):
        return "app_proj_42_qa_backup"

    def delete_all_schema_and_data(self, context):
        self.deleted.append(context)


@pytest.fixture
def azure_config():
    return AzureConfig(
        client_id="client-id",
        secret="client-secret",
        tenant_id="tenant-id",
        resource_group="qa-webapps",
        resource_type="Microsoft.Web/sites",
        env_prefix="APP",
        scm_user="deployer",
        scm_password="scm-secret",
        webapp={
            "location": "Australia East",
            "serverFarmId": "/subscriptions/sub-1/serverfarms/qa-plan",
            "siteConfig": {
                "alwaysOn": True,
                "appSettings": [
                    {"name": "SITE_ORIGIN_HOST", "value": ""},
                    {"name": "DB_BACKUP_SCHEMA", "value": ""},
                    {"name": "REDIS_CONNECTION_STRING", "value": REDIS_TEMPLATE},
                ],
            },
        },
    )


@pytest.fixture
def write_template(tmp_path):
    def _write(data=TEMPLATE):
        path = tmp_path / "templates" / "azure-specs" / "webapp.json"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data), encoding="utf-8")
        return path
    return _write


@pytest.fixture
def context(tmp_path, write_template):
    write_template()
    return PipelineContext(cwd=tmp_path, templates_dir="templates", branch_name="feature/PROJ-42-login")


@pytest.fixture
def schema_manager():
    return FakeSchemaManager()


@pytest.fixture
def azure_clients():
    """Fake Azure SDK clients keyed by role."""
    credential = MagicMock(name="credential")
    subscription_client = MagicMock(name="subscription_client")
    subscription_client.subscriptions.list.return_value = [SimpleNamespace(subscription_id="sub-1")]
    resource_client = MagicMock(name="resource_client")
    resource_client.resource_groups.list.return_value = [
        SimpleNamespace(name="other-group"),
        SimpleNamespace(name="qa-webapps"),
    ]
    web_client = MagicMock(name="web_client")
    web_client.check_name_availability.return_value = SimpleNamespace(name_available=True)
    return SimpleNamespace(
        credential=credential,
        subscription_client=subscription_client,
        resource_client=resource_client,
        web_client=web_client,
        git_manager=MagicMock(name="git_manager"),
    )


@pytest.fixture
def make_manager(azure_config, context, schema_manager, azure_clients):
    from environment_manager import EnvironmentManager

    def _make(config=None, rng=None):
        return EnvironmentManager(
            config or azure_config,
            context,
            schema_manager,
            git_manager=azure_clients.git_manager,
            rng=rng or random.Random(7),
            credential_factory=lambda **kwargs: azure_clients.credential,
            subscription_client_factory=lambda credential: azure_clients.subscription_client,
            resource_client_factory=lambda credential, subscription_id: azure_clients.resource_client,
            web_client_factory=lambda credential, subscription_id: azure_clients.web_client,
        )
    return _make
