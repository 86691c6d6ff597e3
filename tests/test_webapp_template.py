"""Tests for the typed web app template."""

import copy

import pytest

from errors import InvalidTemplateError
from webapp_template import EnvironmentTemplate, load_template

from conftest import TEMPLATE


def test_load_template(context):
    template = load_template(context)
    assert template.site_config.connection_strings[0].model_extra["name"] == "PrimaryDb0"
    assert template.redis_connection_setting == ""


def test_missing_template_raises(context, tmp_path):
    (tmp_path / "templates" / "azure-specs" / "webapp.json").unlink()
    with pytest.raises(InvalidTemplateError):
        load_template(context)


def test_unparseable_template_raises(context, tmp_path):
    (tmp_path / "templates" / "azure-specs" / "webapp.json").write_text("{not json")
    with pytest.raises(InvalidTemplateError):
        load_template(context)


@pytest.mark.parametrize("field, keep", [("connectionStrings", 1), ("appSettings", 2)])
def test_short_arrays_are_rejected(field, keep):
    data = copy.deepcopy(TEMPLATE)
    data["siteConfig"][field] = data["siteConfig"][field][:keep]
    with pytest.raises(InvalidTemplateError):
        EnvironmentTemplate.from_dict(data)


def test_non_object_is_rejected():
    with pytest.raises(InvalidTemplateError):
        EnvironmentTemplate.from_dict(["not", "an", "object"])


def test_merge_overlays_config():
    template = EnvironmentTemplate.from_dict(TEMPLATE)
    overrides = {"alwaysOn": True, "phpVersion": "off"}
    merged = template.merged("Australia East", "/farm", overrides)
    payload = merged.to_payload()

    assert payload["location"] == "Australia East"
    assert payload["serverFarmId"] == "/farm"
    assert payload["siteConfig"]["alwaysOn"] is True
    assert payload["siteConfig"]["phpVersion"] == "off"
    assert payload["siteConfig"]["nodeVersion"] == "10.14.1"
    assert payload["siteConfig"]["connectionStrings"] == TEMPLATE["siteConfig"]["connectionStrings"]


def test_merge_does_not_share_config_values():
    overrides = {"appSettings": [{"value": "a"}, {"value": "b"}, {"value": "c"}]}
    merged = EnvironmentTemplate.from_dict(TEMPLATE).merged("loc", "/farm", overrides)
    filled = merged.fill_slots("p0", "p1", "host", "schema", "redis")
    assert filled.redis_connection_setting == "redis"
    assert overrides["appSettings"][2]["value"] == "c"


def test_fill_slots_writes_only_the_five_positions():
    template = EnvironmentTemplate.from_dict(TEMPLATE)
    filled = template.fill_slots("p0", "p1", "app-qa.azurewebsites.net", "app_qa_backup", "redis")

    assert filled.primary_connection_string_0 == "p0"
    assert filled.primary_connection_string_1 == "p1"
    assert filled.site_host_setting == "app-qa.azurewebsites.net"
    assert filled.backup_schema_setting == "app_qa_backup"
    assert filled.redis_connection_setting == "redis"

    expected = copy.deepcopy(TEMPLATE)
    expected["siteConfig"]["connectionStrings"][0]["connectionString"] = "p0"
    expected["siteConfig"]["connectionStrings"][1]["connectionString"] = "p1"
    expected["siteConfig"]["appSettings"][0]["value"] = "app-qa.azurewebsites.net"
    expected["siteConfig"]["appSettings"][1]["value"] = "app_qa_backup"
    expected["siteConfig"]["appSettings"][2]["value"] = "redis"
    assert filled.to_payload() == expected
    assert template.to_payload() == TEMPLATE


def test_null_template_fields_survive_to_payload():
    data = copy.deepcopy(TEMPLATE)
    data["clientCertMode"] = None
    data["siteConfig"]["healthCheckPath"] = None

    payload = (
        EnvironmentTemplate.from_dict(data)
        .merged("Australia East", "/farm", {"alwaysOn": True})
        .fill_slots("p0", "p1", "host", "schema", "redis")
        .to_payload()
    )

    assert "clientCertMode" in payload and payload["clientCertMode"] is None
    assert "healthCheckPath" in payload["siteConfig"] and payload["siteConfig"]["healthCheckPath"] is None
    assert payload["location"] == "Australia East"


def test_unmerged_template_has_no_location_keys():
    payload = EnvironmentTemplate.from_dict(TEMPLATE).to_payload()
    assert "location" not in payload
    assert "serverFarmId" not in payload
