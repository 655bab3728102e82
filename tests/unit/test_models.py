"""
Unit tests for catalog, rule and report models.
"""

import pytest

from helpers import make_solution, make_template
from sentinel_deploy.exceptions import TemplateShapeError
from sentinel_deploy.models.catalog import CatalogEntry, InstallRequest, strip_post_deployment
from sentinel_deploy.models.results import (
    ActivationReport,
    InstallReport,
    InstallResult,
    InstallStatus,
    RuleOutcome,
    RuleResult,
)
from sentinel_deploy.models.rules import MetadataRecord, MetadataSource, RuleTemplate


class TestCatalogEntry:

    def test_from_catalog(self):
        entry = CatalogEntry.from_catalog(make_solution("Syslog", version="3.0.6"))
        assert entry.display_name == "Syslog"
        assert entry.name == "azuresentinel.azure-sentinel-solution-syslog"
        assert entry.content_id == "azuresentinel.azure-sentinel-solution-syslog"
        assert entry.version == "3.0.6"
        assert entry.kind == "Solution"

    def test_missing_properties(self):
        entry = CatalogEntry.from_catalog({"name": "orphan"})
        assert entry.name == "orphan"
        assert entry.display_name == ""


class TestStripPostDeployment:

    def test_top_level_and_nested_removed(self):
        template = {
            "metadata": {"author": "x", "postDeployment": ["open the connector page"]},
            "resources": [{
                "properties": {
                    "mainTemplate": {
                        "metadata": {"postDeployment": [{"wizard": "connect"}], "version": "1"},
                    },
                },
            }],
        }
        cleaned = strip_post_deployment(template)
        assert cleaned["metadata"] == {"author": "x"}
        assert cleaned["resources"][0]["properties"]["mainTemplate"]["metadata"] == {"version": "1"}

    def test_original_untouched(self):
        template = {"metadata": {"postDeployment": ["x"]}}
        strip_post_deployment(template)
        assert template == {"metadata": {"postDeployment": ["x"]}}

    def test_post_deployment_outside_metadata_kept(self):
        template = {"variables": {"postDeployment": "literal"}}
        assert strip_post_deployment(template) == template


class TestInstallRequest:

    def _entry(self, name="azuresentinel.azure-sentinel-solution-syslog"):
        return CatalogEntry(name=name, display_name="Syslog")

    def test_body_shape(self):
        request = InstallRequest.for_package(
            self._entry(), {"resources": [], "metadata": {"postDeployment": []}}, "law-sec", "westeurope",
        )
        body = request.to_body()
        props = body["properties"]
        assert props["mode"] == "Incremental"
        assert props["parameters"] == {
            "workspace": {"value": "law-sec"},
            "workspace-location": {"value": "westeurope"},
        }
        assert props["template"] == {"resources": [], "metadata": {}}

    def test_deployment_name(self):
        request = InstallRequest.for_package(self._entry(), {}, "ws", "eastus")
        assert request.deployment_name == "allinone-azuresentinel.azure-sentinel-solution-syslog"

    def test_deployment_name_truncated_to_64(self):
        request = InstallRequest.for_package(self._entry("x" * 100), {}, "ws", "eastus")
        assert len(request.deployment_name) == 64
        assert request.deployment_name.startswith("allinone-")


class TestRuleTemplate:

    def test_from_catalog(self):
        template = RuleTemplate.from_catalog(make_template(
            "Rare process", severity="Medium", kind="NRT", package_id="pkg-1", version="1.0.4",
        ))
        assert template.name == "template-rare-process"
        assert template.display_name == "Rare process"
        assert template.severity == "Medium"
        assert template.kind == "NRT"
        assert template.version == "1.0.4"
        assert template.package_id == "pkg-1"
        assert template.rule_resource_name == "rule-rare-process"
        assert template.properties["query"]
        assert template.source_metadata["author"] == {"name": "Microsoft"}

    def test_version_falls_back_to_metadata_resource(self):
        item = make_template("Rare process", version="1.2.3")
        del item["properties"]["version"]
        assert RuleTemplate.from_catalog(item).version == "1.2.3"

    def test_no_resources_raises(self):
        item = {"name": "t", "properties": {"displayName": "Empty", "mainTemplate": {"resources": []}}}
        with pytest.raises(TemplateShapeError, match="Empty"):
            RuleTemplate.from_catalog(item)

    def test_missing_main_template_raises(self):
        with pytest.raises(TemplateShapeError):
            RuleTemplate.from_catalog({"name": "t", "properties": {}})

    @pytest.mark.parametrize("name,deprecated", [
        ("[Deprecated] Old rule", True),
        ("Old rule [Deprecated]", True),
        ("Deprecated API usage", False),
        ("Brute force attack", False),
    ])
    def test_deprecation_marker(self, name, deprecated):
        assert RuleTemplate.from_catalog(make_template(name)).is_deprecated() is deprecated


class TestMetadataRecord:

    def test_body_is_camel_case(self):
        record = MetadataRecord(
            content_id="rule-1",
            parent_id="/subscriptions/s/alertRules/abc",
            version="1.0.0",
            source=MetadataSource(name="Syslog", source_id="pkg-syslog"),
            author={"name": "Microsoft"},
        )
        props = record.to_body()["properties"]
        assert props["contentId"] == "rule-1"
        assert props["parentId"] == "/subscriptions/s/alertRules/abc"
        assert props["kind"] == "AnalyticsRule"
        assert props["source"] == {"kind": "Solution", "name": "Syslog", "sourceId": "pkg-syslog"}
        assert "support" not in props

    def test_default_source_is_placeholder(self):
        source = MetadataSource()
        assert source.name == "Unknown Solution"
        assert source.source_id == "Unknown-ID"


class TestReports:

    def test_install_report_outcomes(self):
        report = InstallReport(
            requested=["A", "B", "C"],
            missing=["C"],
            results=[
                InstallResult(solution="A", status=InstallStatus.SUCCEEDED),
                InstallResult(solution="B", status=InstallStatus.FAILED),
            ],
        )
        assert report.succeeded == ["A"]
        assert report.failed == ["B"]
        assert not report.ok
        assert not report.no_matches

    def test_no_matches(self):
        report = InstallReport(requested=["Nope"], missing=["Nope"])
        assert report.no_matches
        assert report.ok

    def test_nothing_requested_is_not_no_matches(self):
        assert not InstallReport().no_matches

    def test_activation_counts(self):
        report = ActivationReport(results=[
            RuleResult(template="a", display_name="a", outcome=RuleOutcome.DEPLOYED),
            RuleResult(template="b", display_name="b", outcome=RuleOutcome.SKIPPED_DEPRECATED),
            RuleResult(template="c", display_name="c", outcome=RuleOutcome.SKIPPED_MISSING_DEPENDENCY),
            RuleResult(template="d", display_name="d", outcome=RuleOutcome.FAILED),
        ])
        assert report.deployed == 1
        assert report.skipped == 2
        assert report.failed == 1
        dumped = report.model_dump(mode="json")
        assert dumped["deployed"] == 1
        assert dumped["results"][1]["outcome"] == "skipped-deprecated"
