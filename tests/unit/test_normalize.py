"""
Unit tests for rule template shape normalization.
"""

import re
import pytest

from helpers import make_template
from sentinel_deploy.models.rules import RuleTemplate
from sentinel_deploy.services.normalize import (
    build_rule_properties,
    normalize_entity_mappings,
    normalize_grouping_configuration,
    normalize_lookback_duration,
    normalize_required_data_connectors,
)

ISO_DURATION = re.compile(r"^PT?\d+[HDM]$")


class TestLookbackDuration:
    """Shorthand durations become ISO-8601 style; ISO values pass through."""

    @pytest.mark.parametrize("value,expected", [
        ("1h", "PT1H"),
        ("5h", "PT5H"),
        ("2d", "P2D"),
        ("14d", "P14D"),
        ("30m", "PT30M"),
        ("120m", "PT120M"),
    ])
    def test_shorthand_converted(self, value, expected):
        assert normalize_lookback_duration(value) == expected

    def test_every_shorthand_maps_to_iso_with_matching_unit(self):
        units = {"h": ("PT", "H"), "d": ("P", "D"), "m": ("PT", "M")}
        for n in (0, 1, 7, 24, 365):
            for unit, (prefix, suffix) in units.items():
                out = normalize_lookback_duration(f"{n}{unit}")
                assert ISO_DURATION.match(out), out
                assert out == f"{prefix}{n}{suffix}"

    @pytest.mark.parametrize("value", ["PT1H", "P1D", "PT5M", "PT12H", "P14D"])
    def test_iso_values_unchanged(self, value):
        assert normalize_lookback_duration(value) == value

    def test_unrecognized_value_unchanged(self):
        assert normalize_lookback_duration("1w") == "1w"


class TestEntityMappings:

    def test_single_mapping_wrapped(self):
        mapping = {"entityType": "IP", "fieldMappings": [{"identifier": "Address", "columnName": "IPAddress"}]}
        assert normalize_entity_mappings(mapping) == [mapping]

    def test_list_unchanged(self):
        mappings = [{"entityType": "IP"}, {"entityType": "Host"}]
        assert normalize_entity_mappings(mappings) == mappings

    def test_none_stays_none(self):
        assert normalize_entity_mappings(None) is None

    def test_idempotent(self):
        once = normalize_entity_mappings({"entityType": "Account"})
        assert normalize_entity_mappings(once) == once


class TestRequiredDataConnectors:

    def test_single_element_collapsed(self):
        connector = {"connectorId": "Syslog", "dataTypes": ["Syslog"]}
        assert normalize_required_data_connectors([connector]) == connector

    def test_multiple_elements_kept_as_list(self):
        connectors = [
            {"connectorId": "Syslog", "dataTypes": ["Syslog"]},
            {"connectorId": "SyslogAma", "dataTypes": ["Syslog"]},
        ]
        assert normalize_required_data_connectors(connectors) == connectors

    def test_bare_object_unchanged(self):
        connector = {"connectorId": "AzureActivity", "dataTypes": ["AzureActivity"]}
        assert normalize_required_data_connectors(connector) == connector

    def test_empty_list_unchanged(self):
        assert normalize_required_data_connectors([]) == []


class TestGroupingConfiguration:

    def test_absent_grouping_gets_defaults(self):
        out = normalize_grouping_configuration({"createIncident": True})
        assert out["groupingConfiguration"] == {
            "matchingMethod": "AllEntities",
            "lookbackDuration": "PT1H",
        }
        assert out["createIncident"] is True

    def test_missing_matching_method_defaulted(self):
        out = normalize_grouping_configuration({
            "groupingConfiguration": {"enabled": True, "lookbackDuration": "PT5H"},
        })
        grouping = out["groupingConfiguration"]
        assert grouping["matchingMethod"] == "AllEntities"
        assert grouping["lookbackDuration"] == "PT5H"
        assert grouping["enabled"] is True

    def test_shorthand_lookback_converted(self):
        out = normalize_grouping_configuration({
            "groupingConfiguration": {"matchingMethod": "Selected", "lookbackDuration": "2d"},
        })
        assert out["groupingConfiguration"] == {"matchingMethod": "Selected", "lookbackDuration": "P2D"}

    def test_input_not_mutated(self):
        incident = {"groupingConfiguration": {"lookbackDuration": "5h"}}
        normalize_grouping_configuration(incident)
        assert incident == {"groupingConfiguration": {"lookbackDuration": "5h"}}

    def test_idempotent(self):
        once = normalize_grouping_configuration({"groupingConfiguration": {"lookbackDuration": "30m"}})
        assert normalize_grouping_configuration(once) == once


class TestBuildRuleProperties:
    """The full rule body built from a template."""

    def _props(self, **rule_properties):
        return build_rule_properties(RuleTemplate.from_catalog(
            make_template("Failed logon burst", properties=rule_properties, version="2.1.0")
        ))

    def test_enabled_forced_true(self):
        wire = self._props(enabled=False).to_wire()
        assert wire["enabled"] is True

    def test_linking_fields_attached(self):
        wire = self._props().to_wire()
        assert wire["alertRuleTemplateName"] == "rule-failed-logon-burst"
        assert wire["templateVersion"] == "2.1.0"

    def test_template_fields_preserved(self):
        wire = self._props().to_wire()
        assert wire["query"].startswith("Syslog")
        assert wire["queryFrequency"] == "PT1H"
        assert wire["triggerThreshold"] == 0
        assert wire["displayName"] == "Failed logon burst"

    def test_all_shapes_normalized_together(self):
        wire = self._props(
            entityMappings={"entityType": "IP", "fieldMappings": []},
            requiredDataConnectors=[{"connectorId": "Syslog", "dataTypes": ["Syslog"]}],
            incidentConfiguration={"createIncident": True},
        ).to_wire()
        assert wire["entityMappings"] == [{"entityType": "IP", "fieldMappings": []}]
        assert wire["requiredDataConnectors"] == {"connectorId": "Syslog", "dataTypes": ["Syslog"]}
        assert wire["incidentConfiguration"] == {
            "createIncident": True,
            "groupingConfiguration": {"matchingMethod": "AllEntities", "lookbackDuration": "PT1H"},
        }

    def test_grouping_extra_keys_preserved(self):
        wire = self._props(incidentConfiguration={
            "createIncident": True,
            "groupingConfiguration": {
                "enabled": False,
                "reopenClosedIncident": False,
                "lookbackDuration": "5h",
                "groupByEntities": [],
            },
        }).to_wire()
        grouping = wire["incidentConfiguration"]["groupingConfiguration"]
        assert grouping["lookbackDuration"] == "PT5H"
        assert grouping["matchingMethod"] == "AllEntities"
        assert grouping["reopenClosedIncident"] is False
        assert grouping["groupByEntities"] == []

    def test_absent_fields_stay_absent(self):
        wire = self._props().to_wire()
        assert "entityMappings" not in wire
        assert "requiredDataConnectors" not in wire
        assert "incidentConfiguration" not in wire
