"""Shape normalization for analytics rule template properties.

Content hub templates are not consistent about the JSON shape of a few
fields, while the alert rules API is strict about them. Each function here
fixes one field and is idempotent, so applying them in any order, any
number of times, yields the same result.
"""

import re
from collections.abc import Mapping, Sequence
from typing import Any

from sentinel_deploy.models.rules import (
    DEFAULT_LOOKBACK_DURATION,
    DEFAULT_MATCHING_METHOD,
    RuleProperties,
    RuleTemplate,
)

SHORTHAND_DURATION = re.compile(r"^(\d+)([hdm])$")

_DURATION_FORMATS = {
    "h": "PT{}H",
    "d": "P{}D",
    "m": "PT{}M",
}


def normalize_lookback_duration(value: str) -> str:
    """Convert '<N>h', '<N>d' or '<N>m' to ISO-8601 style; pass anything else through."""
    match = SHORTHAND_DURATION.match(str(value).strip())
    if not match:
        return value
    amount, unit = match.groups()
    return _DURATION_FORMATS[unit].format(amount)


def _is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes))


def normalize_entity_mappings(value: Any) -> list[Any] | None:
    """Wrap a lone entity mapping into a one-element list."""
    if value is None:
        return None
    if _is_sequence(value):
        return list(value)
    return [value]


def normalize_required_data_connectors(value: Any) -> Any:
    """Collapse a one-element connector list to the bare object.

    Lists with more than one connector are left alone.
    """
    if _is_sequence(value) and len(value) == 1:
        return value[0]
    return value


def normalize_grouping_configuration(incident_configuration: Mapping[str, Any]) -> dict[str, Any]:
    """Fill in or repair ``groupingConfiguration`` inside an incident configuration."""
    incident = dict(incident_configuration)
    grouping = incident.get("groupingConfiguration")
    if grouping is None:
        incident["groupingConfiguration"] = {
            "matchingMethod": DEFAULT_MATCHING_METHOD,
            "lookbackDuration": DEFAULT_LOOKBACK_DURATION,
        }
        return incident

    grouping = dict(grouping)
    if not grouping.get("matchingMethod"):
        grouping["matchingMethod"] = DEFAULT_MATCHING_METHOD
    if grouping.get("lookbackDuration"):
        grouping["lookbackDuration"] = normalize_lookback_duration(grouping["lookbackDuration"])
    incident["groupingConfiguration"] = grouping
    return incident


def build_rule_properties(template: RuleTemplate) -> RuleProperties:
    """Turn a template's rule resource properties into a submittable rule body."""
    raw = dict(template.properties)
    raw["enabled"] = True
    raw["alertRuleTemplateName"] = template.rule_resource_name
    raw["templateVersion"] = template.version

    if "entityMappings" in raw:
        raw["entityMappings"] = normalize_entity_mappings(raw["entityMappings"])
    if "requiredDataConnectors" in raw:
        raw["requiredDataConnectors"] = normalize_required_data_connectors(
            raw["requiredDataConnectors"]
        )
    if isinstance(raw.get("incidentConfiguration"), Mapping):
        raw["incidentConfiguration"] = normalize_grouping_configuration(raw["incidentConfiguration"])

    return RuleProperties.model_validate(raw)
