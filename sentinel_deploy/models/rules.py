"""Pydantic models for analytics rule templates and deployed rules."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from sentinel_deploy.exceptions import TemplateShapeError

DEFAULT_MATCHING_METHOD = "AllEntities"
DEFAULT_LOOKBACK_DURATION = "PT1H"
UNKNOWN_SOLUTION_NAME = "Unknown Solution"
UNKNOWN_SOLUTION_ID = "Unknown-ID"


class Severity(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"
    INFORMATIONAL = "Informational"


class _ApiModel(BaseModel):
    """Base for request bodies: camelCase on the wire, unknown keys kept verbatim."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")


class GroupingConfiguration(_ApiModel):
    matching_method: str = DEFAULT_MATCHING_METHOD
    lookback_duration: str | None = None


class IncidentConfiguration(_ApiModel):
    create_incident: bool | None = None
    grouping_configuration: GroupingConfiguration | None = None


class RuleProperties(_ApiModel):
    """Normalized properties of an alert rule, ready for submission."""

    enabled: bool = True
    alert_rule_template_name: str
    template_version: str | None = None
    entity_mappings: list[dict[str, Any]] | None = None
    required_data_connectors: dict[str, Any] | list[dict[str, Any]] | None = None
    incident_configuration: IncidentConfiguration | None = None

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class RuleTemplate(BaseModel):
    """A detection rule blueprint taken from the contentTemplates catalog."""

    name: str = Field(description="Template resource name")
    display_name: str
    severity: str = ""
    kind: str = Field(description="Rule engine type (e.g., 'Scheduled', 'NRT')")
    version: str | None = None
    package_id: str = Field(default="", description="contentId of the originating package")
    rule_resource_name: str = Field(description="Name of the rule resource inside the main template")
    properties: dict[str, Any] = Field(default_factory=dict)
    source_metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Properties of the template's metadata resource (source, author, support)",
    )

    @classmethod
    def from_catalog(cls, item: dict[str, Any]) -> "RuleTemplate":
        """Build a template from one item of the contentTemplates listing."""
        props = item.get("properties") or {}
        resources = (props.get("mainTemplate") or {}).get("resources") or []
        if not resources:
            label = props.get("displayName") or item.get("name", "<unnamed>")
            raise TemplateShapeError(f"Template '{label}' has no resources")

        rule = resources[0]
        rule_props = rule.get("properties") or {}
        metadata_props: dict[str, Any] = {}
        for resource in resources[1:]:
            if str(resource.get("type", "")).lower().endswith("/metadata"):
                metadata_props = resource.get("properties") or {}
                break

        return cls(
            name=item.get("name", ""),
            display_name=rule_props.get("displayName") or props.get("displayName", ""),
            severity=rule_props.get("severity", ""),
            kind=rule.get("kind", "Scheduled"),
            version=props.get("version") or metadata_props.get("version"),
            package_id=props.get("packageId", ""),
            rule_resource_name=rule.get("name", ""),
            properties=rule_props,
            source_metadata=metadata_props,
        )

    def is_deprecated(self, marker: str = "[Deprecated]") -> bool:
        return marker in self.display_name


class DeployedRule(BaseModel):
    """An alert rule as echoed back by the create-or-update call."""

    name: str
    id: str
    kind: str | None = None
    properties: dict[str, Any] = Field(default_factory=dict)


class MetadataSource(_ApiModel):
    kind: str = "Solution"
    name: str = UNKNOWN_SOLUTION_NAME
    source_id: str = UNKNOWN_SOLUTION_ID


class MetadataRecord(_ApiModel):
    """Links a deployed rule back to its template and source solution."""

    content_id: str
    parent_id: str
    kind: str = "AnalyticsRule"
    version: str | None = None
    source: MetadataSource
    author: dict[str, Any] | None = None
    support: dict[str, Any] | None = None

    def to_body(self) -> dict[str, Any]:
        return {"properties": self.model_dump(mode="json", by_alias=True, exclude_none=True)}
