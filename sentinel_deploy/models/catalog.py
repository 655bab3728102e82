"""Pydantic models for content hub packages and their deployments."""

import copy
from typing import Any

from pydantic import BaseModel, Field

DEPLOYMENT_NAME_PREFIX = "allinone-"
DEPLOYMENT_NAME_MAX = 64


class CatalogEntry(BaseModel):
    """An installable content hub package (solution)."""

    name: str = Field(description="Package resource name, used as its id in the API")
    display_name: str = Field(description="Human-readable solution name (e.g., 'Syslog')")
    content_id: str = Field(default="", description="Content id referenced by rule templates")
    version: str | None = None
    kind: str | None = Field(default=None, description="Package kind (e.g., 'Solution')")

    @classmethod
    def from_catalog(cls, item: dict[str, Any]) -> "CatalogEntry":
        """Build an entry from one item of the contentProductPackages listing."""
        props = item.get("properties") or {}
        return cls(
            name=item.get("name", ""),
            display_name=props.get("displayName", ""),
            content_id=props.get("contentId", ""),
            version=props.get("version"),
            kind=props.get("contentKind"),
        )


def strip_post_deployment(template: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of a packaged template with post-deployment wizards removed.

    ``postDeployment`` entries point at console-only setup steps. They can appear
    in the top-level template metadata and in the metadata of nested templates.
    """
    cleaned = copy.deepcopy(template)
    _strip(cleaned)
    return cleaned


def _strip(node: Any) -> None:
    if isinstance(node, dict):
        metadata = node.get("metadata")
        if isinstance(metadata, dict):
            metadata.pop("postDeployment", None)
        for value in node.values():
            _strip(value)
    elif isinstance(node, list):
        for value in node:
            _strip(value)


class InstallRequest(BaseModel):
    """An incremental deployment of one package's template into a workspace."""

    deployment_name: str
    workspace: str
    region: str
    template: dict[str, Any]
    mode: str = "Incremental"

    @classmethod
    def for_package(
        cls,
        entry: CatalogEntry,
        packaged_content: dict[str, Any],
        workspace: str,
        region: str,
    ) -> "InstallRequest":
        name = (DEPLOYMENT_NAME_PREFIX + entry.name)[:DEPLOYMENT_NAME_MAX]
        return cls(
            deployment_name=name,
            workspace=workspace,
            region=region,
            template=strip_post_deployment(packaged_content),
        )

    def to_body(self) -> dict[str, Any]:
        """Request body for the deployments endpoint."""
        return {
            "properties": {
                "parameters": {
                    "workspace": {"value": self.workspace},
                    "workspace-location": {"value": self.region},
                },
                "template": self.template,
                "mode": self.mode,
            }
        }
