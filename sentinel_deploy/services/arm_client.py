"""Async client for the Azure management REST API (Sentinel content hub)."""

import logging
from typing import Any

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from sentinel_deploy.config import settings
from sentinel_deploy.exceptions import CatalogError
from sentinel_deploy.models.catalog import InstallRequest
from sentinel_deploy.models.rules import MetadataRecord, RuleProperties

logger = logging.getLogger(__name__)

SECURITY_INSIGHTS = "providers/Microsoft.SecurityInsights"


class ManagementClient:
    """Async HTTP client scoped to one workspace, authenticated with one bearer token."""

    def __init__(
        self,
        token: str,
        subscription_id: str,
        resource_group: str,
        workspace: str,
        gov: bool = False,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float | None = None,
    ):
        self._token = token
        self.subscription_id = subscription_id
        self.resource_group = resource_group
        self.workspace = workspace
        self.gov = gov
        self._transport = transport
        self._timeout = timeout if timeout is not None else settings.request_timeout
        self._client: httpx.AsyncClient | None = None

    @property
    def base_url(self) -> str:
        return settings.host_for(self.gov)

    @property
    def resource_group_path(self) -> str:
        return f"/subscriptions/{self.subscription_id}/resourceGroups/{self.resource_group}"

    @property
    def workspace_path(self) -> str:
        return (
            f"{self.resource_group_path}/providers/Microsoft.OperationalInsights"
            f"/workspaces/{self.workspace}"
        )

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers={"Authorization": f"Bearer {self._token}"},
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self):
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def __aenter__(self) -> "ManagementClient":
        return self

    async def __aexit__(self, *exc_info):
        await self.close()

    # ------------------------------------------------------------------
    # Transport helpers
    # ------------------------------------------------------------------

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(min=1, max=4),
        reraise=True,
    )
    async def _get(self, path: str, params: dict[str, Any] | None = None) -> dict:
        """Perform an authenticated GET; transport errors are retried, HTTP errors raised."""
        resp = await self._get_client().get(path, params=params)
        resp.raise_for_status()
        return resp.json()

    async def _list(self, path: str, api_version: str, params: dict[str, Any] | None = None) -> list[dict]:
        """GET a collection, following ``nextLink`` until exhausted."""
        query = {"api-version": api_version, **(params or {})}
        items: list[dict] = []
        try:
            data = await self._get(path, query)
            items.extend(data.get("value", []))
            while data.get("nextLink"):
                data = await self._get(data["nextLink"])
                items.extend(data.get("value", []))
        except httpx.HTTPStatusError as e:
            raise CatalogError(
                f"GET {path} returned {e.response.status_code}: "
                f"{e.response.text[:settings.log_body_limit]}",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise CatalogError(f"GET {path} failed: {e}") from e
        return items

    async def _put(self, path: str, api_version: str, body: dict[str, Any]) -> httpx.Response:
        """Perform an authenticated PUT. Writes are never retried."""
        return await self._get_client().put(path, params={"api-version": api_version}, json=body)

    # ------------------------------------------------------------------
    # Content hub
    # ------------------------------------------------------------------

    async def list_solutions(self) -> list[dict]:
        """List installable content hub packages."""
        return await self._list(
            f"{self.workspace_path}/{SECURITY_INSIGHTS}/contentProductPackages",
            settings.content_api_version,
        )

    async def get_solution(self, name: str) -> dict:
        """Get one package including its packaged content template."""
        return await self._get(
            f"{self.workspace_path}/{SECURITY_INSIGHTS}/contentProductPackages/{name}",
            {"api-version": settings.content_api_version},
        )

    async def submit_deployment(self, request: InstallRequest) -> httpx.Response:
        path = (
            f"/subscriptions/{self.subscription_id}/resourcegroups/{self.resource_group}"
            f"/providers/Microsoft.Resources/deployments/{request.deployment_name}"
        )
        return await self._put(path, settings.deployments_api_version, request.to_body())

    async def list_rule_templates(self) -> list[dict]:
        """List analytics rule templates with their main template expanded."""
        return await self._list(
            f"{self.workspace_path}/{SECURITY_INSIGHTS}/contentTemplates",
            settings.templates_api_version,
            {
                "$filter": "(properties/contentKind eq 'AnalyticsRule')",
                "$expand": "properties/mainTemplate",
            },
        )

    # ------------------------------------------------------------------
    # Alert rules
    # ------------------------------------------------------------------

    async def put_alert_rule(self, rule_id: str, kind: str, properties: RuleProperties) -> httpx.Response:
        return await self._put(
            f"{self.workspace_path}/{SECURITY_INSIGHTS}/alertRules/{rule_id}",
            settings.alert_rules_api_version,
            {"kind": kind, "properties": properties.to_wire()},
        )

    async def put_metadata(self, rule_name: str, record: MetadataRecord) -> httpx.Response:
        return await self._put(
            f"{self.workspace_path}/{SECURITY_INSIGHTS}/metadata/analyticsrule-{rule_name}",
            settings.metadata_api_version,
            record.to_body(),
        )
