"""Solution Installer: deploy requested content hub packages into a workspace.

Every matched package is submitted as its own task. Tasks start with a short
stagger to stay under the management API's rate limit and are joined in a
single task group; a task records its failure instead of raising, so one
package never cancels or blocks another.
"""

import asyncio
import logging
import time

import httpx

from sentinel_deploy.config import settings
from sentinel_deploy.exceptions import CatalogError
from sentinel_deploy.models.catalog import CatalogEntry, InstallRequest
from sentinel_deploy.models.results import InstallReport, InstallResult, InstallStatus
from sentinel_deploy.services.arm_client import ManagementClient
from sentinel_deploy.services.error_log import ErrorLog

logger = logging.getLogger(__name__)


async def fetch_catalog(client: ManagementClient) -> list[CatalogEntry]:
    """Read the package catalog; an empty catalog is fatal."""
    items = await client.list_solutions()
    if not items:
        raise CatalogError("Content hub catalog is empty")
    return [CatalogEntry.from_catalog(item) for item in items]


def match_solutions(
    catalog: list[CatalogEntry],
    requested: list[str],
) -> tuple[list[CatalogEntry], list[str]]:
    """Split requested display names into catalog matches and missing names."""
    by_name = {entry.display_name: entry for entry in catalog}
    matched: list[CatalogEntry] = []
    missing: list[str] = []
    for name in dict.fromkeys(requested):
        entry = by_name.get(name)
        if entry is None:
            missing.append(name)
        else:
            matched.append(entry)
    return matched, missing


async def _install_one(
    client: ManagementClient,
    entry: CatalogEntry,
    workspace: str,
    region: str,
    error_log: ErrorLog,
) -> InstallResult:
    start = time.monotonic()
    result = InstallResult(solution=entry.display_name, status=InstallStatus.FAILED)

    try:
        package = await client.get_solution(entry.name)
        packaged_content = (package.get("properties") or {}).get("packagedContent") or {}
        request = InstallRequest.for_package(entry, packaged_content, workspace, region)
        result.deployment_name = request.deployment_name
        resp = await client.submit_deployment(request)
    except httpx.HTTPStatusError as e:
        resp = e.response
    except (httpx.HTTPError, ValueError) as e:
        result.error = f"{type(e).__name__}: {e}"
        logger.error("  [%s] request failed: %s", entry.display_name, result.error)
        await error_log.append(entry.display_name, result.error)
        result.duration_seconds = round(time.monotonic() - start, 2)
        return result

    result.status_code = resp.status_code
    if resp.is_success:
        result.status = InstallStatus.SUCCEEDED
        logger.info("  [%s] deployment %s submitted (HTTP %d)",
                    entry.display_name, result.deployment_name, resp.status_code)
    else:
        body = resp.text
        result.error = body[:settings.log_body_limit]
        logger.error("  [%s] deployment rejected (HTTP %d): %s",
                     entry.display_name, resp.status_code, result.error)
        await error_log.append(entry.display_name, body, resp.status_code)

    result.duration_seconds = round(time.monotonic() - start, 2)
    return result


async def install_solutions(
    client: ManagementClient,
    solutions: list[str],
    workspace: str,
    region: str,
    error_log: ErrorLog | None = None,
    stagger: float | None = None,
    catalog: list[CatalogEntry] | None = None,
) -> InstallReport:
    """Install every requested solution found in the catalog and wait for all of them."""
    error_log = error_log or ErrorLog(settings.error_log_path)
    stagger = settings.install_stagger_seconds if stagger is None else stagger

    if catalog is None:
        catalog = await fetch_catalog(client)
    logger.info("Catalog lists %d solutions", len(catalog))

    matched, missing = match_solutions(catalog, solutions)
    report = InstallReport(requested=list(solutions), missing=missing)

    for name in missing:
        logger.warning("Solution not found in catalog, skipping: %s", name)

    if not matched:
        if solutions:
            logger.error("None of the %d requested solutions exist in the catalog", len(solutions))
        return report

    logger.info("Installing %d solutions", len(matched))
    tasks: list[asyncio.Task[InstallResult]] = []
    async with asyncio.TaskGroup() as group:
        for i, entry in enumerate(matched):
            if i and stagger:
                await asyncio.sleep(stagger)
            logger.info("[%s] submitting deployment", entry.display_name)
            tasks.append(group.create_task(_install_one(client, entry, workspace, region, error_log)))

    report.results = [task.result() for task in tasks]
    logger.info("Solutions: %d succeeded, %d failed, %d not found",
                len(report.succeeded), len(report.failed), len(report.missing))
    return report
