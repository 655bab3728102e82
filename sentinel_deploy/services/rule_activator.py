"""Rule Activator: create enabled alert rules from analytics rule templates.

Templates are processed one at a time: each submission mutates the
workspace and its assigned rule id is needed for the metadata link that
follows it.
"""

import logging
import uuid
from collections.abc import Iterable

import httpx
from pydantic import ValidationError

from sentinel_deploy.config import settings
from sentinel_deploy.exceptions import CatalogError, TemplateShapeError
from sentinel_deploy.models.catalog import CatalogEntry
from sentinel_deploy.models.results import ActivationReport, RuleOutcome, RuleResult
from sentinel_deploy.models.rules import (
    UNKNOWN_SOLUTION_ID,
    UNKNOWN_SOLUTION_NAME,
    DeployedRule,
    MetadataRecord,
    MetadataSource,
    RuleTemplate,
)
from sentinel_deploy.services.arm_client import ManagementClient
from sentinel_deploy.services.classifier import classify_rule_error
from sentinel_deploy.services.normalize import build_rule_properties

logger = logging.getLogger(__name__)


def select_template(
    template: RuleTemplate,
    severities: set[str],
    deprecated_marker: str | None = None,
) -> RuleOutcome | None:
    """Return the skip outcome for a template, or None if it should be deployed."""
    marker = deprecated_marker or settings.deprecated_marker
    if template.is_deprecated(marker):
        return RuleOutcome.SKIPPED_DEPRECATED
    if severities and template.severity not in severities:
        return RuleOutcome.SKIPPED_SEVERITY
    return None


def resolve_source(template: RuleTemplate, solutions: Iterable[CatalogEntry]) -> MetadataSource:
    """Find the package a template came from, or a placeholder if it is not listed."""
    if template.package_id:
        for entry in solutions:
            if entry.content_id == template.package_id:
                return MetadataSource(name=entry.display_name, source_id=entry.content_id)
    logger.warning("  No source solution found for '%s' (packageId=%r)",
                   template.display_name, template.package_id)
    return MetadataSource(name=UNKNOWN_SOLUTION_NAME, source_id=UNKNOWN_SOLUTION_ID)


def build_metadata(template: RuleTemplate, rule: DeployedRule, source: MetadataSource) -> MetadataRecord:
    return MetadataRecord(
        content_id=template.rule_resource_name,
        parent_id=rule.id,
        version=template.version,
        source=source,
        author=template.source_metadata.get("author"),
        support=template.source_metadata.get("support"),
    )


async def _link_metadata(
    client: ManagementClient,
    template: RuleTemplate,
    rule: DeployedRule,
    solutions: list[CatalogEntry],
) -> bool:
    record = build_metadata(template, rule, resolve_source(template, solutions))
    try:
        resp = await client.put_metadata(rule.name, record)
    except httpx.HTTPError as e:
        logger.warning("  Metadata link failed for '%s': %s", template.display_name, e)
        return False
    if not resp.is_success:
        logger.warning("  Metadata link rejected for '%s' (HTTP %d): %s",
                       template.display_name, resp.status_code,
                       resp.text[:settings.log_body_limit])
        return False
    return True


async def deploy_template(
    client: ManagementClient,
    template: RuleTemplate,
    solutions: list[CatalogEntry],
) -> RuleResult:
    """Submit one selected template as a new alert rule and link its metadata."""
    result = RuleResult(
        template=template.name,
        display_name=template.display_name,
        severity=template.severity,
        outcome=RuleOutcome.FAILED,
    )

    try:
        properties = build_rule_properties(template)
    except ValidationError as e:
        result.reason = f"template properties do not validate: {e.error_count()} errors"
        logger.error("  [%s] %s", template.display_name, result.reason)
        return result

    rule_id = str(uuid.uuid4())
    try:
        resp = await client.put_alert_rule(rule_id, template.kind, properties)
    except httpx.HTTPError as e:
        result.reason = f"{type(e).__name__}: {e}"
        logger.error("  [%s] request failed: %s", template.display_name, result.reason)
        return result

    if not resp.is_success:
        body = resp.text
        outcome, reason = classify_rule_error(body)
        result.outcome = outcome
        result.reason = reason
        if outcome == RuleOutcome.FAILED:
            result.reason = body[:settings.log_body_limit]
            logger.error("  [%s] rule rejected (HTTP %d): %s",
                         template.display_name, resp.status_code, result.reason)
        else:
            logger.warning("  [%s] skipped: %s", template.display_name, reason)
        return result

    try:
        data = resp.json()
    except ValueError:
        data = {}
    rule = DeployedRule(
        name=data.get("name", rule_id),
        id=data.get("id", f"{client.workspace_path}/providers/Microsoft.SecurityInsights/alertRules/{rule_id}"),
        kind=data.get("kind", template.kind),
        properties=data.get("properties") or {},
    )
    result.outcome = RuleOutcome.DEPLOYED
    result.rule_id = rule.name
    logger.info("  [%s] deployed as %s", template.display_name, rule.name)

    result.metadata_linked = await _link_metadata(client, template, rule, solutions)
    return result


async def activate_rules(
    client: ManagementClient,
    severities: Iterable[str] = (),
    solutions: list[CatalogEntry] | None = None,
    deprecated_marker: str | None = None,
) -> ActivationReport:
    """Create alert rules for every selected template in the catalog."""
    items = await client.list_rule_templates()
    if not items:
        raise CatalogError("No analytics rule templates in catalog")

    if solutions is None:
        solutions = [CatalogEntry.from_catalog(item) for item in await client.list_solutions()]

    wanted = set(severities)
    logger.info("Catalog lists %d rule templates (severities: %s)",
                len(items), ", ".join(sorted(wanted)) or "all")

    report = ActivationReport()
    for item in items:
        try:
            template = RuleTemplate.from_catalog(item)
        except (TemplateShapeError, ValidationError) as e:
            label = (item.get("properties") or {}).get("displayName") or item.get("name", "")
            logger.error("  [%s] unusable template: %s", label, e)
            report.results.append(RuleResult(
                template=item.get("name", ""),
                display_name=label,
                outcome=RuleOutcome.FAILED,
                reason=str(e),
            ))
            continue

        skip = select_template(template, wanted, deprecated_marker)
        if skip is not None:
            logger.debug("  [%s] %s", template.display_name, skip.value)
            report.results.append(RuleResult(
                template=template.name,
                display_name=template.display_name,
                severity=template.severity,
                outcome=skip,
            ))
            continue

        report.results.append(await deploy_template(client, template, solutions))

    logger.info("Rules: %d deployed, %d skipped, %d failed",
                report.deployed, report.skipped, report.failed)
    return report
