from sentinel_deploy.models.catalog import CatalogEntry, InstallRequest, strip_post_deployment
from sentinel_deploy.models.rules import (
    DeployedRule,
    GroupingConfiguration,
    IncidentConfiguration,
    MetadataRecord,
    MetadataSource,
    RuleProperties,
    RuleTemplate,
    Severity,
)
from sentinel_deploy.models.results import (
    ActivationReport,
    InstallReport,
    InstallResult,
    InstallStatus,
    RuleOutcome,
    RuleResult,
)

__all__ = [
    "CatalogEntry", "InstallRequest", "strip_post_deployment",
    "DeployedRule", "GroupingConfiguration", "IncidentConfiguration",
    "MetadataRecord", "MetadataSource", "RuleProperties", "RuleTemplate", "Severity",
    "ActivationReport", "InstallReport", "InstallResult", "InstallStatus",
    "RuleOutcome", "RuleResult",
]
