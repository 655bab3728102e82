"""Pydantic models for per-item outcomes and phase reports."""

from enum import Enum

from pydantic import BaseModel, Field, computed_field


class InstallStatus(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class InstallResult(BaseModel):
    """Outcome of one package deployment submission."""

    solution: str
    deployment_name: str = ""
    status: InstallStatus
    status_code: int | None = None
    error: str = ""
    duration_seconds: float = 0.0


class InstallReport(BaseModel):
    """Everything the Solution Installer attempted in one run."""

    requested: list[str] = Field(default_factory=list)
    missing: list[str] = Field(default_factory=list)
    results: list[InstallResult] = Field(default_factory=list)

    @computed_field
    @property
    def succeeded(self) -> list[str]:
        return [r.solution for r in self.results if r.status == InstallStatus.SUCCEEDED]

    @computed_field
    @property
    def failed(self) -> list[str]:
        return [r.solution for r in self.results if r.status == InstallStatus.FAILED]

    @property
    def no_matches(self) -> bool:
        """True when solutions were requested but none exist in the catalog."""
        return bool(self.requested) and not self.results

    @property
    def ok(self) -> bool:
        return not self.failed


class RuleOutcome(str, Enum):
    """Terminal state of a rule template; each template reaches exactly one."""

    DEPLOYED = "deployed"
    SKIPPED_SEVERITY = "skipped-severity"
    SKIPPED_DEPRECATED = "skipped-deprecated"
    SKIPPED_MISSING_DEPENDENCY = "skipped-missing-dependency"
    SKIPPED_INVALID_QUERY = "skipped-invalid-query"
    FAILED = "failed"


class RuleResult(BaseModel):
    """Outcome of one rule template."""

    template: str
    display_name: str
    severity: str = ""
    outcome: RuleOutcome
    rule_id: str | None = None
    metadata_linked: bool = False
    reason: str = ""


class ActivationReport(BaseModel):
    """Everything the Rule Activator did in one run."""

    results: list[RuleResult] = Field(default_factory=list)

    def count(self, outcome: RuleOutcome) -> int:
        return sum(1 for r in self.results if r.outcome == outcome)

    @computed_field
    @property
    def deployed(self) -> int:
        return self.count(RuleOutcome.DEPLOYED)

    @computed_field
    @property
    def skipped(self) -> int:
        return sum(
            1 for r in self.results
            if r.outcome not in (RuleOutcome.DEPLOYED, RuleOutcome.FAILED)
        )

    @computed_field
    @property
    def failed(self) -> int:
        return self.count(RuleOutcome.FAILED)
