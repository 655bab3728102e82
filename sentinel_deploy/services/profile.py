"""Load deployment profiles (target workspace, solutions, severities) from YAML."""

from pathlib import Path

import yaml
from pydantic import BaseModel, ValidationError, field_validator

from sentinel_deploy.exceptions import ConfigurationError


def split_names(values: list[str] | str | None) -> list[str]:
    """Flatten names given as a list, a comma-separated string, or a mix of both."""
    if values is None:
        return []
    if isinstance(values, str):
        values = [values]
    names: list[str] = []
    for value in values:
        names.extend(part.strip() for part in str(value).split(",") if part.strip())
    return names


class DeploymentProfile(BaseModel):
    """Run inputs that can be kept in a file instead of on the command line."""

    resource_group: str | None = None
    workspace: str | None = None
    region: str | None = None
    subscription_id: str | None = None
    solutions: list[str] | None = None
    severities: list[str] | None = None
    gov: bool | None = None

    @field_validator("solutions", "severities", mode="before")
    @classmethod
    def _split(cls, value):
        if value is None:
            return None
        return split_names(value)


def load_profile(path: str | Path) -> DeploymentProfile:
    """Read a YAML profile; raises ConfigurationError if missing or malformed."""
    profile_path = Path(path)
    if not profile_path.exists():
        raise ConfigurationError(f"Profile not found: {profile_path}")

    try:
        raw = yaml.safe_load(profile_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {profile_path}: {e}") from e

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigurationError(f"Profile {profile_path} must be a mapping")

    try:
        return DeploymentProfile.model_validate(raw)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid profile {profile_path}: {e}") from e
