"""Application configuration using Pydantic settings."""

from pydantic_settings import BaseSettings

COMMERCIAL_MANAGEMENT_HOST = "https://management.azure.com"
GOVERNMENT_MANAGEMENT_HOST = "https://management.usgovcloudapi.net"


class Settings(BaseSettings):
    """Sentinel content deployment configuration."""

    app_name: str = "Sentinel Content Deployer"
    version: str = "0.1.0"

    # Target subscription (the workspace, resource group and region come from the CLI)
    subscription_id: str = ""
    gov_cloud: bool = False

    management_host: str = COMMERCIAL_MANAGEMENT_HOST
    gov_management_host: str = GOVERNMENT_MANAGEMENT_HOST

    # API versions per endpoint family
    content_api_version: str = "2023-04-01-preview"
    templates_api_version: str = "2023-05-01-preview"
    deployments_api_version: str = "2021-04-01"
    alert_rules_api_version: str = "2023-02-01"
    metadata_api_version: str = "2023-02-01"

    # Pacing
    install_stagger_seconds: float = 0.5
    phase_delay_seconds: int = 60
    request_timeout: int = 60

    # Rule selection
    default_severities: list[str] = ["High", "Medium", "Low"]
    deprecated_marker: str = "[Deprecated]"

    # Error reporting
    error_log_path: str = "deployment-errors.log"
    log_body_limit: int = 300

    model_config = {"env_prefix": "SENTINEL_"}

    def host_for(self, gov: bool | None = None) -> str:
        """Management API host for the commercial or government cloud."""
        use_gov = self.gov_cloud if gov is None else gov
        return self.gov_management_host if use_gov else self.management_host


settings = Settings()
