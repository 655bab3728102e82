"""Error taxonomy for the deployment orchestrator.

Fatal errors (authentication, catalog, configuration) propagate to the CLI
and abort the run. Per-item errors are converted into outcomes inside each
phase and never escape it.
"""


class DeploymentError(Exception):
    """Base class for orchestrator errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class AuthenticationError(DeploymentError):
    """A bearer token for the management API could not be obtained."""


class CatalogError(DeploymentError):
    """The content catalog could not be read, or it was empty."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class ConfigurationError(DeploymentError):
    """Required run inputs are missing or a profile file is invalid."""


class TemplateShapeError(DeploymentError):
    """A rule template lacks the structure needed to build a rule from it."""
