"""Bearer-token acquisition for the management API.

The token is fetched once per run and never refreshed; runs that outlive it
fail on the first call after expiry with an authentication error.
"""

import logging

from azure.core.exceptions import ClientAuthenticationError
from azure.identity import AzureAuthorityHosts, DefaultAzureCredential

from sentinel_deploy.config import settings
from sentinel_deploy.exceptions import AuthenticationError

logger = logging.getLogger(__name__)


def token_scope(gov: bool = False) -> str:
    return f"{settings.host_for(gov)}/.default"


def acquire_token(gov: bool = False, credential=None) -> str:
    """Get a management-plane bearer token from the ambient Azure identity."""
    if credential is None:
        authority = AzureAuthorityHosts.AZURE_GOVERNMENT if gov else AzureAuthorityHosts.AZURE_PUBLIC_CLOUD
        credential = DefaultAzureCredential(authority=authority)

    scope = token_scope(gov)
    logger.debug("Requesting token for %s", scope)
    try:
        token = credential.get_token(scope)
    except ClientAuthenticationError as e:
        raise AuthenticationError(f"Could not authenticate to {scope}: {e.message}") from e

    if not token.token:
        raise AuthenticationError(f"Empty token returned for {scope}")
    return token.token
