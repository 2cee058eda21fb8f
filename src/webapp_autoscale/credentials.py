"""Service principal credentials for the management plane.

Reads the service principal from environment variables once at startup and
creates an Azure Identity ClientSecretCredential from it.

Environment:
- CLIENT_ID: Application (client) ID
- CLIENT_SECRET: Client secret
- TENANT_ID: Directory (tenant) ID
- SUBSCRIPTION_ID: Subscription to provision into

Security:
- Client secret from environment only, never written anywhere
- Secret excluded from repr() and masked dict output
- tenant, client and subscription IDs validated as UUIDs
"""

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

from azure.identity import ClientSecretCredential

from webapp_autoscale.exceptions import CredentialError
from webapp_autoscale.log_sanitizer import LogSanitizer

logger = logging.getLogger(__name__)

ENV_CLIENT_ID = "CLIENT_ID"
ENV_CLIENT_SECRET = "CLIENT_SECRET"  # noqa: S105 - variable name, not a password
ENV_TENANT_ID = "TENANT_ID"
ENV_SUBSCRIPTION_ID = "SUBSCRIPTION_ID"

REQUIRED_ENV_VARS = (ENV_CLIENT_ID, ENV_CLIENT_SECRET, ENV_TENANT_ID, ENV_SUBSCRIPTION_ID)


def validate_uuid(value: str, field_name: str) -> None:
    """Validate UUID format. Raises CredentialError if invalid."""
    if not value:
        raise CredentialError(f"{field_name} must be valid UUID format, got empty string")

    try:
        UUID(value)
    except (ValueError, AttributeError) as e:
        raise CredentialError(f"{field_name} must be valid UUID format, got: {value}") from e


@dataclass(frozen=True)
class ServicePrincipalSettings:
    """Service principal and target subscription.

    Frozen to prevent mutation. The secret is kept out of repr().
    """

    tenant_id: str
    client_id: str
    subscription_id: str
    client_secret: str = field(repr=False)

    def __post_init__(self):
        """Validate UUIDs and require a secret."""
        validate_uuid(self.tenant_id, "tenant_id")
        validate_uuid(self.client_id, "client_id")
        validate_uuid(self.subscription_id, "subscription_id")
        if not self.client_secret:
            raise CredentialError("client_secret must not be empty")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "ServicePrincipalSettings":
        """Read settings from environment variables.

        Args:
            environ: Environment mapping (os.environ if None)

        Raises:
            CredentialError: If a variable is missing or invalid
        """
        env = os.environ if environ is None else environ
        missing = [name for name in REQUIRED_ENV_VARS if not env.get(name)]
        if missing:
            raise CredentialError(
                f"Missing environment variables: {', '.join(missing)}. "
                "Set CLIENT_ID, CLIENT_SECRET, TENANT_ID and SUBSCRIPTION_ID."
            )

        return cls(
            tenant_id=env[ENV_TENANT_ID].strip(),
            client_id=env[ENV_CLIENT_ID].strip(),
            subscription_id=env[ENV_SUBSCRIPTION_ID].strip(),
            client_secret=env[ENV_CLIENT_SECRET],
        )

    def to_dict_masked(self) -> dict[str, Any]:
        """Return a dict safe for logging."""
        return {
            "tenant_id": self.tenant_id,
            "client_id": self.client_id,
            "subscription_id": self.subscription_id,
            "client_secret": LogSanitizer.REDACTED,
        }


def create_credential(settings: ServicePrincipalSettings) -> ClientSecretCredential:
    """Create a ClientSecretCredential for the service principal.

    No token is requested here; authentication failures surface on the
    first management call as azure.core.exceptions.ClientAuthenticationError.

    Raises:
        CredentialError: If the credential cannot be constructed
    """
    try:
        credential = ClientSecretCredential(
            tenant_id=settings.tenant_id,
            client_id=settings.client_id,
            client_secret=settings.client_secret,
        )
    except ValueError as e:
        safe_error = LogSanitizer.sanitize(str(e), secrets=[settings.client_secret])
        raise CredentialError(f"Failed to create service principal credential: {safe_error}") from e

    logger.debug(f"Created service principal credential for client {settings.client_id}")
    return credential
