"""Azure Key Vault secret resolution for service credentials."""

from __future__ import annotations

import logging

from azure.core.exceptions import AzureError, ResourceNotFoundError
from azure.identity.aio import DefaultAzureCredential
from azure.keyvault.secrets.aio import SecretClient

from employee_vault.core.config import Settings

logger = logging.getLogger(__name__)

# "not_configured" | "ok" | "error"
key_vault_status: str = "not_configured"


class KeyVaultError(Exception):
    pass


def _secret_targets(settings: Settings) -> list[tuple[str, str]]:
    """Return (settings field, secret name) pairs to resolve."""
    return [
        ("COSMOS_DB_ENDPOINT", settings.KEY_VAULT_COSMOS_ENDPOINT_SECRET),
        ("COSMOS_DB_KEY", settings.KEY_VAULT_COSMOS_KEY_SECRET),
    ]


async def load_secrets(settings: Settings) -> Settings:
    """Overlay Key Vault secrets onto ``settings`` and return the result as a new object.

    Secrets that do not exist in the vault leave the corresponding setting untouched.
    """
    global key_vault_status

    if not settings.KEY_VAULT_URL:
        key_vault_status = "not_configured"
        logger.info("KEY_VAULT_URL not set, using settings from environment")
        return settings

    updates: dict[str, str] = {}
    try:
        async with DefaultAzureCredential() as credential:
            async with SecretClient(vault_url=settings.KEY_VAULT_URL, credential=credential) as client:
                for field_name, secret_name in _secret_targets(settings):
                    if not secret_name:
                        continue
                    try:
                        secret = await client.get_secret(secret_name)
                    except ResourceNotFoundError:
                        logger.warning("Secret %s not found in Key Vault, keeping %s", secret_name, field_name)
                        continue
                    if secret.value:
                        updates[field_name] = secret.value
    except AzureError as e:
        key_vault_status = "error"
        logger.error("Failed to read secrets from %s: %s", settings.KEY_VAULT_URL, e)
        raise KeyVaultError(f"Could not read secrets from Key Vault: {e}") from e
    except Exception as e:
        key_vault_status = "error"
        logger.exception("Unexpected error reading secrets from %s", settings.KEY_VAULT_URL)
        raise KeyVaultError(f"Could not read secrets from Key Vault: {e}") from e

    key_vault_status = "ok"
    logger.info("Loaded %d secret(s) from Key Vault", len(updates))
    return settings.model_copy(update=updates)
