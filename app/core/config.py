"""
Application configuration.
When KEY_VAULT_NAME is set, secrets are loaded from Azure Key Vault at
startup and injected into the environment; otherwise settings come from
environment variables / .env file so local development works without Key
Vault access.
"""
import os
import logging
from azure.core.exceptions import ResourceNotFoundError
from azure.identity import DefaultAzureCredential
from azure.keyvault.secrets import SecretClient
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Key Vault → environment variable mapping
# Secret names in Key Vault use lowercase-dashes; env vars use UPPER_SNAKE.
# ---------------------------------------------------------------------------
_KV_TO_ENV: dict[str, str] = {
    "database-url":              "DATABASE_URL",
    "jwt-secret-key":            "JWT_SECRET_KEY",
    "sendgrid-api-key":          "SENDGRID_API_KEY",
    "sendgrid-from-email":       "SENDGRID_FROM_EMAIL",
    "sendgrid-from-name":        "SENDGRID_FROM_NAME",
    "storage-connection-string": "AZURE_BLOB_CONNECTION_STRING",
    "azure-storage-account":     "AZURE_STORAGE_ACCOUNT",
    "ga4-property-id":           "GA4_PROPERTY_ID",
    "ga4-access-token":          "GA4_ACCESS_TOKEN",
    "admin-password":            "ADMIN_PASSWORD",
}


def _load_from_key_vault(vault_name: str) -> int:
    """
    Fetch secrets from Azure Key Vault and inject them into os.environ.
    Returns the number of secrets successfully loaded.
    """
    try:
        client = SecretClient(
            vault_url=f"https://{vault_name}.vault.azure.net/",
            credential=DefaultAzureCredential(),
        )
        loaded = 0

        for kv_name, env_name in _KV_TO_ENV.items():
            try:
                secret = client.get_secret(kv_name)
                if secret.value:
                    os.environ[env_name] = secret.value
                    loaded += 1
            except ResourceNotFoundError:
                continue
            except Exception as e:
                logger.warning("KV: could not load '%s': %s", kv_name, e)

        return loaded

    except Exception as e:
        logger.warning("Key Vault load failed (%s); falling back to environment / .env file.", e)
        return 0


_kv_name = os.environ.get("KEY_VAULT_NAME", "")
if _kv_name:
    _n = _load_from_key_vault(_kv_name)
    if _n:
        logger.info("Loaded %d secrets from Key Vault '%s'", _n, _kv_name)


class Settings(BaseSettings):
    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"
    DATABASE_URL: str = "sqlite+aiosqlite:///./perks.db"
    KEY_VAULT_NAME: str = ""

    # Auth
    JWT_SECRET_KEY: str = ""
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7
    MAX_LOGIN_ATTEMPTS: int = 5
    LOCK_TIME_MINUTES: int = 15

    # Seeded super admin (skipped when empty)
    ADMIN_EMAIL: str = ""
    ADMIN_PASSWORD: str = ""

    # Azure Blob Storage (perk, category and blog images)
    AZURE_BLOB_CONNECTION_STRING: str = ""
    AZURE_STORAGE_ACCOUNT: str = ""
    AZURE_IMAGE_CONTAINER: str = "perks-images"
    MAX_IMAGE_SIZE: int = 1024 * 1024

    # SendGrid Email
    SENDGRID_API_KEY: str = ""
    SENDGRID_FROM_EMAIL: str = "noreply@perksmarketplace.com"
    SENDGRID_FROM_NAME: str = "Perks Marketplace"
    ADMIN_NOTIFICATION_EMAIL: str = ""

    # Google Analytics 4 Data API
    GA4_PROPERTY_ID: str = ""
    GA4_ACCESS_TOKEN: str = ""

    # Generated sitemap.xml / robots.txt
    PUBLIC_DIR: str = "public"
    CORS_ORIGINS: str = "*"

    @property
    def is_production(self) -> bool:
        return self.APP_ENV == "production"

    class Config:
        env_file = ".env"


settings = Settings()

if not settings.JWT_SECRET_KEY:
    if settings.is_production:
        raise ValueError(
            "JWT_SECRET_KEY is not set. It must exist in Key Vault ('jwt-secret-key') "
            "or as a JWT_SECRET_KEY environment variable."
        )
    logger.warning("JWT_SECRET_KEY not set; using an insecure development key")
    settings.JWT_SECRET_KEY = "dev-insecure-secret"
