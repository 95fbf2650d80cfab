"""Creator credential service configuration constants.

Environment-based configuration, grouped by concern:
- PERSISTENCE: where credential metadata lives
- PARTNER / TOKENS: identity and key material for signed tokens
- VERIFICATION: live credential status checks
- ISSUANCE: credential document defaults
- ASSETS: content-addressed image pinning
- SESSION / LOGGING: operational settings
"""
import json
import os
from pathlib import Path


# =============================================================================
# PERSISTENCE CONFIGURATION
# =============================================================================

def _get_data_dir() -> Path:
    """Determine data directory based on environment.

    Priority:
    1. CREDS_DATA_DIR env var (explicit override)
    2. /data/creator-credentials if it exists (Docker volume mount)
    3. ~/.creator-credentials (local development)
    4. /tmp/creator-credentials (container fallback when home unavailable)
    """
    env_path = os.getenv("CREDS_DATA_DIR")
    if env_path:
        return Path(env_path)

    docker_path = Path("/data/creator-credentials")
    if docker_path.exists():
        return docker_path

    try:
        home_path = Path.home() / ".creator-credentials"
        home_path.mkdir(parents=True, exist_ok=True)
        return home_path
    except (OSError, PermissionError):
        return Path("/tmp/creator-credentials")


DATA_DIR: Path = _get_data_dir()


def _get_database_url() -> str:
    """Get database URL from environment.

    Priority:
    1. CREDS_DATABASE_URL - explicit full connection string
    2. SQLite file under DATA_DIR for local development
    """
    if url := os.getenv("CREDS_DATABASE_URL"):
        return url
    return f"sqlite:///{DATA_DIR}/creator_credentials.db"


DATABASE_URL: str = _get_database_url()


# =============================================================================
# PARTNER / TOKEN CONFIGURATION
# =============================================================================

PARTNER_ID: str | None = os.getenv("CREDS_PARTNER_ID")
ISSUER_DID: str | None = os.getenv("CREDS_ISSUER_DID")
VERIFIER_DID: str | None = os.getenv("CREDS_VERIFIER_DID")

# Signing key is validated lazily, on first mint, not at import
PRIVATE_KEY: str | None = os.getenv("CREDS_PRIVATE_KEY")
KEY_ID: str | None = os.getenv("CREDS_KID")
JWT_ALGORITHM: str = os.getenv("CREDS_JWT_ALGORITHM", "RS256")
TOKEN_AUDIENCE: str = os.getenv("CREDS_TOKEN_AUDIENCE", "air.moca.network")
TOKEN_TTL_SECONDS: int = int(os.getenv("CREDS_TOKEN_TTL_SECONDS", "3600"))  # 1 hour


# =============================================================================
# VERIFICATION CONFIGURATION
# =============================================================================

VERIFICATION_URL: str | None = os.getenv("CREDS_VERIFICATION_URL")
VERIFICATION_PROGRAM_ID: str | None = os.getenv("CREDS_VERIFICATION_PROGRAM_ID")
VERIFICATION_TIMEOUT_SECONDS: float = float(os.getenv("CREDS_VERIFICATION_TIMEOUT", "10.0"))


# =============================================================================
# ISSUANCE CONFIGURATION
# =============================================================================

CREATOR_SCHEMA_ID: str | None = os.getenv("CREDS_CREATOR_SCHEMA_ID")


def _parse_contexts(env_var: str, default: list[str]) -> list[str]:
    """Parse a JSON list of @context URLs from an environment variable."""
    raw = os.getenv(env_var)
    if not raw:
        return default
    try:
        value = json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        return default
    if not isinstance(value, list):
        return default
    return [str(v) for v in value]


CREDENTIAL_CONTEXTS: list[str] = _parse_contexts(
    "CREDS_CREDENTIAL_CONTEXTS",
    ["https://www.w3.org/2018/credentials/v1"],
)


# =============================================================================
# ASSET PINNING CONFIGURATION
# =============================================================================

PINNING_API_URL: str = os.getenv("CREDS_PINNING_API_URL", "https://api.pinata.cloud")
PINNING_JWT: str | None = os.getenv("CREDS_PINNING_JWT")
GATEWAY_URL: str = os.getenv("CREDS_GATEWAY_URL", "https://gateway.pinata.cloud")
ASSET_MAX_BYTES: int = int(os.getenv("CREDS_ASSET_MAX_BYTES", str(10 * 1024 * 1024)))  # 10 MiB
ASSET_TIMEOUT_SECONDS: float = float(os.getenv("CREDS_ASSET_TIMEOUT", "30.0"))


# =============================================================================
# SESSION CONFIGURATION
# =============================================================================

SESSION_TTL_SECONDS: int = int(os.getenv("CREDS_SESSION_TTL", "3600"))
SESSION_COOKIE_NAME: str = "creds_session"
SESSION_COOKIE_SECURE: bool = os.getenv("CREDS_SESSION_SECURE", "true").lower() == "true"
SESSION_CLEANUP_INTERVAL: int = int(os.getenv("CREDS_SESSION_CLEANUP_INTERVAL", "300"))


# =============================================================================
# OPERATIONAL
# =============================================================================

AUDIT_ENABLED: bool = os.getenv("CREDS_AUDIT_ENABLED", "true").lower() == "true"
SERVICE_PORT: int = int(os.getenv("CREDS_PORT", "8002"))
