"""Exception hierarchy for the creator credential service.

Three families, each handled differently by callers:
- Rejections (IssuanceRejected, PersistenceRejected, AssetRejected) are
  deterministic and fixable by the caller; the API maps them to 4xx.
- Dependency failures (VerificationTransportError, AssetUploadError,
  TokenSigningError) are non-deterministic.
- ConfigurationError is fatal; no retry can fix it.
"""


class CredentialServiceError(Exception):
    """Base exception for all credential service errors."""
    pass


# =============================================================================
# Rejections
# =============================================================================

class IssuanceRejected(CredentialServiceError):
    """A credential subject failed the issuance gate.

    Attributes:
        reason: Short machine-stable reason, e.g. "underage".
        fields: Names of the offending fields, when known.
    """

    def __init__(self, reason: str, fields: tuple[str, ...] = ()):
        super().__init__(reason)
        self.reason = reason
        self.fields = tuple(fields)


class ProfileRejected(IssuanceRejected):
    """Creator profile metadata failed content-policy validation."""
    pass


class PersistenceRejected(CredentialServiceError):
    """The metadata store refused a write at its boundary."""
    pass


class DuplicateCredentialReference(PersistenceRejected):
    """A holder already has a different credential reference recorded."""
    pass


class AssetRejected(CredentialServiceError):
    """An asset payload was refused before transmission (type or size)."""
    pass


# =============================================================================
# Dependency failures
# =============================================================================

class VerificationTransportError(CredentialServiceError):
    """Live verification call failed at the transport or protocol level.

    Never escapes the verification client; it is collapsed to the
    ``error`` outcome at that boundary.
    """
    pass


class AssetUploadError(CredentialServiceError):
    """The pinning service failed to store or unpin an asset."""
    pass


class TokenSigningError(CredentialServiceError):
    """Signing a token failed for a reason other than configuration."""
    pass


class CredentialBuildError(CredentialServiceError):
    """A generated credential document failed its structural check."""
    pass


# =============================================================================
# Configuration
# =============================================================================

class ConfigurationError(CredentialServiceError):
    """Required configuration is missing or malformed."""
    pass


class TokenConfigurationError(ConfigurationError):
    """Signing key, key id, algorithm or partner identifiers are unusable."""
    pass
