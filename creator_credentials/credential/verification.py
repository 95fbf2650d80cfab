"""Live credential verification.

The verification capability is injected rather than looked up from a global
service handle, so the reconciliation engine can run against a fake.

Contract for every implementation reachable through ``verify_with``: the
result is always a VerificationOutcome. Timeouts, malformed responses,
non-success statuses and a missing capability all become ``ERROR``.
"""

import asyncio
import logging
from typing import Optional, Protocol, runtime_checkable

import httpx

from creator_credentials.credential.models import VerificationOutcome
from creator_credentials.exceptions import VerificationTransportError

log = logging.getLogger(__name__)


@runtime_checkable
class VerificationCapability(Protocol):
    """Anything that can attest a holder's credential status."""

    async def verify(
        self, holder_id: str, token: str, program_id: str
    ) -> VerificationOutcome:
        ...


def parse_outcome(value: object) -> VerificationOutcome:
    """Map a raw status value onto the closed outcome set.

    Raises:
        VerificationTransportError: If the value is not a known tag.
    """
    if isinstance(value, VerificationOutcome):
        return value
    try:
        return VerificationOutcome(value)
    except ValueError:
        raise VerificationTransportError(f"Unknown verification status: {value!r}")


class HttpVerificationClient:
    """Verification capability backed by the partner's HTTP verify endpoint.

    POSTs ``{"programId", "holderId"}`` with the bearer token and expects
    ``{"status": "<tag>"}`` back.
    """

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.url = url
        self.timeout = timeout
        self._transport = transport

    async def verify(
        self, holder_id: str, token: str, program_id: str
    ) -> VerificationOutcome:
        try:
            return await self._query(holder_id, token, program_id)
        except (VerificationTransportError, httpx.HTTPError, ValueError) as e:
            log.warning(f"Verification failed for {holder_id[:10]}...: {type(e).__name__}: {e}")
            return VerificationOutcome.ERROR

    async def _query(
        self, holder_id: str, token: str, program_id: str
    ) -> VerificationOutcome:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            resp = await client.post(
                self.url,
                json={"programId": program_id, "holderId": holder_id},
                headers={"Authorization": f"Bearer {token}"},
            )
            log.info(f"verification_response: status={resp.status_code} len={len(resp.text)}")

            if resp.status_code != 200:
                raise VerificationTransportError(
                    f"Verification service returned HTTP {resp.status_code}"
                )

            body = resp.json()
            if not isinstance(body, dict) or "status" not in body:
                raise VerificationTransportError("Verification response missing status")
            return parse_outcome(body["status"])


async def verify_with(
    capability: Optional[VerificationCapability],
    holder_id: str,
    token: str,
    program_id: Optional[str],
    timeout: Optional[float] = None,
) -> VerificationOutcome:
    """Call a verification capability without letting failures escape.

    Args:
        capability: Injected verifier; None means verification is unavailable.
        holder_id: Holder whose credential is checked.
        token: Short-lived verification token.
        program_id: Verification program / schema identifier.
        timeout: Optional overall deadline in seconds.

    Returns:
        The attested outcome, or ERROR on any failure.
    """
    if capability is None:
        log.warning("Verification capability not available")
        return VerificationOutcome.ERROR
    if not program_id:
        log.warning("Verification program id not configured")
        return VerificationOutcome.ERROR

    try:
        call = capability.verify(holder_id, token, program_id)
        if timeout is not None:
            outcome = await asyncio.wait_for(call, timeout)
        else:
            outcome = await call
        return parse_outcome(outcome)
    except asyncio.TimeoutError:
        log.warning(f"Verification timed out after {timeout}s for {holder_id[:10]}...")
        return VerificationOutcome.ERROR
    except Exception as e:
        log.warning(f"Verification capability raised {type(e).__name__}: {e}")
        return VerificationOutcome.ERROR


# Global client instance
_verification_client: HttpVerificationClient | None = None


def get_verification_client() -> Optional[HttpVerificationClient]:
    """Get the global HTTP verification client, or None if not configured."""
    global _verification_client

    if _verification_client is None:
        from creator_credentials.config import VERIFICATION_TIMEOUT_SECONDS, VERIFICATION_URL

        if not VERIFICATION_URL:
            return None
        _verification_client = HttpVerificationClient(
            VERIFICATION_URL, timeout=VERIFICATION_TIMEOUT_SECONDS
        )

    return _verification_client


def reset_verification_client() -> None:
    """Reset the global verification client (for testing)."""
    global _verification_client
    _verification_client = None
