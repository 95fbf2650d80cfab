"""Content-addressed image pinning (Pinata-compatible HTTP API).

Images are checked for type and size before anything is sent. Uploads and
unpins raise on failure; metadata lookups return None instead.
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

import httpx

from creator_credentials.exceptions import AssetRejected, AssetUploadError, ConfigurationError

log = logging.getLogger(__name__)

IMAGE_MIME_TYPES: frozenset[str] = frozenset({
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/webp",
    "image/gif",
    "image/svg+xml",
})

IMAGE_KINDS: tuple[str, ...] = ("profile", "banner", "content", "thumbnail")


@dataclass(frozen=True)
class PinnedAsset:
    cid: str
    gateway_url: str
    size: int


@dataclass(frozen=True)
class ImageMetadata:
    """Optional descriptive metadata stored with a pinned image."""
    creator_id: str = ""
    image_type: str = "profile"
    description: str = ""


class PinningClient:
    """Async client for the pinning service.

    Args:
        api_url: Base URL of the pinning API.
        jwt: Bearer credential for the pinning API.
        gateway_url: Public gateway base URL used to build asset links.
        max_bytes: Largest accepted image, in bytes.
        timeout: HTTP timeout in seconds.
        transport: Optional httpx transport (tests use httpx.MockTransport).
    """

    def __init__(
        self,
        api_url: str,
        jwt: Optional[str],
        gateway_url: str,
        max_bytes: int = 10 * 1024 * 1024,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_url = api_url.rstrip("/")
        self.gateway_url = gateway_url.rstrip("/")
        self.max_bytes = max_bytes
        self.timeout = timeout
        self._jwt = jwt
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        if not self._jwt:
            raise ConfigurationError("Pinning service credential is not configured")
        return httpx.AsyncClient(
            base_url=self.api_url,
            timeout=self.timeout,
            headers={"Authorization": f"Bearer {self._jwt}"},
            transport=self._transport,
        )

    def check_image(self, content: bytes, mime_type: str) -> None:
        """Raise AssetRejected unless the payload is an accepted image."""
        if mime_type not in IMAGE_MIME_TYPES:
            raise AssetRejected(f"Invalid file type: {mime_type}. Only images are allowed.")
        if len(content) > self.max_bytes:
            raise AssetRejected(
                f"File too large: {len(content)} bytes. Maximum size is {self.max_bytes} bytes."
            )
        if not content:
            raise AssetRejected("File is empty")

    def get_url(self, cid: str) -> str:
        return f"{self.gateway_url}/ipfs/{cid}"

    async def upload_image(
        self,
        content: bytes,
        filename: str,
        mime_type: str,
        metadata: ImageMetadata | None = None,
    ) -> PinnedAsset:
        """Pin an image and return its content identifier.

        Raises:
            AssetRejected: Bad type or size; nothing was sent.
            AssetUploadError: The pinning service failed or answered badly.
        """
        self.check_image(content, mime_type)
        metadata = metadata or ImageMetadata()

        pin_metadata = json.dumps({
            "name": f"{metadata.image_type}-{filename}",
            "keyvalues": {
                "creatorId": metadata.creator_id,
                "imageType": metadata.image_type,
                "description": metadata.description,
                "uploadedAt": datetime.now(timezone.utc).isoformat(),
                "fileType": mime_type,
                "originalName": filename,
            },
        })

        try:
            async with self._client() as client:
                response = await client.post(
                    "/pinning/pinFileToIPFS",
                    files={"file": (filename, content, mime_type)},
                    data={"pinataMetadata": pin_metadata},
                )
        except httpx.HTTPError as e:
            log.error(f"Image upload failed for {filename}: {e}")
            raise AssetUploadError(f"Image upload failed: {e}") from e

        if response.status_code != 200:
            log.error(f"Image upload rejected by pinning service: HTTP {response.status_code}")
            raise AssetUploadError(f"Image upload failed: HTTP {response.status_code}")

        try:
            cid = response.json()["IpfsHash"]
        except (ValueError, KeyError, TypeError) as e:
            raise AssetUploadError("Image upload failed: malformed pinning response") from e

        log.info(f"Pinned image {filename} ({len(content)} bytes) as {cid}")
        return PinnedAsset(cid=cid, gateway_url=self.get_url(cid), size=len(content))

    async def unpin(self, cid: str) -> None:
        """Remove a pinned image.

        Raises:
            AssetUploadError: If the pinning service refuses or is unreachable.
        """
        try:
            async with self._client() as client:
                response = await client.delete(f"/pinning/unpin/{cid}")
        except httpx.HTTPError as e:
            raise AssetUploadError(f"Failed to unpin {cid}: {e}") from e

        if response.status_code != 200:
            raise AssetUploadError(f"Failed to unpin {cid}: HTTP {response.status_code}")
        log.info(f"Unpinned image {cid}")

    async def get_metadata(self, cid: str) -> Optional[dict[str, Any]]:
        """Pin-list entry for a CID, or None if unknown or unavailable."""
        try:
            async with self._client() as client:
                response = await client.get("/data/pinList", params={"hashContains": cid})
            if response.status_code != 200:
                log.warning(f"Metadata lookup for {cid} failed: HTTP {response.status_code}")
                return None
            rows = response.json().get("rows") or []
        except (httpx.HTTPError, ValueError, AttributeError, ConfigurationError) as e:
            log.warning(f"Metadata lookup for {cid} failed: {e}")
            return None
        return rows[0] if rows else None


# Global pinning client instance
_pinning_client: PinningClient | None = None


def get_pinning_client() -> PinningClient:
    """Get the global pinning client, built from configuration."""
    global _pinning_client

    if _pinning_client is None:
        from creator_credentials.config import (
            ASSET_MAX_BYTES,
            ASSET_TIMEOUT_SECONDS,
            GATEWAY_URL,
            PINNING_API_URL,
            PINNING_JWT,
        )

        _pinning_client = PinningClient(
            api_url=PINNING_API_URL,
            jwt=PINNING_JWT,
            gateway_url=GATEWAY_URL,
            max_bytes=ASSET_MAX_BYTES,
            timeout=ASSET_TIMEOUT_SECONDS,
        )

    return _pinning_client


def reset_pinning_client() -> None:
    """Reset the global pinning client (for testing)."""
    global _pinning_client
    _pinning_client = None
