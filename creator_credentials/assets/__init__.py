"""Image asset pinning."""

from creator_credentials.assets.pinning import (
    IMAGE_MIME_TYPES,
    ImageMetadata,
    PinnedAsset,
    PinningClient,
    get_pinning_client,
    reset_pinning_client,
)

__all__ = [
    "IMAGE_MIME_TYPES",
    "ImageMetadata",
    "PinnedAsset",
    "PinningClient",
    "get_pinning_client",
    "reset_pinning_client",
]
