from libstorage_client.models.volume import (
    RootResponse,
    ServiceVolumeMap,
    Volume,
    VolumeAttachment,
)

__all__ = [
    "RootResponse",
    "ServiceVolumeMap",
    "Volume",
    "VolumeAttachment",
]
