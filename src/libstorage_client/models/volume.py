"""Pydantic models for volume records returned by the libStorage service."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _ServiceModel(BaseModel):
    # Service JSON is camelCase; unknown keys are kept so nothing is lost on re-encode.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")


class VolumeAttachment(_ServiceModel):
    """An attachment of a volume to an instance."""

    device_name: str = ""
    instance_id: dict[str, Any] | None = Field(default=None, alias="instanceID")
    status: str = ""
    volume_id: str = Field(default="", alias="volumeID")
    fields: dict[str, str] = {}


class Volume(_ServiceModel):
    """A storage volume as reported by one service."""

    id: str = ""
    name: str = ""
    type: str = ""
    size: int = 0
    iops: int = 0
    status: str = ""
    availability_zone: str = ""
    network_name: str = ""
    attachments: list[VolumeAttachment] = []
    fields: dict[str, str] = {}


# Volumes keyed by the name of the service that owns them.
ServiceVolumeMap = dict[str, list[Volume]]

RootResponse = list[str]
