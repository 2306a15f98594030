"""Data types exchanged with callers and with the backend API."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime

SNAPSHOT_READY_STATE = "stable"
DEFAULT_PROVIDER_TYPE = "g2"

_ID_PART = re.compile(r"^[A-Za-z0-9]+$")
_VOLUME_ID_PARTS = 5


@dataclass
class Volume:
    """A block volume as seen by callers of the provider."""

    volume_id: str = ""
    name: str | None = None
    capacity: int | None = None
    iops: str | None = None
    az: str = ""
    region: str = ""
    status: str = ""
    crn: str = ""
    tags: list[str] = field(default_factory=list)
    profile: str | None = None
    resource_group_id: str | None = None
    resource_group_name: str | None = None
    encryption_key_crn: str = ""
    snapshot_id: str = ""
    snapshot_crn: str = ""
    creation_time: datetime | None = None


@dataclass
class Snapshot:
    """A snapshot as seen by callers of the provider."""

    volume_id: str = ""
    snapshot_id: str = ""
    name: str = ""
    snapshot_size: int = 0
    snapshot_creation_time: datetime | None = None
    ready_to_use: bool = False
    snapshot_crn: str = ""
    href: str = ""


@dataclass
class SnapshotParameters:
    """Parameters for creating a snapshot."""

    name: str = ""
    tags: dict[str, str] = field(default_factory=dict)


@dataclass
class VolumeList:
    """One page of volumes and the start token of the next page."""

    volumes: list[Volume] = field(default_factory=list)
    next: str = ""


@dataclass
class SnapshotList:
    """One page of snapshots and the start token of the next page."""

    snapshots: list[Snapshot] = field(default_factory=list)
    next: str = ""


@dataclass
class VolumeAttachmentRequest:
    """A request to attach, detach or look up a volume attachment."""

    volume_id: str = ""
    instance_id: str = ""
    attachment_id: str = ""
    cluster_id: str | None = None


@dataclass
class VolumeAttachmentResponse:
    """The state of a volume attachment."""

    volume_id: str = ""
    instance_id: str = ""
    attachment_id: str = ""
    name: str = ""
    status: str = ""
    device_id: str = ""
    href: str = ""
    cluster_id: str | None = None
    provider_type: str = DEFAULT_PROVIDER_TYPE


@dataclass
class ExpandVolumeRequest:
    """A request to grow a volume to ``capacity`` GiB."""

    volume_id: str = ""
    capacity: int = 0


@dataclass
class BackendVolume:
    """A volume in the backend API's representation."""

    id: str = ""
    name: str = ""
    capacity: int = 0
    iops: int = 0
    status: str = ""
    crn: str = ""
    zone: str | None = None
    user_tags: list[str] = field(default_factory=list)
    profile: str | None = None
    resource_group_id: str = ""
    resource_group_name: str = ""
    encryption_key_crn: str = ""
    source_snapshot_id: str = ""
    source_snapshot_crn: str = ""
    created_at: datetime | None = None


@dataclass
class BackendSnapshot:
    """A snapshot in the backend API's representation."""

    id: str = ""
    name: str = ""
    lifecycle_state: str = ""
    source_volume_id: str = ""
    resource_group_id: str = ""
    size: int = 0
    crn: str = ""
    href: str = ""
    created_at: datetime | None = None


@dataclass
class BackendVolumeAttachment:
    """A volume attachment in the backend API's representation."""

    id: str = ""
    name: str = ""
    status: str = ""
    volume: BackendVolume | None = None
    instance_id: str = ""
    cluster_id: str | None = None
    device_id: str = ""
    href: str = ""


def volume_from_backend(volume: BackendVolume) -> Volume:
    """Convert a backend volume to the caller-facing volume."""
    return Volume(
        volume_id=volume.id,
        name=volume.name,
        capacity=volume.capacity,
        iops=str(volume.iops),
        az=volume.zone or "",
        status=volume.status,
        crn=volume.crn,
        tags=list(volume.user_tags),
        profile=volume.profile,
        resource_group_id=volume.resource_group_id or None,
        resource_group_name=volume.resource_group_name or None,
        encryption_key_crn=volume.encryption_key_crn,
        snapshot_id=volume.source_snapshot_id,
        snapshot_crn=volume.source_snapshot_crn,
        creation_time=volume.created_at,
    )


def snapshot_from_backend(snapshot: BackendSnapshot) -> Snapshot:
    """Convert a backend snapshot to the caller-facing snapshot."""
    return Snapshot(
        volume_id=snapshot.source_volume_id,
        snapshot_id=snapshot.id,
        name=snapshot.name,
        snapshot_size=snapshot.size,
        snapshot_creation_time=snapshot.created_at,
        ready_to_use=snapshot.lifecycle_state == SNAPSHOT_READY_STATE,
        snapshot_crn=snapshot.crn,
        href=snapshot.href,
    )


def attachment_response_from_backend(
    attachment: BackendVolumeAttachment, provider_type: str
) -> VolumeAttachmentResponse:
    """Convert a backend attachment to the caller-facing attachment response."""
    return VolumeAttachmentResponse(
        volume_id=attachment.volume.id if attachment.volume is not None else "",
        instance_id=attachment.instance_id,
        attachment_id=attachment.id,
        name=attachment.name,
        status=attachment.status,
        device_id=attachment.device_id,
        href=attachment.href,
        cluster_id=attachment.cluster_id,
        provider_type=provider_type,
    )


def next_start_token(href: str) -> str:
    """Extract the ``start`` query value from a pagination link, or ``""``."""
    if "start=" not in href:
        return ""
    return href.split("start=")[1].split("&")[0]


def is_valid_volume_id(volume_id: str) -> bool:
    """Tell whether ``volume_id`` has the shape of a volume ID."""
    parts = volume_id.split("-")
    return len(parts) == _VOLUME_ID_PARTS and all(_ID_PART.match(part) for part in parts)