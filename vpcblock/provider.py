"""The complete block storage provider session."""

from __future__ import annotations

from .attachments import AttachmentOperations
from .snapshot_queries import SnapshotQueries
from .snapshots import SnapshotOperations
from .volumes import VolumeOperations


class VPCSession(VolumeOperations, SnapshotOperations, SnapshotQueries, AttachmentOperations):
    """A provider session offering every volume, snapshot and attachment operation."""