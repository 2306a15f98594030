"""Looking up and listing snapshots."""

from __future__ import annotations

from typing import Any

from .errors import user_error
from .models import Snapshot, SnapshotList, next_start_token, snapshot_from_backend
from .session import SessionBase

MAX_LIMIT = 100
START_SNAPSHOT_ID_NOT_FOUND_MESSAGE = "start parameter is not valid"


class SnapshotQueries(SessionBase):
    """Read-only snapshot operations.

    The snapshot service offers ``get_snapshot(snapshot_id)``,
    ``get_snapshot_by_name(name)`` and ``list_snapshots(limit, start, filters)``.
    The last returns a page with a ``snapshots`` list of backend snapshots and
    a ``next`` pagination link (or ``None``), or ``None`` for no page at all.
    """

    def get_snapshot(self, snapshot_id: str) -> Snapshot:
        """Return the snapshot with ``snapshot_id``."""
        self.logger.info("Entry GetSnapshot %r", snapshot_id)
        try:
            self.logger.info("Getting snapshot details from VPC provider... %r", snapshot_id)
            try:
                snapshot = self.retry_policy.run(
                    lambda: self.snapshot_service.get_snapshot(snapshot_id)
                )
            except Exception as exc:
                raise user_error("SnapshotIDNotFound", exc, snapshot_id) from exc
            self.logger.info("Successfully retrieved snapshot details %r", snapshot)
            response = snapshot_from_backend(snapshot)
            self.logger.info("SnapshotResponse %r", response)
            return response
        finally:
            self.logger.info("Exit GetSnapshot %r", snapshot_id)

    def get_snapshot_by_name(self, name: str) -> Snapshot:
        """Return the snapshot called ``name``."""
        self.logger.debug("Entry of GetSnapshotByName method...")
        try:
            if not name:
                raise user_error("InvalidSnapshotName", None, name)
            self.logger.info("Getting snapshot details from VPC provider... %r", name)
            try:
                snapshot = self.retry_policy.run(
                    lambda: self.snapshot_service.get_snapshot_by_name(name)
                )
            except Exception as exc:
                raise user_error("StorageFindFailedWithSnapshotName", exc, name) from exc
            self.logger.info("Successfully retrieved snapshot details %r", snapshot)
            response = snapshot_from_backend(snapshot)
            self.logger.info("SnapshotResponse %r", response)
            return response
        finally:
            self.logger.debug("Exit from GetSnapshotByName method...")

    def list_snapshots(
        self, limit: int, start: str, filters: dict[str, str] | None
    ) -> SnapshotList:
        """Return one page of snapshots, at most ``limit`` (capped at 100) of them.

        ``filters`` may hold ``resource_group.id``, ``name`` and ``source_volume.id``.
        """
        self.logger.info("Entry ListSnapshots")
        try:
            if limit < 0:
                raise user_error("InvalidListSnapshotLimit", None, limit)
            if limit > MAX_LIMIT:
                self.logger.warning(
                    "listSnapshots requested max entries of %s, supports values <= %s "
                    "so defaulting value back to %s",
                    limit,
                    MAX_LIMIT,
                    MAX_LIMIT,
                )
                limit = MAX_LIMIT

            filters = filters or {}
            query = {
                "resource_group.id": filters.get("resource_group.id", ""),
                "name": filters.get("name", ""),
                "source_volume.id": filters.get("source_volume.id", ""),
            }
            self.logger.info(
                "Getting snapshot list from VPC provider... start=%r filters=%r", start, filters
            )
            try:
                page: Any = self.retry_policy.run(
                    lambda: self.snapshot_service.list_snapshots(limit, start, query)
                )
            except Exception as exc:
                if START_SNAPSHOT_ID_NOT_FOUND_MESSAGE in str(exc):
                    raise user_error("StartSnapshotIDNotFound", exc, start) from exc
                raise user_error("ListSnapshotsFailed", exc) from exc

            result = SnapshotList()
            if page is None:
                return result
            if page.next is not None:
                result.next = next_start_token(page.next)
                if not result.next:
                    self.logger.warning(
                        "snapshots.Next.Href is not in expected format: %r", page.next
                    )
            result.snapshots = [snapshot_from_backend(item) for item in page.snapshots or []]
            return result
        finally:
            self.logger.info("Exit ListSnapshots")