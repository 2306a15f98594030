"""Creating and deleting snapshots."""

from __future__ import annotations

from .errors import (
    ERROR_REQUIRED_FIELD_MISSING,
    SNAPSHOT_NOT_FOUND,
    BackendError,
    user_error,
)
from .models import BackendSnapshot, Snapshot, SnapshotParameters, snapshot_from_backend
from .session import SessionBase, skip_retry


class SnapshotOperations(SessionBase):
    """Snapshot changes.

    The snapshot service offers ``create_snapshot(template)``,
    ``delete_snapshot(snapshot_id)`` and ``get_snapshot(snapshot_id)``.
    """

    def create_snapshot(
        self, source_volume_id: str, parameters: SnapshotParameters
    ) -> Snapshot:
        """Create a snapshot of the volume ``source_volume_id``."""
        self.logger.info("Entry CreateSnapshot %r %r", parameters, source_volume_id)
        try:
            if not source_volume_id:
                error = user_error(ERROR_REQUIRED_FIELD_MISSING, None, "SourceVolumeID")
                self.logger.error("snapshotRequest.SourceVolumeID is required: %s", error)
                raise error

            template = BackendSnapshot(
                name=parameters.name,
                source_volume_id=source_volume_id,
                resource_group_id=self.config.g2_resource_group_id,
            )
            try:
                created = self.retry_policy.run(
                    lambda: self.snapshot_service.create_snapshot(template)
                )
            except Exception as exc:
                raise user_error("SnapshotSpaceOrderFailed", exc) from exc

            self.logger.info("Successfully created snapshot %r", created)
            return snapshot_from_backend(created)
        finally:
            self.logger.info("Exit CreateSnapshot %r %r", parameters, source_volume_id)

    def delete_snapshot(self, snapshot: Snapshot | None) -> None:
        """Delete ``snapshot`` and wait until the backend no longer reports it."""
        self.logger.info("Entry DeleteSnapshot %r", snapshot)
        if snapshot is None:
            raise user_error("InvalidSnapshotID", None, None)
        try:
            snapshot_id = snapshot.snapshot_id
            try:
                self.retry_policy.run(
                    lambda: self.snapshot_service.delete_snapshot(snapshot_id)
                )
            except Exception as exc:
                if (
                    isinstance(exc, BackendError)
                    and exc.codes
                    and exc.codes[0] == SNAPSHOT_NOT_FOUND
                ):
                    raise user_error("SnapshotIDNotFound", exc) from exc
                raise user_error("FailedToDeleteSnapshot", exc) from exc

            try:
                self.wait_for_snapshot_deletion(snapshot_id)
            except Exception as exc:
                raise user_error("FailedToDeleteSnapshot", exc, snapshot_id) from exc
            self.logger.info("Successfully deleted the snapshot %s", snapshot_id)
        finally:
            self.logger.info("Exit DeleteSnapshot %s", snapshot.snapshot_id)

    def wait_for_snapshot_deletion(self, snapshot_id: str) -> bool:
        """Poll the backend until it stops returning ``snapshot_id``.

        Returns whether the deletion was confirmed before the attempts ran out.
        """
        deleted = False

        def poll() -> tuple[BaseException | None, bool]:
            nonlocal deleted
            try:
                self.snapshot_service.get_snapshot(snapshot_id)
            except Exception as exc:
                deleted = skip_retry(exc)
                return None, deleted
            return None, False

        self.retry_policy.run_flexible(poll)
        if deleted:
            self.logger.info("Snapshot got deleted: %s", snapshot_id)
        return deleted