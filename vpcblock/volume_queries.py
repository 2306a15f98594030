"""Looking up and listing volumes."""

from __future__ import annotations

from typing import Any

from .errors import user_error
from .models import Volume, VolumeList, is_valid_volume_id, next_start_token, volume_from_backend
from .session import SessionBase

MAX_LIMIT = 100
START_VOLUME_ID_NOT_FOUND_MESSAGE = "start parameter is not valid"


def validate_volume_id(volume_id: str) -> None:
    """Raise a user error unless ``volume_id`` has the shape of a volume ID."""
    if not is_valid_volume_id(volume_id):
        raise user_error("InvalidVolumeID", None, volume_id)


class VolumeQueries(SessionBase):
    """Read-only volume operations.

    The volume service offers ``get_volume(volume_id)``,
    ``get_volume_by_name(name)`` and ``list_volumes(limit, start, filters)``.
    The last returns a page with a ``volumes`` list of backend volumes and a
    ``next`` pagination link (or ``None``), or ``None`` for no page at all.
    """

    def get_volume(self, volume_id: str) -> Volume:
        """Return the volume with ``volume_id``."""
        self.logger.debug("Entry of GetVolume method...")
        try:
            validate_volume_id(volume_id)
            self.logger.info("Getting volume details from VPC provider... %s", volume_id)
            try:
                volume = self.retry_policy.run(
                    lambda: self.volume_service.get_volume(volume_id)
                )
            except Exception as exc:
                raise user_error("StorageFindFailedWithVolumeId", exc, volume_id) from exc
            self.logger.info("Successfully retrieved volume details from VPC backend %r", volume)
            return volume_from_backend(volume)
        finally:
            self.logger.debug("Exit from GetVolume method...")

    def get_volume_by_name(self, name: str) -> Volume:
        """Return the volume called ``name``."""
        self.logger.debug("Entry of GetVolumeByName method...")
        try:
            if not name:
                raise user_error("InvalidVolumeName", None, name)
            self.logger.info("Getting volume details from VPC provider... %s", name)
            try:
                volume = self.retry_policy.run(
                    lambda: self.volume_service.get_volume_by_name(name)
                )
            except Exception as exc:
                raise user_error("StorageFindFailedWithVolumeName", exc, name) from exc
            self.logger.info("Successfully retrieved volume details from VPC backend %r", volume)
            return volume_from_backend(volume)
        finally:
            self.logger.debug("Exit from GetVolumeByName method...")

    def list_volumes(
        self, limit: int, start: str, filters: dict[str, str] | None
    ) -> VolumeList:
        """Return one page of volumes, at most ``limit`` (capped at 100) of them.

        ``filters`` may hold ``resource_group.id``, ``zone.name`` and ``name``.
        """
        self.logger.info("Entry ListVolumes start=%r filters=%r", start, filters)
        try:
            if limit < 0:
                raise user_error("InvalidListVolumesLimit", None, limit)
            if limit > MAX_LIMIT:
                self.logger.warning(
                    "listVolumes requested max entries of %s, supports values <= %s "
                    "so defaulting value back to %s",
                    limit,
                    MAX_LIMIT,
                    MAX_LIMIT,
                )
                limit = MAX_LIMIT

            filters = filters or {}
            query = {
                "resource_group.id": filters.get("resource_group.id", ""),
                "zone.name": filters.get("zone.name", ""),
                "name": filters.get("name", ""),
            }
            try:
                page: Any = self.retry_policy.run(
                    lambda: self.volume_service.list_volumes(limit, start, query)
                )
            except Exception as exc:
                if START_VOLUME_ID_NOT_FOUND_MESSAGE in str(exc):
                    raise user_error("StartVolumeIDNotFound", exc, start) from exc
                raise user_error("ListVolumesFailed", exc) from exc

            result = VolumeList()
            if page is None:
                return result
            if page.next is not None:
                result.next = next_start_token(page.next)
                if not result.next:
                    self.logger.warning(
                        "Volumes.Next.Href is not in expected format: %r", page.next
                    )
            result.volumes = [volume_from_backend(item) for item in page.volumes or []]
            return result
        finally:
            self.logger.info("Exit ListVolumes start=%r filters=%r", start, filters)