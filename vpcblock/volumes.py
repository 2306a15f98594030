"""Creating, deleting and expanding volumes."""

from __future__ import annotations

import dataclasses

from .errors import SNAPSHOT_ID_NOT_FOUND, BackendError, user_error
from .models import BackendVolume, ExpandVolumeRequest, Volume, is_valid_volume_id, volume_from_backend
from .session import skip_retry
from .volume_queries import VolumeQueries

CUSTOM_PROFILE = "custom"
SDP_PROFILE = "sdp"
MIN_SIZE = 10
GIB = 1024 * 1024 * 1024
VALID_VOLUME_STATUS = "available"


def _to_int(value: str) -> int:
    try:
        return int(value)
    except ValueError:
        return 0


def validate_volume_request(
    request: Volume, cluster_volume_label: str
) -> tuple[str, str, int]:
    """Check a volume creation request.

    Returns the resource group ID, the resource group name and the requested
    IOPS. When ``cluster_volume_label`` is set, its comma separated labels are
    appended to ``request.tags``.
    """
    if request.name is None:
        raise user_error("InvalidVolumeName", None, None)
    if not request.name:
        raise user_error("InvalidVolumeName", None, request.name)

    iops = _to_int(request.iops) if request.iops is not None else 0

    if request.profile is None:
        raise user_error("VolumeProfileEmpty", None)
    if request.capacity is None:
        raise user_error("VolumeCapacityInvalid", None, None)
    if request.capacity < MIN_SIZE and request.profile != SDP_PROFILE:
        raise user_error("VolumeCapacityInvalid", None, request.capacity)
    if request.profile not in (CUSTOM_PROFILE, SDP_PROFILE) and iops > 0:
        raise user_error("VolumeProfileIopsInvalid", None)

    if request.resource_group_id is None and request.resource_group_name is None:
        raise user_error("EmptyResourceGroup", None)
    if not request.resource_group_id and not request.resource_group_name:
        raise user_error("EmptyResourceGroupIDandName", None)

    if cluster_volume_label:
        request.tags = [*request.tags, *cluster_volume_label.strip().split(",")]

    return request.resource_group_id or "", request.resource_group_name or "", iops


def round_up_size(size: int, unit: int) -> int:
    """Return how many ``unit``-sized blocks are needed to hold ``size``."""
    return (size + unit - 1) // unit


class VolumeOperations(VolumeQueries):
    """Volume changes.

    Besides the calls used by :class:`VolumeQueries`, the volume service offers
    ``create_volume(template)``, ``delete_volume(volume_id)`` and
    ``expand_volume(volume_id, template)``.
    """

    def create_volume(self, request: Volume) -> Volume:
        """Create a volume as described by ``request`` and wait until it is available."""
        self.logger.debug("Entry of CreateVolume method...")
        try:
            validated = dataclasses.replace(request, tags=list(request.tags))
            group_id, group_name, iops = validate_volume_request(
                validated, self.config.cluster_volume_label
            )
            self.logger.info("Successfully validated inputs for CreateVolume request...")

            template = BackendVolume(
                name=validated.name or "",
                capacity=validated.capacity or 0,
                iops=iops,
                user_tags=list(validated.tags),
                resource_group_id=group_id,
                resource_group_name=group_name,
                profile=validated.profile,
                zone=validated.az,
            )
            if validated.snapshot_crn:
                template.source_snapshot_crn = validated.snapshot_crn
            elif validated.snapshot_id:
                template.source_snapshot_id = validated.snapshot_id
            if validated.encryption_key_crn:
                template.encryption_key_crn = validated.encryption_key_crn

            try:
                volume = self.retry_policy.run(
                    lambda: self.volume_service.create_volume(template)
                )
            except Exception as exc:
                self.logger.debug("Failed to create volume from VPC provider: %r", exc)
                if (
                    isinstance(exc, BackendError)
                    and exc.codes
                    and exc.codes[0] == SNAPSHOT_ID_NOT_FOUND
                ):
                    raise user_error("SnapshotIDNotFound", exc) from exc
                raise user_error("FailedToPlaceOrder", exc) from exc

            self.logger.info("Successfully created volume from VPC provider %r", volume)
            try:
                self.wait_for_valid_volume_state(volume)
            except Exception as exc:
                raise user_error("VolumeNotInValidState", exc, volume.id) from exc

            response = volume_from_backend(volume)
            response.region = request.region
            if not response.tags and request.tags:
                response.tags = list(request.tags)
            self.logger.info("VolumeResponse %r", response)
            return response
        finally:
            self.logger.debug("Exit from CreateVolume method...")

    def delete_volume(self, volume: Volume | None) -> None:
        """Delete ``volume`` and wait until the backend no longer reports it."""
        self.logger.debug("Entry of DeleteVolume method...")
        try:
            if volume is None:
                raise user_error("InvalidVolumeID", None, None)
            if not is_valid_volume_id(volume.volume_id):
                raise user_error("InvalidVolumeID", None, volume.volume_id)

            volume_id = volume.volume_id
            try:
                self.retry_policy.run(lambda: self.volume_service.delete_volume(volume_id))
            except Exception as exc:
                raise user_error("failedToDeleteVolume", exc, volume_id) from exc

            try:
                self.wait_for_volume_deletion(volume_id)
            except Exception as exc:
                raise user_error("failedToDeleteVolume", exc, volume_id) from exc
            self.logger.info("Successfully deleted volume from VPC provider")
        finally:
            self.logger.debug("Exit from DeleteVolume method...")

    def expand_volume(self, request: ExpandVolumeRequest) -> int:
        """Grow a volume to ``request.capacity`` and return the resulting capacity."""
        self.logger.debug("Entry of ExpandVolume method...")
        try:
            existing = self.get_volume(request.volume_id)
            if existing.capacity is not None and existing.capacity >= request.capacity:
                return existing.capacity

            template = BackendVolume(capacity=round_up_size(request.capacity, GIB))
            try:
                volume = self.retry_policy.run(
                    lambda: self.volume_service.expand_volume(request.volume_id, template)
                )
            except Exception as exc:
                self.logger.debug("Failed to expand volume from VPC provider: %r", exc)
                raise user_error("FailedToExpandVolume", exc, request.volume_id) from exc

            try:
                self.wait_for_valid_volume_state(volume)
            except Exception as exc:
                raise user_error("VolumeNotInValidState", exc, volume.id) from exc
            self.logger.info("Volume got valid (available) state %r", volume)
            return request.capacity
        finally:
            self.logger.debug("Exit from ExpandVolume method...")

    def wait_for_volume_deletion(self, volume_id: str) -> bool:
        """Poll the backend until it stops returning ``volume_id``.

        Returns whether the deletion was confirmed before the attempts ran out.
        """
        deleted = False

        def poll() -> tuple[BaseException | None, bool]:
            nonlocal deleted
            try:
                self.volume_service.get_volume(volume_id)
            except Exception as exc:
                deleted = skip_retry(exc)
                return None, deleted
            return None, False

        self.retry_policy.run_flexible(poll)
        if deleted:
            self.logger.info("Volume got deleted: %s", volume_id)
        return deleted

    def wait_for_valid_volume_state(self, volume: BackendVolume) -> None:
        """Poll the backend until ``volume`` is available; raise if it never is."""
        volume_id = volume.id

        def poll() -> tuple[BaseException | None, bool]:
            try:
                current = self.volume_service.get_volume(volume_id)
            except Exception as exc:
                return exc, skip_retry(exc)
            if current is not None and current.status == VALID_VOLUME_STATUS:
                return None, True
            status = current.status if current is not None else ""
            return RuntimeError(f"volume {volume_id} is in '{status}' state"), False

        self.retry_policy.run_flexible(poll)
        self.logger.info("Volume %s is available", volume_id)