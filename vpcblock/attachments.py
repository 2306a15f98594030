"""Attaching volumes to instances, detaching them and looking attachments up."""

from __future__ import annotations

import dataclasses
from http import HTTPStatus

from .errors import ERROR_REQUIRED_FIELD_MISSING, user_error
from .models import (
    BackendVolume,
    BackendVolumeAttachment,
    VolumeAttachmentRequest,
    VolumeAttachmentResponse,
    attachment_response_from_backend,
)
from .session import SessionBase, skip_retry_for_obvious_errors

VPC_VOLUME_ATTACHMENT = "vpcVolumeAttachment"
STATUS_ATTACHED = "attached"
STATUS_ATTACHING = "attaching"
STATUS_DETACHING = "detaching"


class AttachmentOperations(SessionBase):
    """Volume attachment operations.

    The attachment service offers ``attach_volume(attachment)``,
    ``detach_volume(attachment)``, ``get_volume_attachment(attachment)`` and
    ``list_volume_attachments(attachment)``. Each takes a
    :class:`BackendVolumeAttachment`; the list call returns a page whose
    ``volume_attachments`` holds the attachments of the instance.
    """

    def attach_volume(self, request: VolumeAttachmentRequest) -> VolumeAttachmentResponse:
        """Attach a volume to an instance, or return the attachment that already exists."""
        self.logger.debug("Entry of AttachVolume method...")
        try:
            self.check_session()
            self.logger.info("Validating basic inputs for Attach method... %r", request)
            self._validate_attach_request(request)

            if not self.config.is_iks:
                request = dataclasses.replace(request, cluster_id=None)
            attachment = self._to_backend(request)
            response: VolumeAttachmentResponse | None = None

            def attempt() -> tuple[BaseException | None, bool]:
                nonlocal response
                self.logger.info("Checking if volume is already attached by other thread")
                try:
                    current = self.get_volume_attachment(request)
                except Exception:  # noqa: BLE001 - any lookup failure means "attach it"
                    current = None
                if current is not None and current.status != STATUS_DETACHING:
                    self.logger.info("Volume is already attached %r", current)
                    response = current
                    return None, True

                self.logger.info("Attaching volume from VPC provider... IKS=%s", self.config.is_iks)
                try:
                    result = self.attachment_service.attach_volume(attachment)
                except Exception as exc:  # noqa: BLE001
                    return exc, skip_retry_for_obvious_errors(exc, self.config.is_iks)
                response = attachment_response_from_backend(
                    result, self.config.vpc_block_provider_type
                )
                return None, True

            try:
                self.retry_policy.run_flexible(attempt)
            except Exception as exc:
                raise user_error(
                    "VolumeAttachFailed", exc, request.volume_id, request.instance_id
                ) from exc

            self.logger.info("Successfully attached volume from VPC provider %r", response)
            assert response is not None
            return response
        finally:
            self.logger.debug("Exit from AttachVolume method...")

    def detach_volume(self, request: VolumeAttachmentRequest) -> HTTPStatus:
        """Detach a volume from an instance.

        A volume that is not attached, or is already detaching, counts as
        detached. Returns the HTTP status of the outcome.
        """
        self.logger.debug("Entry of DetachVolume method...")
        try:
            self.check_session()
            self.logger.info("Validating basic inputs for detach method... %r", request)
            self._validate_attach_request(request)

            def attempt() -> tuple[BaseException | None, bool]:
                self.logger.info("Checking if volume is already attached")
                try:
                    current = self.get_volume_attachment(request)
                except Exception as exc:  # noqa: BLE001 - not found counts as detached
                    self.logger.info("No volume attachment found: %s", exc)
                    return None, True
                if current.status != STATUS_DETACHING:
                    self.logger.info("Found volume attachment %r", current)
                    attachment = self._to_backend(request)
                    attachment.id = current.attachment_id
                    self.logger.info("Detaching volume from VPC provider...")
                    try:
                        self.attachment_service.detach_volume(attachment)
                    except Exception as exc:  # noqa: BLE001
                        return exc, skip_retry_for_obvious_errors(exc, self.config.is_iks)
                return None, True

            try:
                self.retry_policy.run_flexible(attempt)
            except Exception as exc:
                self.logger.error("Volume detach failed with error: %s", exc)
                raise user_error(
                    "VolumeDetachFailed", exc, request.volume_id, request.instance_id, ""
                ) from exc

            self.logger.info("Successfully detached volume from VPC provider")
            return HTTPStatus.OK
        finally:
            self.logger.debug("Exit from DetachVolume method...")

    def get_volume_attachment(
        self, request: VolumeAttachmentRequest
    ) -> VolumeAttachmentResponse:
        """Return the attachment named by ``request``.

        With an attachment ID it is fetched directly; otherwise the instance's
        attachments are searched for the requested volume.
        """
        self.logger.debug("Entry of GetVolumeAttachment method... %r", request)
        try:
            self.check_session()
            self._validate_attach_request(request)
            attachment = self._to_backend(request)
            if attachment.id:
                response = self._get_by_id(attachment)
            else:
                response = self._get_by_volume_id(attachment)
            self.logger.info("Volume attachment response %r", response)
            return response
        finally:
            self.logger.debug("Exit from GetVolumeAttachment method...")

    def _get_by_id(self, attachment: BackendVolumeAttachment) -> VolumeAttachmentResponse:
        volume_id = attachment.volume.id if attachment.volume is not None else ""
        result: BackendVolumeAttachment | None = None

        def attempt() -> tuple[BaseException | None, bool]:
            nonlocal result
            try:
                result = self.attachment_service.get_volume_attachment(attachment)
            except Exception as exc:  # noqa: BLE001
                return exc, skip_retry_for_obvious_errors(exc, self.config.is_iks)
            return None, True

        try:
            self.retry_policy.run_flexible(attempt)
        except Exception as exc:
            raise user_error(
                "VolumeAttachFindFailed", exc, volume_id, attachment.instance_id
            ) from exc
        if result is None:
            raise user_error(
                "VolumeAttachFindFailed",
                LookupError("no VolumeAttachment Found"),
                volume_id,
                attachment.instance_id,
            )
        response = attachment_response_from_backend(result, self.config.vpc_block_provider_type)
        self.logger.info("Successfully retrieved volume attachment %r", response)
        return response

    def _get_by_volume_id(
        self, attachment: BackendVolumeAttachment
    ) -> VolumeAttachmentResponse:
        volume_id = attachment.volume.id if attachment.volume is not None else ""
        page = None

        def attempt() -> tuple[BaseException | None, bool]:
            nonlocal page
            try:
                page = self.attachment_service.list_volume_attachments(attachment)
            except Exception as exc:  # noqa: BLE001
                return exc, skip_retry_for_obvious_errors(exc, self.config.is_iks)
            return None, True

        try:
            self.retry_policy.run_flexible(attempt)
        except Exception as exc:
            raise user_error(
                "VolumeAttachFindFailed", exc, volume_id, attachment.instance_id
            ) from exc

        items = getattr(page, "volume_attachments", None) or []
        for item in items:
            if item.volume is not None and item.volume.id == volume_id:
                self.logger.info("Successfully found volume attachment %r", item)
                return attachment_response_from_backend(
                    item, self.config.vpc_block_provider_type
                )

        self.logger.error("Volume attachment not found for volume %s", volume_id)
        raise user_error(
            "VolumeAttachFindFailed",
            LookupError("no VolumeAttachment Found"),
            volume_id,
            attachment.instance_id,
        )

    def _validate_attach_request(self, request: VolumeAttachmentRequest) -> None:
        if not request.instance_id:
            error = user_error(ERROR_REQUIRED_FIELD_MISSING, None, "InstanceID")
            self.logger.error("volumeAttachRequest.InstanceID is required: %s", error)
            raise error
        if not request.volume_id:
            error = user_error(ERROR_REQUIRED_FIELD_MISSING, None, "VolumeID")
            self.logger.error("volumeAttachRequest.VolumeID is required: %s", error)
            raise error

    @staticmethod
    def _to_backend(request: VolumeAttachmentRequest) -> BackendVolumeAttachment:
        return BackendVolumeAttachment(
            id=request.attachment_id,
            volume=BackendVolume(id=request.volume_id),
            instance_id=request.instance_id,
            cluster_id=request.cluster_id,
        )