from datetime import datetime, timezone

from vpcblock.models import (
    SNAPSHOT_READY_STATE,
    BackendSnapshot,
    BackendVolume,
    BackendVolumeAttachment,
    ExpandVolumeRequest,
    SnapshotList,
    VolumeAttachmentRequest,
    VolumeList,
    attachment_response_from_backend,
    is_valid_volume_id,
    next_start_token,
    snapshot_from_backend,
    volume_from_backend,
)

CREATED = datetime(2024, 1, 2, tzinfo=timezone.utc)


def test_volume_from_backend_maps_fields():
    backend = BackendVolume(
        id="16f293bf-test-4bff-816f-e199c0c65db5",
        name="test-volume-name1",
        status="OK",
        capacity=10,
        iops=1000,
        zone="test-zone-1",
        user_tags=["a", "b"],
        created_at=CREATED,
    )
    volume = volume_from_backend(backend)
    assert volume.volume_id == backend.id
    assert volume.name == backend.name
    assert volume.capacity == backend.capacity
    assert int(volume.iops) == backend.iops
    assert volume.az == backend.zone
    assert volume.tags == backend.user_tags
    assert volume.tags is not backend.user_tags
    assert volume.creation_time == CREATED


def test_volume_from_backend_without_zone():
    volume = volume_from_backend(BackendVolume(id="x"))
    assert volume.az == ""
    assert volume.resource_group_id is None


def test_snapshot_from_backend_stable_is_ready():
    backend = BackendSnapshot(
        id="16f293bf-test-4bff-816f-e199c0c65db5",
        name="test-snapshot-name",
        lifecycle_state=SNAPSHOT_READY_STATE,
        source_volume_id="16f293bf-test-4bff-816f-e199c0c65db6",
        created_at=CREATED,
        size=100,
    )
    snapshot = snapshot_from_backend(backend)
    assert snapshot.snapshot_id == backend.id
    assert snapshot.volume_id == backend.source_volume_id
    assert snapshot.snapshot_size == 100
    assert snapshot.snapshot_creation_time == CREATED
    assert snapshot.ready_to_use is True


def test_snapshot_from_backend_pending_is_not_ready():
    snapshot = snapshot_from_backend(BackendSnapshot(id="s", lifecycle_state="pending"))
    assert snapshot.ready_to_use is False


def test_attachment_response_from_backend():
    attachment = BackendVolumeAttachment(
        id="16f293bf-test-4bff-816f-e199c0c65db5",
        name="test volume name",
        status="stable",
        volume=BackendVolume(id="volume-id1"),
        instance_id="instance-id1",
    )
    response = attachment_response_from_backend(attachment, "g2")
    assert response.volume_id == "volume-id1"
    assert response.attachment_id == attachment.id
    assert response.instance_id == "instance-id1"
    assert response.status == "stable"
    assert response.provider_type == "g2"


def test_attachment_response_without_volume():
    response = attachment_response_from_backend(BackendVolumeAttachment(id="a"), "g2")
    assert response.volume_id == ""


def test_next_start_token():
    href = (
        "https://eu-gb.iaas.cloud.ibm.com/v1/volumes?start=23b154fr-test-4bff-816f-f213s1y34gj8"
        "&limit=1&zone.name=test-zone-1"
    )
    assert next_start_token(href) == "23b154fr-test-4bff-816f-f213s1y34gj8"


def test_next_start_token_unexpected_format():
    href = (
        "https://eu-gb.iaas.cloud.ibm.com/v1/volumes?invalid=16f293bf-test-4bff-816f-e199c0c65db5"
        "&limit=50"
    )
    assert next_start_token(href) == ""


def test_volume_id_validation():
    assert is_valid_volume_id("16f293bf-test-4bff-816f-e199c0c65db5") is True
    assert is_valid_volume_id("wrong volume ID") is False
    assert is_valid_volume_id("Wrong volume ID") is False
    assert is_valid_volume_id("") is False


def test_default_lists_are_independent():
    first, second = VolumeList(), VolumeList()
    first.volumes.append(volume_from_backend(BackendVolume(id="v")))
    assert second.volumes == []
    assert SnapshotList().snapshots == []


def test_requests_keep_values():
    request = VolumeAttachmentRequest(volume_id="volume-id1", instance_id="instance-id1")
    assert request.cluster_id is None
    assert request.attachment_id == ""
    assert ExpandVolumeRequest(volume_id="v", capacity=20).capacity == 20