from types import SimpleNamespace

import pytest

from vpcblock.errors import (
    ERROR_UNCLASSIFIED,
    BackendError,
    BackendErrorItem,
    UserError,
    error_reason_code,
)
from vpcblock.models import BackendVolume
from vpcblock.session import RetryPolicy
from vpcblock.volume_queries import VolumeQueries, validate_volume_id

VOLUME_ID = "16f293bf-test-4bff-816f-e199c0c65db5"
SECOND_ID = "23b154fr-test-4bff-816f-f213s1y34gj8"


class FakeVolumeService:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.calls = []

    def _answer(self, name, *args):
        self.calls.append((name, args))
        if self.error is not None:
            raise self.error
        return self.result

    def get_volume(self, volume_id):
        return self._answer("get_volume", volume_id)

    def get_volume_by_name(self, name):
        return self._answer("get_volume_by_name", name)

    def list_volumes(self, limit, start, filters):
        return self._answer("list_volumes", limit, start, filters)


def make_session(service):
    return VolumeQueries(
        volume_service=service,
        retry_policy=RetryPolicy(max_attempts=2, sleep=lambda _: None),
    )


def backend_volume(volume_id=VOLUME_ID, name="test-volume-name", zone="test-zone"):
    return BackendVolume(
        id=volume_id, name=name, status="OK", capacity=10, iops=1000, zone=zone
    )


def test_validate_volume_id_accepts_valid_id():
    validate_volume_id(VOLUME_ID)
    with pytest.raises(UserError) as info:
        validate_volume_id("Wrong volume ID")
    assert info.value.code == "InvalidVolumeID"


def test_get_volume_ok():
    service = FakeVolumeService(result=backend_volume())
    volume = make_session(service).get_volume(VOLUME_ID)
    assert volume.volume_id == VOLUME_ID
    assert volume.name == "test-volume-name"
    assert volume.capacity == 10
    assert volume.iops == "1000"
    assert volume.az == "test-zone"


def test_get_volume_wrong_id_is_rejected_before_backend_call():
    service = FakeVolumeService(result=backend_volume("wrong-wrong-id"), error=Exception(ERROR_UNCLASSIFIED))
    with pytest.raises(UserError) as info:
        make_session(service).get_volume("Wrong volume ID")
    assert info.value.code == "InvalidVolumeID"
    assert info.value.description == "'Wrong volume ID' volume ID is not valid."
    assert error_reason_code(info.value) == ERROR_UNCLASSIFIED
    assert service.calls == []


def test_get_volume_backend_failure():
    service = FakeVolumeService(error=Exception(ERROR_UNCLASSIFIED))
    with pytest.raises(UserError) as info:
        make_session(service).get_volume(VOLUME_ID)
    assert info.value.code == "StorageFindFailedWithVolumeId"
    assert info.value.backend_error == ERROR_UNCLASSIFIED
    assert info.value.rc == 404
    assert error_reason_code(info.value) == ERROR_UNCLASSIFIED
    assert len(service.calls) == 2


def test_get_volume_not_found_is_not_retried():
    service = FakeVolumeService(error=BackendError([BackendErrorItem("volume_not_found")]))
    with pytest.raises(UserError):
        make_session(service).get_volume(VOLUME_ID)
    assert len(service.calls) == 1


def test_get_volume_by_name_ok():
    service = FakeVolumeService(result=backend_volume())
    volume = make_session(service).get_volume_by_name("Test volume")
    assert volume.volume_id == VOLUME_ID
    assert service.calls == [("get_volume_by_name", ("Test volume",))]


def test_get_volume_by_name_backend_failure():
    service = FakeVolumeService(error=Exception(ERROR_UNCLASSIFIED))
    with pytest.raises(UserError) as info:
        make_session(service).get_volume_by_name("Wrong volume name")
    assert info.value.code == "StorageFindFailedWithVolumeName"
    assert error_reason_code(info.value) == ERROR_UNCLASSIFIED


def test_get_volume_by_name_empty_name():
    service = FakeVolumeService(error=Exception(ERROR_UNCLASSIFIED))
    with pytest.raises(UserError) as info:
        make_session(service).get_volume_by_name("")
    assert info.value.code == "InvalidVolumeName"
    assert service.calls == []


def two_volumes():
    return [backend_volume(VOLUME_ID, "test-volume-name1", "test-zone-1"),
            backend_volume(SECOND_ID, "test-volume-name2", "test-zone-2")]


@pytest.mark.parametrize(
    "filters, volumes, next_href, expected_next",
    [
        ({"zone.name": "test-zone-1"}, two_volumes(), None, ""),
        (
            {"zone.name": "test-zone-1"},
            two_volumes(),
            "https://eu-gb.iaas.cloud.ibm.com/v1/volumes?start=" + SECOND_ID
            + "&limit=1&zone.name=test-zone-1",
            SECOND_ID,
        ),
        ({"zone.name": "test-zone"}, [], None, ""),
        ({"name": "test-volume-name1"}, two_volumes()[:1], None, ""),
        ({"resource_group.id": "12345xy4567z89776"}, two_volumes(), None, ""),
        ({"resource_group.id": "12345xy4567z89776"}, [], None, ""),
        (None, two_volumes(), None, ""),
        (
            None,
            two_volumes(),
            "https://eu-gb.iaas.cloud.ibm.com/v1/volumes?invalid=" + VOLUME_ID + "&limit=50",
            "",
        ),
    ],
)
def test_list_volumes(filters, volumes, next_href, expected_next):
    page = SimpleNamespace(volumes=volumes, next=next_href)
    service = FakeVolumeService(result=page)
    result = make_session(service).list_volumes(1, "", filters)
    assert result.next == expected_next
    assert [v.volume_id for v in result.volumes] == [v.id for v in volumes]
    for listed, original in zip(result.volumes, volumes):
        assert listed.capacity == original.capacity
        assert int(listed.iops) == original.iops
        assert listed.az == original.zone


def test_list_volumes_passes_filters():
    service = FakeVolumeService(result=SimpleNamespace(volumes=[], next=None))
    make_session(service).list_volumes(5, "start-id", {"zone.name": "z1", "other": "x"})
    assert service.calls == [
        ("list_volumes", (5, "start-id", {"resource_group.id": "", "zone.name": "z1", "name": ""}))
    ]


def test_list_volumes_caps_limit():
    service = FakeVolumeService(result=SimpleNamespace(volumes=[], next=None))
    make_session(service).list_volumes(500, "", None)
    assert service.calls[0][1][0] == 100


def test_list_volumes_none_page():
    service = FakeVolumeService(result=None)
    result = make_session(service).list_volumes(10, "", None)
    assert result.volumes == []
    assert result.next == ""


def test_list_volumes_backend_failure():
    service = FakeVolumeService(error=Exception("Unable to fetch list of volumes."))
    with pytest.raises(UserError) as info:
        make_session(service).list_volumes(0, "", {"name": "test-volume-name1"})
    assert info.value.code == "ListVolumesFailed"
    assert error_reason_code(info.value) == ERROR_UNCLASSIFIED


def test_list_volumes_invalid_limit():
    service = FakeVolumeService(result=SimpleNamespace(volumes=[], next=None))
    with pytest.raises(UserError) as info:
        make_session(service).list_volumes(-1, "", None)
    assert info.value.code == "InvalidListVolumesLimit"
    assert "'-1'" in info.value.description
    assert service.calls == []


def test_list_volumes_invalid_start():
    service = FakeVolumeService(
        error=Exception("The volume with the ID specified as the page start parameter is not valid.")
    )
    with pytest.raises(UserError) as info:
        make_session(service).list_volumes(0, "invalid-start-vol-id", None)
    assert info.value.code == "StartVolumeIDNotFound"
    assert "invalid-start-vol-id" in info.value.description