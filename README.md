# vpcblock

`vpcblock` holds the provider-side logic for managing block storage on a VPC cloud: volumes, snapshots and volume attachments. Each operation does four things:

- it checks the request;
- it calls a backend client that you supply;
- it retries failed calls under a `RetryPolicy`;
- it converts the backend's records into caller-facing data classes.

When an operation fails, it raises a `UserError`. The error carries a message ID, an error type, a description and, where there was one, the text of the backend error.

## Installation

```
pip install vpcblock
```

To install with the test dependencies:

```
pip install "vpcblock[test]"
```

## Modules

- `vpcblock.errors` holds the error types and two helper functions.
  - `Fault` and `ProviderError` are a message, a reason code, wrapped messages and properties. `ProviderError.code()` falls back to `"ErrorUnclassified"`.
  - `UserError` is what the operations raise. Its string form is `{Code:..., Type:..., Description:..., BackendError:..., RC:...}`. The `BackendError` part is left out when there is no backend error.
  - `BackendError` and `BackendErrorItem` are errors that backend clients raise. `BackendError.codes` lists the item codes.
  - `user_error(message_id, backend_error, *args)` builds a `UserError` from the built-in message catalogue.
  - `error_reason_code(error)` returns the reason code of a `ProviderError`. For any other error it returns `"ErrorUnclassified"`.
- `vpcblock.models` holds the data classes and conversion helpers.
  - Caller-facing types: `Volume`, `Snapshot`, `SnapshotParameters`, `VolumeList`, `SnapshotList`, `VolumeAttachmentRequest`, `VolumeAttachmentResponse` and `ExpandVolumeRequest`.
  - Backend records: `BackendVolume`, `BackendSnapshot` and `BackendVolumeAttachment`.
  - Helpers:
    - `volume_from_backend`, `snapshot_from_backend` and `attachment_response_from_backend` convert backend records into caller-facing types. A snapshot is `ready_to_use` when its lifecycle state is `"stable"`.
    - `next_start_token(href)` returns the `start=` value of a pagination link, or `""` when the link has none.
    - `is_valid_volume_id(volume_id)` accepts IDs made of five alphanumeric parts joined by `-`.
- `vpcblock.session` holds the shared session pieces.
  - `VPCConfig` has the fields `is_iks`, `vpc_block_provider_type`, `cluster_volume_label` and `g2_resource_group_id`.
  - `RetryPolicy` has the fields `max_attempts` (default 10), `interval` (default 10 seconds) and `sleep`. Its `run` method retries any failure, but raises at once on a backend error that is not worth retrying. Its `run_flexible` method repeats an `(error, done)` step until the step reports it is done.
  - `skip_retry` and `skip_retry_for_obvious_errors` decide from backend error codes whether to give up. The second one also honours the cluster-service codes `ST0005`, `ST0006` and `ST0008` when `is_iks` is true.
  - `SessionBase` holds the configuration, the backend clients, the retry policy and an optional `session_error`.
- `vpcblock.volume_queries` provides `validate_volume_id` and `VolumeQueries`, with `get_volume`, `get_volume_by_name` and `list_volumes`.
- `vpcblock.volumes` provides `validate_volume_request`, `round_up_size` and `VolumeOperations`, with `create_volume`, `delete_volume`, `expand_volume`, `wait_for_volume_deletion` and `wait_for_valid_volume_state`.
- `vpcblock.snapshots` provides `SnapshotOperations`, with `create_snapshot`, `delete_snapshot` and `wait_for_snapshot_deletion`.
- `vpcblock.snapshot_queries` provides `SnapshotQueries`, with `get_snapshot`, `get_snapshot_by_name` and `list_snapshots`.
- `vpcblock.attachments` provides `AttachmentOperations`, with `attach_volume`, `detach_volume` and `get_volume_attachment`.
- `vpcblock.provider` provides `VPCSession`, which combines all of the operations above.

## Usage

Every constructor argument of `VPCSession` is optional:

```python
VPCSession(
    config=None,
    *,
    volume_service=None,
    snapshot_service=None,
    attachment_service=None,
    retry_policy=None,
    session_error=None,
    logger=None,
)
```

A backend client is any object that has the methods the session calls:

| Client | Methods |
| --- | --- |
| Volume service | `create_volume`, `get_volume`, `get_volume_by_name`, `list_volumes`, `delete_volume`, `expand_volume` |
| Snapshot service | `create_snapshot`, `get_snapshot`, `get_snapshot_by_name`, `list_snapshots`, `delete_snapshot` |
| Attachment service | `attach_volume`, `detach_volume`, `get_volume_attachment`, `list_volume_attachments` |

This example uses an in-memory volume service:

```python
from vpcblock.errors import UserError
from vpcblock.models import BackendVolume
from vpcblock.provider import VPCSession
from vpcblock.session import RetryPolicy, VPCConfig


class InMemoryVolumes:
    def __init__(self):
        self.volumes = {}

    def get_volume(self, volume_id):
        return self.volumes[volume_id]


service = InMemoryVolumes()
service.volumes["16f293bf-0000-4bff-816f-e199c0c65db5"] = BackendVolume(
    id="16f293bf-0000-4bff-816f-e199c0c65db5", capacity=10, iops=1000, zone="zone-1"
)

session = VPCSession(
    VPCConfig(),
    volume_service=service,
    retry_policy=RetryPolicy(max_attempts=3, interval=0.0),
)

volume = session.get_volume("16f293bf-0000-4bff-816f-e199c0c65db5")
print(volume.volume_id, volume.capacity, volume.iops, volume.az)

try:
    session.get_volume("not-an-id")
except UserError as err:
    print(err.code, err)  # InvalidVolumeID {Code:InvalidVolumeID, ...}
```

## Behaviour

### Creating a volume

`create_volume` rejects a request in any of these cases:

- the name is missing or empty;
- the profile is missing;
- the capacity is missing;
- the capacity is below 10 and the profile is not `sdp`;
- IOPS greater than 0 is set on a profile other than `custom` or `sdp`;
- both the resource group ID and the resource group name are missing, or both are empty.

If the configuration has a `cluster_volume_label`, it is trimmed and split on commas, and each part is added to the tags that are sent.

A source snapshot CRN takes precedence over a source snapshot ID. If the backend reports `snapshot_id_not_found`, the error raised is `SnapshotIDNotFound`.

After creation the session polls until the volume's status is `available`. The returned volume carries the requested region. It also carries the requested tags when the backend returns none.

### Listing

`list_volumes` and `list_snapshots` reject a negative `limit` and lower any `limit` above 100 to 100.

If the backend error mentions `start parameter is not valid`, the error raised is `StartVolumeIDNotFound` or `StartSnapshotIDNotFound`.

The `next` token is taken from the `start=` value of the backend's next link. It is left empty when the link has no such value.

### Expanding a volume

`expand_volume` first reads the volume.

- If its capacity is already at least the requested capacity, it returns that capacity without changing anything.
- Otherwise it asks the backend to expand the volume, with the capacity passed through `round_up_size(capacity, GIB)`. It waits for the volume to be `available` and then returns the requested capacity.

### Deleting

`delete_volume` checks the volume ID. `delete_snapshot` rejects `None`.

Both then send the delete request and poll the backend until it reports the volume or snapshot as not found, or until the retry attempts run out.

When a snapshot delete fails with `snapshot_not_found`, the error raised is `SnapshotIDNotFound`.

### Attaching, detaching and looking up attachments

All three operations raise `InvalidServiceSession` when the session has a `session_error`. All three also require both an instance ID and a volume ID.

- **`get_volume_attachment`** fetches the attachment directly when the request has an attachment ID. Without one, it searches the instance's attachments for the requested volume.
- **`attach_volume`** returns the existing attachment when the volume is already attached and not detaching. Otherwise it attaches the volume. Outside a cluster service (`is_iks` false), the request's `cluster_id` is dropped.
- **`detach_volume`** returns `HTTPStatus.OK`. It counts a missing attachment, or one that is already detaching, as detached. Otherwise it detaches the volume.

### Operations that do nothing

These three operations exist but perform no work:

- `authorize_volume` returns `None`;
- `create_volume_from_snapshot` returns `None`;
- `get_volume_by_request_id` returns `None`.

## What this package does not do

- It does not include a client for the cloud's HTTP API.
- It does not obtain or refresh IAM tokens. A failed session is represented only by the `session_error` you pass in.
- It has no command-line interface.

You supply the volume, snapshot and attachment services yourself.

## Running the tests

```
pytest
```