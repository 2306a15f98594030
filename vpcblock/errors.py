"""Error types raised by the block storage provider."""

from __future__ import annotations

from dataclasses import dataclass, field

ERROR_UNCLASSIFIED = "ErrorUnclassified"
ERROR_UNKNOWN_PROVIDER = "ErrorUnknownProvider"
ERROR_REQUIRED_FIELD_MISSING = "ErrorRequiredFieldMissing"

# Backend error codes that the provider reacts to.
SNAPSHOT_ID_NOT_FOUND = "snapshot_id_not_found"
SNAPSHOT_NOT_FOUND = "snapshot_not_found"
VOLUME_NOT_FOUND = "volume_not_found"


@dataclass
class Fault:
    """A fault condition: message, reason code, wrapped messages and properties."""

    message: str = ""
    reason_code: str = ""
    wrapped: list[str] | None = None
    properties: dict[str, str] | None = None


class ProviderError(Exception):
    """An error that carries a :class:`Fault`."""

    def __init__(self, fault: Fault | None = None) -> None:
        self.fault = fault if fault is not None else Fault()
        super().__init__(self.fault.message)

    def __str__(self) -> str:
        return self.fault.message

    def code(self) -> str:
        """Return the reason code, falling back to the unclassified code."""
        return self.fault.reason_code or ERROR_UNCLASSIFIED

    def wrapped(self) -> list[str] | None:
        return self.fault.wrapped

    def properties(self) -> dict[str, str] | None:
        return self.fault.properties


class UserError(Exception):
    """A user-facing error built from the message catalogue."""

    def __init__(
        self,
        code: str,
        type: str,
        description: str,
        backend_error: str = "",
        rc: int = 500,
    ) -> None:
        self.code = code
        self.type = type
        self.description = description
        self.backend_error = backend_error
        self.rc = rc
        super().__init__(description)

    def __str__(self) -> str:
        if self.backend_error:
            return (
                f"{{Code:{self.code}, Type:{self.type}, Description:{self.description}, "
                f"BackendError:{self.backend_error}, RC:{self.rc}}}"
            )
        return f"{{Code:{self.code}, Type:{self.type}, Description:{self.description}, RC:{self.rc}}}"


@dataclass
class BackendErrorItem:
    """One entry of an error reported by the backend API."""

    code: str
    message: str = ""
    more_info: str = ""


class BackendError(Exception):
    """An error reported by the backend API, holding one or more items."""

    def __init__(
        self,
        errors: list[BackendErrorItem] | None = None,
        status_code: int = 0,
        trace: str = "",
    ) -> None:
        self.errors = list(errors or [])
        self.status_code = status_code
        self.trace = trace
        super().__init__(str(self))

    def __str__(self) -> str:
        return "; ".join(item.message or item.code for item in self.errors)

    @property
    def codes(self) -> list[str]:
        return [item.code for item in self.errors]


@dataclass(frozen=True)
class _Message:
    type: str
    description: str
    rc: int = field(default=500)


_MESSAGES: dict[str, _Message] = {
    "InvalidServiceSession": _Message(
        "RetrivalFailed",
        "The Service Session was not found due to error while generating IAM token.",
        500,
    ),
    ERROR_REQUIRED_FIELD_MISSING: _Message(
        "InvalidRequest", "'%s' is required to complete the operation.", 400
    ),
    "VolumeAttachFailed": _Message(
        "VolumeAttachFailed",
        "Failed to Attach volume for  '%s' volume ID with '%s' Instance ID.",
        500,
    ),
    "VolumeDetachFailed": _Message(
        "VolumeDetachFailed",
        "Failed to Detach volume for  '%s' volume ID with '%s' Instance ID and '%s' attachment ID.",
        500,
    ),
    "VolumeAttachFindFailed": _Message(
        "RetrivalFailed", "Failed to find '%s' volume ID with '%s' Instance ID .", 404
    ),
    "SnapshotSpaceOrderFailed": _Message("ProvisioningFailed", "Snapshot creation failed.", 500),
    "InvalidVolumeName": _Message("InvalidRequest", "'%s' volume name is not valid.", 400),
    "VolumeProfileEmpty": _Message(
        "InvalidRequest", "Volume profile is empty, a valid profile name is required.", 400
    ),
    "VolumeCapacityInvalid": _Message(
        "InvalidRequest", "'%s' is not a valid volume capacity.", 400
    ),
    "VolumeProfileIopsInvalid": _Message(
        "InvalidRequest", "Volume IOPS can only be set for custom or sdp profiles.", 400
    ),
    "EmptyResourceGroup": _Message(
        "InvalidRequest", "Resource group information could not be found.", 400
    ),
    "EmptyResourceGroupIDandName": _Message(
        "InvalidRequest", "Resource group ID or name could not be found.", 400
    ),
    "SnapshotIDNotFound": _Message("RetrivalFailed", "Failed to find '%s' snapshot ID.", 404),
    "FailedToPlaceOrder": _Message(
        "ProvisioningFailed", "Failed to create volume with the storage provider.", 500
    ),
    "VolumeNotInValidState": _Message(
        "RetrivalFailed",
        "Volume '%s' did not reach a valid (available) state within the timeout period.",
        500,
    ),
    "InvalidSnapshotID": _Message("InvalidRequest", "'%s' is not a valid snapshot ID.", 400),
    "FailedToDeleteSnapshot": _Message(
        "DeletionFailed", "Failed to delete '%s' snapshot ID.", 500
    ),
    "failedToDeleteVolume": _Message("DeletionFailed", "Failed to delete '%s' volume ID.", 500),
    "InvalidVolumeID": _Message("InvalidRequest", "'%s' volume ID is not valid.", 400),
    "FailedToExpandVolume": _Message(
        "ProvisioningFailed", "Failed to expand '%s' volume ID.", 500
    ),
    "InvalidSnapshotName": _Message("InvalidRequest", "'%s' snapshot name is not valid.", 400),
    "StorageFindFailedWithSnapshotName": _Message(
        "RetrivalFailed", "Failed to find '%s' snapshot name.", 404
    ),
    "StorageFindFailedWithVolumeId": _Message(
        "RetrivalFailed", "Failed to find '%s' volume ID.", 404
    ),
    "StorageFindFailedWithVolumeName": _Message(
        "RetrivalFailed", "Failed to find '%s' volume name.", 404
    ),
    "InvalidListVolumesLimit": _Message(
        "InvalidRequest",
        "The value '%s' specified in the limit parameter of the list volume call is not valid.",
        400,
    ),
    "StartVolumeIDNotFound": _Message(
        "InvalidRequest",
        "The volume with the ID '%s' specified as the page start parameter is not valid.",
        400,
    ),
    "ListVolumesFailed": _Message("RetrivalFailed", "Unable to fetch list of volumes.", 500),
    "InvalidListSnapshotLimit": _Message(
        "InvalidRequest",
        "The value '%s' specified in the limit parameter of the list snapshot call is not valid.",
        400,
    ),
    "StartSnapshotIDNotFound": _Message(
        "InvalidRequest",
        "The snapshot with the ID '%s' specified as the page start parameter is not valid.",
        400,
    ),
    "ListSnapshotsFailed": _Message("RetrivalFailed", "Unable to fetch list of snapshots.", 500),
}


def _render(template: str, args: tuple[object, ...]) -> str:
    slots = template.count("%s")
    values = ["" if arg is None else str(arg) for arg in args]
    values = (values + [""] * slots)[:slots]
    return template % tuple(values)


def user_error(message_id: str, backend_error: BaseException | None, *args: object) -> UserError:
    """Build the user error registered under ``message_id``.

    ``args`` fill the placeholders of the description; ``backend_error``, when
    given, is recorded as the underlying cause.
    """
    backend_text = "" if backend_error is None else str(backend_error)
    message = _MESSAGES.get(message_id)
    if message is None:
        return UserError(
            message_id, "Unclassified", f"Unknown error '{message_id}'.", backend_text, 500
        )
    return UserError(
        message_id,
        message.type,
        _render(message.description, args),
        backend_text,
        message.rc,
    )


def error_reason_code(error: BaseException) -> str:
    """Return the reason code of ``error``; unclassified unless it is a provider error."""
    if isinstance(error, ProviderError):
        return error.code()
    return ERROR_UNCLASSIFIED