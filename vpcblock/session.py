"""Session state, retry policies and the operations the provider does not support."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, TypeVar

from .errors import BackendError, user_error
from .models import DEFAULT_PROVIDER_TYPE, Snapshot, Volume

T = TypeVar("T")

_SKIP_ERROR_CODES: dict[str, bool] = {
    "validation_invalid_name": True,
    "volume_capacity_max": True,
    "volume_id_invalid": True,
    "volume_profile_iops_invalid": True,
    "volume_capacity_zero_or_negative": True,
    "not_found": True,
    "volume_not_found": True,
    "volume_name_not_found": True,
    "snapshot_not_found": True,
    "snapshot_id_not_found": True,
    "internal_error": False,
    "invalid_route": False,
}

_IKS_SKIP_ERROR_CODES: dict[str, bool] = {
    "ST0008": True,  # resources not found
    "ST0005": True,  # worker node could not be found
    "ST0006": True,  # volume could not be found
}


def skip_retry(error: BaseException) -> bool:
    """Tell whether retrying after ``error`` is pointless.

    The first backend error code with a known verdict decides.
    """
    if not isinstance(error, BackendError):
        return False
    for code in error.codes:
        if code in _SKIP_ERROR_CODES:
            return _SKIP_ERROR_CODES[code]
    return False


def skip_retry_for_obvious_errors(error: BaseException, is_iks: bool) -> bool:
    """Like :func:`skip_retry`, also honouring cluster-service codes when ``is_iks``."""
    if not isinstance(error, BackendError):
        return False
    if is_iks:
        for code in error.codes:
            if code in _IKS_SKIP_ERROR_CODES:
                return _IKS_SKIP_ERROR_CODES[code]
    return skip_retry(error)


@dataclass
class VPCConfig:
    """Provider settings."""

    is_iks: bool = False
    vpc_block_provider_type: str = DEFAULT_PROVIDER_TYPE
    cluster_volume_label: str = ""
    g2_resource_group_id: str = ""


@dataclass
class RetryPolicy:
    """How often and how far apart backend calls are retried."""

    max_attempts: int = 10
    interval: float = 10.0
    sleep: Callable[[float], Any] = field(default=time.sleep)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    def run(self, operation: Callable[[], T]) -> T:
        """Call ``operation`` until it succeeds, retrying on failure.

        Backend errors for which :func:`skip_retry` holds are raised at once;
        otherwise the last error is raised when the attempts are used up.
        """
        last_error: BaseException | None = None
        for attempt in range(self.max_attempts):
            if attempt:
                self.sleep(self.interval)
            try:
                return operation()
            except BackendError as exc:
                if skip_retry(exc):
                    raise
                last_error = exc
            except Exception as exc:  # noqa: BLE001 - any failure is retried
                last_error = exc
        assert last_error is not None
        raise last_error

    def run_flexible(
        self, operation: Callable[[], tuple[BaseException | None, bool]]
    ) -> None:
        """Call ``operation`` until it reports it is done.

        ``operation`` returns ``(error, done)``. The loop stops when ``done`` is
        true or the attempts are used up; the error of the last call, if any,
        is then raised.
        """
        error: BaseException | None = None
        for attempt in range(self.max_attempts):
            if attempt:
                self.sleep(self.interval)
            error, done = operation()
            if done:
                break
        if error is not None:
            raise error


class SessionBase:
    """State shared by all provider operations.

    The services are backend clients: ``volume_service``, ``snapshot_service``
    and ``attachment_service`` expose the backend API calls the operations use.
    """

    def __init__(
        self,
        config: VPCConfig | None = None,
        *,
        volume_service: Any = None,
        snapshot_service: Any = None,
        attachment_service: Any = None,
        retry_policy: RetryPolicy | None = None,
        session_error: BaseException | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.config = config if config is not None else VPCConfig()
        self.volume_service = volume_service
        self.snapshot_service = snapshot_service
        self.attachment_service = attachment_service
        self.retry_policy = retry_policy if retry_policy is not None else RetryPolicy()
        self.session_error = session_error
        self.logger = logger if logger is not None else logging.getLogger("vpcblock")

    def check_session(self) -> None:
        """Raise if the session could not be established."""
        if self.session_error is not None:
            raise user_error("InvalidServiceSession", self.session_error)

    def authorize_volume(self, authorization: Any) -> None:
        """Grant access to a volume; VPC volumes need no authorization."""
        self.logger.info("Entry AuthorizeVolume %r", authorization)
        self.logger.info("Exit AuthorizeVolume %r", authorization)
        return None

    def create_volume_from_snapshot(
        self, snapshot: Snapshot, tags: dict[str, str]
    ) -> Volume | None:
        """Not supported by this provider; returns ``None``."""
        self.logger.info("Entry CreateVolumeFromSnapshot %r", snapshot)
        self.logger.info("Exit CreateVolumeFromSnapshot %r", snapshot)
        return None

    def get_volume_by_request_id(self, request_id: str) -> Volume | None:
        """Not supported by this provider; returns ``None``."""
        self.logger.info("Entry GetVolumeByRequestID %r", request_id)
        self.logger.info("Exit GetVolumeByRequestID %r", request_id)
        return None