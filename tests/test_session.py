import logging

import pytest

from vpcblock.errors import BackendError, BackendErrorItem, UserError
from vpcblock.models import Snapshot, Volume
from vpcblock.session import (
    RetryPolicy,
    SessionBase,
    VPCConfig,
    skip_retry,
    skip_retry_for_obvious_errors,
)


def make_policy(attempts=3):
    sleeps = []
    return RetryPolicy(max_attempts=attempts, interval=0.5, sleep=sleeps.append), sleeps


def backend(*codes):
    return BackendError([BackendErrorItem(code) for code in codes])


def test_authorize_volume_not_supported(caplog):
    session = SessionBase(VPCConfig())
    caplog.set_level(logging.INFO, logger="vpcblock")
    result = session.authorize_volume(Volume(volume_id="16f293bf-test-4bff-816f-e199c0c65db5"))
    assert result is None
    assert "Entry AuthorizeVolume" in caplog.text
    assert "Exit AuthorizeVolume" in caplog.text


def test_create_volume_from_snapshot_not_supported():
    session = SessionBase()
    snapshot = Snapshot(snapshot_id="16f293bf-test-4bff-816f-e199c0c65db5")
    assert session.create_volume_from_snapshot(snapshot, {"dev": "snapshot1"}) is None


def test_get_volume_by_request_id_not_supported():
    session = SessionBase()
    assert session.get_volume_by_request_id("16f293bf-test-4bff-816f-e199c0c65db5") is None


def test_check_session_invalid():
    session = SessionBase(session_error=RuntimeError("IAM token exchange request failed"))
    with pytest.raises(UserError) as info:
        session.check_session()
    assert str(info.value) == (
        "{Code:InvalidServiceSession, Type:RetrivalFailed, Description:The Service Session "
        "was not found due to error while generating IAM token., BackendError:IAM token "
        "exchange request failed, RC:500}"
    )


def test_check_session_valid_defaults():
    session = SessionBase()
    session.check_session()
    assert session.config == VPCConfig()
    assert session.retry_policy.max_attempts == 10


def test_run_retries_until_success():
    policy, sleeps = make_policy()
    calls = []

    def operation():
        calls.append(1)
        if len(calls) < 3:
            raise ValueError("transient")
        return "done"

    assert policy.run(operation) == "done"
    assert len(calls) == 3
    assert sleeps == [0.5, 0.5]


def test_run_raises_last_error_after_attempts():
    policy, _ = make_policy(attempts=2)
    calls = []

    def operation():
        calls.append(1)
        raise ValueError(f"failure {len(calls)}")

    with pytest.raises(ValueError, match="failure 2"):
        policy.run(operation)
    assert len(calls) == 2


def test_run_stops_on_skippable_backend_error():
    policy, sleeps = make_policy()
    calls = []

    def operation():
        calls.append(1)
        raise backend("not_found")

    with pytest.raises(BackendError):
        policy.run(operation)
    assert len(calls) == 1
    assert sleeps == []


def test_run_flexible_stops_when_done():
    policy, _ = make_policy()
    outcomes = iter([(ValueError("x"), False), (None, True)])
    calls = []

    def operation():
        calls.append(1)
        return next(outcomes)

    assert policy.run_flexible(operation) is None
    assert len(calls) == 2


def test_run_flexible_raises_error_when_done():
    policy, _ = make_policy()
    with pytest.raises(KeyError):
        policy.run_flexible(lambda: (KeyError("k"), True))


def test_run_flexible_exhausted_with_error():
    policy, sleeps = make_policy(attempts=3)
    with pytest.raises(ValueError):
        policy.run_flexible(lambda: (ValueError("v"), False))
    assert len(sleeps) == 2


def test_run_flexible_exhausted_without_error():
    policy, _ = make_policy(attempts=4)
    calls = []

    def operation():
        calls.append(1)
        return None, False

    assert policy.run_flexible(operation) is None
    assert len(calls) == 4


def test_retry_policy_rejects_zero_attempts():
    with pytest.raises(ValueError):
        RetryPolicy(max_attempts=0)


def test_skip_retry():
    assert skip_retry(backend("not_found")) is True
    assert skip_retry(backend("internal_error")) is False
    assert skip_retry(backend("unheard_of")) is False
    assert skip_retry(backend("internal_error", "not_found")) is False
    assert skip_retry(ValueError("x")) is False


def test_skip_retry_for_obvious_errors():
    assert skip_retry_for_obvious_errors(ValueError("x"), False) is False
    assert skip_retry_for_obvious_errors(backend("volume_id_invalid"), False) is True
    assert skip_retry_for_obvious_errors(backend("ST0008"), True) is True
    assert skip_retry_for_obvious_errors(backend("ST0008"), False) is False