import inspect

import pytest

from alerts.session import AlertSession
from alerts.validation import check_message, check_name, check_sensitivity, normalize_timeout
from core.state import MAX_MESSAGE_LENGTH, MAX_NAME_LENGTH, MAXWAIT, WaitStatus
from utils.errors import InvalidArgumentError


@pytest.mark.parametrize(
    "timeout, expected",
    [
        (None, float(MAXWAIT)),
        (-1, float(MAXWAIT)),
        (-0.5, float(MAXWAIT)),
        (MAXWAIT, float(MAXWAIT)),
        (MAXWAIT + 1, float(MAXWAIT)),
        (float("inf"), float(MAXWAIT)),
        (float("-inf"), float(MAXWAIT)),
        (0, 0.0),
        (2.5, 2.5),
        ("3", 3.0),
    ],
)
def test_normalize_timeout(timeout, expected):
    assert normalize_timeout(timeout) == expected


@pytest.mark.parametrize("bad", [float("nan"), "abc", object()])
def test_normalize_timeout_rejects_non_numbers(bad):
    with pytest.raises(InvalidArgumentError):
        normalize_timeout(bad)


def test_session_waits_default_to_maxwait():
    for meth in (AlertSession.waitone, AlertSession.waitany):
        assert inspect.signature(meth).parameters["timeout"].default == MAXWAIT


def test_session_waitone_passes_maxwait_to_broker(broker, monkeypatch):
    seen = {}

    def fake_waitone(backend_id, name, timeout):
        seen["timeout"] = timeout
        return None

    s = broker.open_session()
    monkeypatch.setattr(broker, "waitone", fake_waitone)
    s.waitone("evt")
    assert seen["timeout"] == MAXWAIT
    assert normalize_timeout(seen["timeout"]) == float(MAXWAIT)


def test_wait_status_codes():
    assert int(WaitStatus.SUCCESS) == 0
    assert int(WaitStatus.TIMEOUT) == 1


def test_check_name_limits():
    assert check_name("ORD_READY") == "ORD_READY"
    assert check_name("x" * MAX_NAME_LENGTH) == "x" * MAX_NAME_LENGTH
    for bad in ("", "x" * (MAX_NAME_LENGTH + 1), None, 42):
        with pytest.raises(InvalidArgumentError):
            check_name(bad)


def test_check_message_limits():
    assert check_message(None) == ""
    assert check_message(17) == "17"
    assert check_message("m" * MAX_MESSAGE_LENGTH) == "m" * MAX_MESSAGE_LENGTH
    with pytest.raises(InvalidArgumentError):
        check_message("m" * (MAX_MESSAGE_LENGTH + 1))


@pytest.mark.parametrize("bad", [-1, float("nan"), "fast"])
def test_check_sensitivity_rejects(bad):
    with pytest.raises(InvalidArgumentError):
        check_sensitivity(bad)
