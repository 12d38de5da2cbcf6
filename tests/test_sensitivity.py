import pytest

from alerts.sensitivity import SensitivityFilter, now_from
from core.state import DEFAULT_SENSITIVITY
from utils.errors import InvalidArgumentError

from conftest import DummyClock


def test_default_threshold():
    assert SensitivityFilter().threshold == DEFAULT_SENSITIVITY


def test_suppresses_within_window_and_passes_after():
    f = SensitivityFilter(2.0)
    assert f.should_suppress("a", 100.0) is False
    assert f.should_suppress("a", 101.0) is True
    # undertrykt signal flytter ikke vinduet
    assert f.should_suppress("a", 102.0) is False
    assert f.should_suppress("a", 103.9) is True


def test_window_is_per_name():
    f = SensitivityFilter(5.0)
    assert f.should_suppress("a", 0.0) is False
    assert f.should_suppress("b", 0.1) is False


def test_zero_threshold_never_suppresses():
    f = SensitivityFilter(0.0)
    assert f.should_suppress("a", 1.0) is False
    assert f.should_suppress("a", 1.0) is False


def test_uses_injected_clock():
    clock = DummyClock(50.0)
    f = SensitivityFilter(1.0, clock=clock)
    assert f.should_suppress("a") is False
    assert f.should_suppress("a") is True
    clock.sleep(1.0)
    assert f.should_suppress("a") is False


def test_set_defaults_applies_to_future_only():
    f = SensitivityFilter(10.0)
    f.should_suppress("a", 0.0)
    f.set_defaults(1.0)
    assert f.threshold == 1.0
    assert f.should_suppress("a", 2.0) is False


@pytest.mark.parametrize("bad", [-0.1, "abc", None, float("nan")])
def test_rejects_invalid_threshold(bad):
    f = SensitivityFilter(1.0)
    with pytest.raises(InvalidArgumentError):
        f.set_defaults(bad)
    assert f.threshold == 1.0


def test_cleanup_keeps_table_bounded():
    f = SensitivityFilter(1.0)
    f.CLEANUP_ABOVE = 10
    for i in range(20):
        f.should_suppress(f"n{i}", float(i * 10))
    assert len(f.last_delivered) <= 11


def test_poll_interval_has_floor():
    assert SensitivityFilter(0.0).poll_interval == pytest.approx(0.01)
    assert SensitivityFilter(0.5).poll_interval == pytest.approx(0.5)


def test_now_from_accepts_callable_and_object():
    assert now_from(lambda: 3.0) == 3.0
    assert now_from(DummyClock(7.0)) == 7.0
    assert isinstance(now_from(None), float)
