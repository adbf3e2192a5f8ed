import pytest

from services.context import ContextWindow


def test_unbounded_window_keeps_everything():
    window = ContextWindow()
    messages = list(range(50))
    assert window.unbounded
    assert window.apply(messages) == messages


def test_zero_means_unbounded():
    assert ContextWindow(0).unbounded


def test_limited_window_keeps_latest_messages():
    window = ContextWindow(3)
    assert window.apply([1, 2, 3, 4, 5]) == [3, 4, 5]
    assert window.apply([1, 2]) == [1, 2]


def test_negative_limit_is_rejected():
    with pytest.raises(ValueError):
        ContextWindow(-1)
