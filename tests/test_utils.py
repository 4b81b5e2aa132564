import threading

import pytest

from eth_da_relayer.utils import run_with_timeout


def test_returns_result():
    assert run_with_timeout(lambda: 42, 1) == 42


def test_returns_timeout_value_when_slow():
    release = threading.Event()
    try:
        assert run_with_timeout(lambda: release.wait(5), 0.05, "timed out") == "timed out"
    finally:
        release.set()


def test_callable_timeout_value():
    release = threading.Event()
    try:
        assert run_with_timeout(lambda: release.wait(5), 0.05, lambda: "late") == "late"
    finally:
        release.set()


def test_errors_propagate():
    def closer():
        raise RuntimeError("close failed")

    with pytest.raises(RuntimeError):
        run_with_timeout(closer, 1)
