import time
import socket
from typing import Callable

import pytest

from god.supervisor import TaskManager


def _wait_until(predicate: Callable[[], bool], timeout: float = 10, interval: float = 0.02) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


@pytest.fixture
def wait_until():
    """Polls a predicate until it holds or the timeout expires."""
    return _wait_until


@pytest.fixture
def manager():
    """A TaskManager whose services are terminated when the test ends."""
    mgr = TaskManager(forward_signals=True, graceful_timeout=2, drain_timeout=1)
    yield mgr
    if mgr.init_complete:
        mgr.shutdown()


@pytest.fixture
def occupied_port():
    """A loopback port already bound and listening, so nothing else can bind it."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        sock.listen()
        yield sock.getsockname()[1]
