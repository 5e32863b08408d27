"""Helper factories for server tests."""

import socket
import time
from collections.abc import Callable

from fastapi import FastAPI

REGISTRATION = b"!1,860719020212696;"
PERIODIC = b"!D,22/2/17,13:40:2,56.899393,14.815748,0,0,b0001,179.3,78,8,10,1.3;"

_POLL_INTERVAL = 0.01


def wait_until(condition: Callable[[], bool], timeout: float = 5.0) -> None:
    """Poll *condition* until it holds, failing the test after *timeout*."""
    deadline = time.monotonic() + timeout
    while not condition():
        if time.monotonic() > deadline:
            raise AssertionError("Condition not met before timeout")
        time.sleep(_POLL_INTERVAL)


def wait_for_subscribers(application: FastAPI, count: int) -> None:
    broadcaster = application.state.broadcaster
    wait_until(lambda: broadcaster.subscriber_count >= count)


def connect_device(address: tuple[str, int]) -> socket.socket:
    return socket.create_connection(address, timeout=5.0)
