"""Tests for the device TCP listener."""

import json
import socket
import threading
from collections.abc import Iterator
from unittest.mock import MagicMock

import pytest

from minifinder import ConnectionContext, DeviceRegistry, MiniFinderDecoder, SentenceReader
from server.listener import DeviceListener, handle_connection
from tests.server.helpers import PERIODIC, REGISTRATION, connect_device, wait_until


def _reader_over(*chunks: bytes) -> SentenceReader:
    sock = MagicMock(spec=socket.socket)
    sock.recv.side_effect = [*chunks, b""]
    return SentenceReader(sock)


class TestHandleConnection:
    def test_publishes_decoded_records(self) -> None:
        registry = DeviceRegistry()
        messages: list[str] = []
        handle_connection(
            _reader_over(REGISTRATION, PERIODIC, b"!9,x;"),
            ConnectionContext(connection_id=1),
            MiniFinderDecoder(registry),
            registry,
            messages.append,
        )
        assert len(messages) == 1
        assert json.loads(messages[0])["attributes"]["type"] == "D"

    def test_releases_binding_on_end_of_stream(self) -> None:
        registry = DeviceRegistry()
        handle_connection(
            _reader_over(REGISTRATION),
            ConnectionContext(connection_id=1),
            MiniFinderDecoder(registry),
            registry,
            lambda _message: None,
        )
        assert registry.sessions() == []

    def test_releases_binding_when_publish_fails(self) -> None:
        registry = DeviceRegistry()
        publish = MagicMock(side_effect=ValueError("boom"))
        with pytest.raises(ValueError):
            handle_connection(
                _reader_over(REGISTRATION + PERIODIC),
                ConnectionContext(connection_id=1),
                MiniFinderDecoder(registry),
                registry,
                publish,
            )
        assert registry.sessions() == []


@pytest.fixture
def listener() -> Iterator[tuple[DeviceListener, list[str]]]:
    registry = DeviceRegistry()
    messages: list[str] = []
    device_listener = DeviceListener(
        MiniFinderDecoder(registry),
        registry,
        messages.append,
        host="127.0.0.1",
        port=0,
        max_connections=4,
        read_timeout=0.1,
    )
    thread = threading.Thread(target=device_listener.serve_forever)
    thread.start()
    yield device_listener, messages
    device_listener.close()
    thread.join(timeout=5.0)
    assert not thread.is_alive()


class TestDeviceListener:
    def test_address_resolves_free_port(self, listener: tuple[DeviceListener, list[str]]) -> None:
        device_listener, _ = listener
        host, port = device_listener.address
        assert host == "127.0.0.1"
        assert port != 0

    def test_decodes_device_stream(self, listener: tuple[DeviceListener, list[str]]) -> None:
        device_listener, messages = listener
        with connect_device(device_listener.address) as device:
            device.sendall(REGISTRATION + PERIODIC + b"!3,ok;")
            wait_until(lambda: len(messages) == 2)
        assert [json.loads(message)["attributes"]["type"] for message in messages] == ["D", "3"]

    def test_connections_are_independent(
        self, listener: tuple[DeviceListener, list[str]]
    ) -> None:
        device_listener, messages = listener
        with (
            connect_device(device_listener.address) as registered,
            connect_device(device_listener.address) as anonymous,
        ):
            registered.sendall(REGISTRATION)
            anonymous.sendall(PERIODIC)
            registered.sendall(PERIODIC)
            wait_until(lambda: len(messages) == 1)
        assert json.loads(messages[0])["device_id"] == 1

    def test_close_cancels_open_connections(self) -> None:
        registry = DeviceRegistry()
        device_listener = DeviceListener(
            MiniFinderDecoder(registry),
            registry,
            lambda _message: None,
            host="127.0.0.1",
            port=0,
            read_timeout=0.1,
        )
        thread = threading.Thread(target=device_listener.serve_forever)
        thread.start()
        with connect_device(device_listener.address) as device:
            device.sendall(REGISTRATION)
            wait_until(lambda: registry.sessions() != [])
            device_listener.close()
            thread.join(timeout=5.0)
            assert not thread.is_alive()
            assert registry.sessions() == []
