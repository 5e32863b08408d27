"""Tests for websocket payload routing logic."""

from fastapi.testclient import TestClient

from server.main import app
from tests.server.helpers import (
    PERIODIC,
    REGISTRATION,
    connect_device,
    wait_for_subscribers,
)


def test_position_message(client: TestClient) -> None:
    with client.websocket_connect("/ws") as websocket:
        wait_for_subscribers(app, 1)
        with connect_device(app.state.listener.address) as device:
            device.sendall(REGISTRATION + PERIODIC)
            data = websocket.receive_json()
    assert data["type"] == "position"
    assert data["protocol"] == "minifinder"
    assert data["device_id"] == 1
    assert data["time"] == "2017-02-22T13:40:02+00:00"
    assert data["valid"] is True
    assert data["outdated"] is False
    assert data["attributes"]["type"] == "D"
    assert data["attributes"]["batteryLevel"] == 78
    assert data["attributes"]["rssi"] == 11


def test_sentence_split_across_writes(client: TestClient) -> None:
    with client.websocket_connect("/ws") as websocket:
        wait_for_subscribers(app, 1)
        with connect_device(app.state.listener.address) as device:
            device.sendall(REGISTRATION + PERIODIC[:20])
            device.sendall(PERIODIC[20:])
            data = websocket.receive_json()
    assert data["attributes"]["hdop"] == 1.3


def test_rejected_sentences_not_routed(client: TestClient) -> None:
    with client.websocket_connect("/ws") as websocket:
        wait_for_subscribers(app, 1)
        with connect_device(app.state.listener.address) as device:
            device.sendall(REGISTRATION + b"!9,x;!4,1,2;!A,not,a,real,fix;!3,ok;")
            data = websocket.receive_json()
    assert data["attributes"]["type"] == "3"
    assert data["attributes"]["status"] == "ok"
    assert data["outdated"] is True


def test_unregistered_device_not_routed(client: TestClient) -> None:
    with client.websocket_connect("/ws") as websocket:
        wait_for_subscribers(app, 1)
        with connect_device(app.state.listener.address) as device:
            device.sendall(PERIODIC + REGISTRATION + b"!5,17,A;")
            data = websocket.receive_json()
    assert data["attributes"]["type"] == "5"
    assert data["attributes"]["gps"] == "A"
