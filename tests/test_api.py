"""Tests for the local status API."""

import json
import socket
from ipaddress import IPv4Address

import pytest
from fastapi.testclient import TestClient

from conftest import FakeBackend, ListenOnlyTransport
from idlesync.api.websocket import EventFeed
from idlesync.config import IdleSyncConfig
from idlesync.main import create_app
from idlesync.sync.codec import encode
from idlesync.sync.service import IdleSyncService
from idlesync.sync.transport import UdpTransport


@pytest.fixture
def backend():
    return FakeBackend(idle=55)


@pytest.fixture
def service(backend):
    config = IdleSyncConfig.create(sync_port=0, power_poll_interval=0.05)
    return IdleSyncService(config, backend, transport=ListenOnlyTransport(port=0, bind_host="127.0.0.1"))


@pytest.fixture
def client(service):
    with TestClient(create_app(service)) as c:
        yield c


class TestStatusApi:
    def test_status(self, client):
        resp = client.get("/api/status")
        assert resp.status_code == 200
        data = resp.json()
        assert data["role"] == "hub"
        assert data["idle_timeout"] == 180
        assert data["peers"] == []
        assert data["peer_capacity"] == 8
        assert data["wake_count"] == 0

    def test_idle(self, client):
        resp = client.get("/api/idle")
        assert resp.status_code == 200
        assert resp.json() == {"idle_seconds": 55}

    def test_idle_unavailable(self, client, backend):
        backend.idle_error = OSError("xprintidle missing")
        resp = client.get("/api/idle")
        assert resp.status_code == 503

    def test_peers(self, client, service):
        registry = service.controller.registry
        registry.register(IPv4Address("10.0.0.21"), 1)
        resp = client.get("/api/peers")
        assert resp.status_code == 200
        peers = resp.json()["peers"]
        assert [p["address"] for p in peers] == ["10.0.0.21"]

    def test_feed_delivers_report_received(self, client, service):
        with client.websocket_connect("/ws") as ws:
            with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
                sock.sendto(encode(9), ("127.0.0.1", service.transport.port))
                frame = ws.receive_json()

        assert frame == {
            "event": "report_received",
            "data": {"sender": "127.0.0.1", "idle_seconds": 9},
        }


def test_satellite_has_no_peers(backend):
    config = IdleSyncConfig.create(hub_address="127.0.0.1", sync_port=0)
    service = IdleSyncService(config, backend, transport=UdpTransport(port=0, bind_host="127.0.0.1"))
    with TestClient(create_app(service)) as client:
        assert client.get("/api/peers").json() == {"peers": []}
        assert client.get("/api/status").json()["role"] == "satellite"


class FakeSocket:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.accepted = False
        self.sent: list[str] = []

    async def accept(self) -> None:
        self.accepted = True

    async def send_text(self, message: str) -> None:
        if self.fail:
            raise RuntimeError("closed")
        self.sent.append(message)


class TestEventFeed:
    @pytest.mark.asyncio
    async def test_publish_sends_frames_in_order(self):
        feed = EventFeed()
        ws = FakeSocket()
        await feed.subscribe(ws)

        await feed.publish("peer_added", {"address": "10.0.0.21"})
        await feed.publish("wake", {"idle_seconds": 300, "peer_idle": 2})

        assert ws.accepted
        assert [json.loads(m)["event"] for m in ws.sent] == ["peer_added", "wake"]
        assert json.loads(ws.sent[1])["data"] == {"idle_seconds": 300, "peer_idle": 2}

    @pytest.mark.asyncio
    async def test_unknown_event_is_not_published(self, caplog):
        feed = EventFeed()
        ws = FakeSocket()
        await feed.subscribe(ws)

        await feed.publish("transfer_progress", {})

        assert ws.sent == []
        assert "transfer_progress" in caplog.text

    @pytest.mark.asyncio
    async def test_failed_subscriber_is_dropped(self):
        feed = EventFeed()
        dead, alive = FakeSocket(fail=True), FakeSocket()
        await feed.subscribe(dead)
        await feed.subscribe(alive)

        await feed.publish("report_sent", {"dest": "10.0.0.1", "idle_seconds": 1})
        dead.fail = False
        await feed.publish("report_sent", {"dest": "10.0.0.1", "idle_seconds": 2})

        assert dead.sent == []
        assert len(alive.sent) == 2
