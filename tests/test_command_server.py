"""
Tests for the ZeroMQ command server.

Request handling is tested directly; one round-trip goes over an inproc
REQ/REP pair.
"""

import json
import uuid

import pytest
import zmq

from warehouse_lights.command_server import CommandServer
from warehouse_lights.config import LinkConfig
from warehouse_lights.link import IndicatorLink

from conftest import RecordingTransport


@pytest.fixture
def stub():
    return RecordingTransport()


@pytest.fixture
def server(hardware_config, stub):
    link = IndicatorLink(hardware_config, transport=stub)
    srv = CommandServer(link, f"inproc://led-{uuid.uuid4().hex}")
    yield srv
    srv.stop()


class TestHandle:

    def test_status(self, server):
        reply = server.handle({"action": "status"})
        assert reply["ok"] is True
        assert reply["status"]["state"] == "connected"

    def test_info_lists_ports(self, server, monkeypatch):
        from warehouse_lights import command_server
        monkeypatch.setattr(command_server, "available_ports", lambda: ["/dev/ttyACM0"])
        assert server.handle({"action": "INFO"})["availablePorts"] == ["/dev/ttyACM0"]

    def test_highlight(self, server, stub):
        reply = server.handle({"action": "HIGHLIGHT", "location": "A1-02", "color": "red"})
        assert reply["ok"] is True
        assert json.loads(stub.payloads[0])["action"] == "blink"

    def test_highlight_requires_location(self, server, stub):
        reply = server.handle({"action": "HIGHLIGHT"})
        assert reply["ok"] is False
        assert stub.payloads == []

    def test_highlight_unknown_location_reports_reason(self, server):
        reply = server.handle({"action": "HIGHLIGHT", "location": "Q1-01"})
        assert reply["ok"] is False
        assert "unknown location" in reply["error"]

    def test_send(self, server, stub):
        reply = server.handle({"action": "SEND", "command": {"zone": 3, "action": "pulse"}})
        assert reply["ok"] is True
        assert json.loads(stub.payloads[0])["zone"] == 3

    def test_send_invalid_command(self, server, stub):
        reply = server.handle({"action": "SEND", "command": {"zone": -4}})
        assert reply["ok"] is False
        assert stub.payloads == []

    def test_off_and_test(self, server, stub):
        assert server.handle({"action": "OFF"})["ok"] is True
        assert server.handle({"action": "TEST"})["ok"] is True
        assert [json.loads(p)["action"] for p in stub.payloads] == ["off", "pulse"]

    def test_unknown_action(self, server):
        reply = server.handle({"action": "DANCE"})
        assert reply == {"ok": False, "error": "Unsupported action: DANCE"}

    def test_non_object_request(self, server):
        assert server.handle(["STATUS"])["ok"] is False

    def test_disconnected_link_reports_failure(self, sleeper):
        link = IndicatorLink(LinkConfig(), find_port=lambda: None, sleep=sleeper)
        srv = CommandServer(link, f"inproc://led-{uuid.uuid4().hex}")
        try:
            reply = srv.handle({"action": "OFF"})
            assert reply["ok"] is False
            assert reply["status"]["state"] == "disconnected"
        finally:
            srv.stop()


class TestRoundTrip:

    def test_req_rep_over_inproc(self, server, stub):
        server.start()
        req = zmq.Context.instance().socket(zmq.REQ)
        req.setsockopt(zmq.LINGER, 0)
        req.setsockopt(zmq.RCVTIMEO, 3000)
        req.connect(server.endpoint)
        try:
            req.send_json({"action": "HIGHLIGHT", "location": "A2-01", "color": "red"})
            assert req.recv_json()["ok"] is True

            req.send(b"{not json")
            bad = req.recv_json()
            assert bad["ok"] is False
            assert "invalid JSON" in bad["error"]
        finally:
            req.close(0)
        assert len(stub.payloads) == 1

    def test_stop_closes_link(self, server, stub):
        server.start()
        server.stop()
        assert stub.closed
        assert not server.cmd_thread.is_alive()
