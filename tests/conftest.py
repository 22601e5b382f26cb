"""
Shared test doubles for the warehouse-lights test suite.

Nothing here touches a real serial port or the network: the link takes its
serial factory, TCP connector and sleep function as constructor arguments.
"""

import pytest

from warehouse_lights.config import LinkConfig
from warehouse_lights.transport import Transport


# ---------------------------------------------------------------------------
# Serial / socket doubles
# ---------------------------------------------------------------------------

class FakeSerial:
    """Quacks like an unopened pyserial.Serial."""

    def __init__(self, fail_open=None, fail_write=None, fail_close=None):
        self.port = None
        self.baudrate = None
        self.timeout = None
        self.write_timeout = None
        self.dtr = None
        self.rts = None
        self.is_open = False
        self.written = []
        self.flushes = 0
        self.close_calls = 0
        self._fail_open = fail_open
        self._fail_write = fail_write
        self._fail_close = fail_close

    def open(self):
        if self._fail_open:
            raise self._fail_open
        self.is_open = True

    def write(self, data):
        if self._fail_write:
            raise self._fail_write
        self.written.append(bytes(data))
        return len(data)

    def flush(self):
        self.flushes += 1

    def close(self):
        self.close_calls += 1
        if self._fail_close:
            raise self._fail_close
        self.is_open = False


class FakeSocket:
    def __init__(self, log, fail_send=None):
        self._log = log
        self._fail_send = fail_send
        self.sent = b""
        self.closed = False

    def sendall(self, data):
        if self._fail_send:
            raise self._fail_send
        self.sent += data

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.closed = True
        return False


class FakeConnector:
    """Stands in for socket.create_connection and records every call."""

    def __init__(self, fail_connect=None, fail_send=None):
        self.calls = []
        self.sockets = []
        self._fail_connect = fail_connect
        self._fail_send = fail_send

    def __call__(self, address, timeout=None):
        self.calls.append((address, timeout))
        if self._fail_connect:
            raise self._fail_connect
        sock = FakeSocket(self, self._fail_send)
        self.sockets.append(sock)
        return sock


class RecordingTransport(Transport):
    """Transport stub counting sends."""

    kind = "stub"
    newline = True

    def __init__(self, connected=True, result=True):
        super().__init__()
        self.connected = connected
        self.result = result
        self.payloads = []
        self.closed = False

    @property
    def is_connected(self):
        return self.connected

    @property
    def endpoint(self):
        return "stub"

    def write(self, payload):
        self.payloads.append(payload)
        return None if self.result else "stub failure"

    def close(self):
        self.closed = True


class SleepRecorder:
    def __init__(self):
        self.calls = []

    def __call__(self, seconds):
        self.calls.append(seconds)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def sleeper():
    return SleepRecorder()


@pytest.fixture
def fake_serial():
    return FakeSerial()


@pytest.fixture
def connector():
    return FakeConnector()


@pytest.fixture
def hardware_config():
    """Production, serial, explicit port so discovery isn't needed."""
    return LinkConfig(development_mode=False, serial_port="/dev/ttyACM0")


@pytest.fixture
def mock_config():
    return LinkConfig(development_mode=True, force_hardware=False)


@pytest.fixture
def wireless_config():
    return LinkConfig(development_mode=False, force_hardware=False, wireless=True,
                      host="10.0.0.5", port=5000)
