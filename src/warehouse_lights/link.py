# -*- coding: utf-8 -*-
"""
IndicatorLink - the one long-lived handle to the LED controller.

Construct it once per process with a LinkConfig and pass it to whatever needs
it (the HTTP app, the command server, the inventory layer). Construction picks
the mode and, in hardware mode, the transport:

    mock      development and not forced to hardware; nothing is opened
    wireless  TcpTransport, one connection per command
    serial    explicit LED_SERIAL_PORT or auto-detected Pico port

If the serial port can't be found or opened the link stays disconnected until
the process is restarted. There is no reconnect loop; every send then
returns False.

Every public operation returns a bool and never raises on hardware faults.
The reason for the last failure is kept in `last_error`.
"""

import logging
import socket
import time
from enum import Enum
from typing import Any, Callable, Dict, Optional

import serial  # pyserial

from .config import LinkConfig
from .discovery import find_controller_port
from .protocol import BROADCAST_ZONE, Action, IndicatorCommand, encode_command
from .transport import SerialTransport, TcpTransport, Transport
from .zones import ZoneMap

log = logging.getLogger("warehouse_lights.link")

MOCK_SEND_DELAY_S = 0.1
MOCK_TEST_DELAY_S = 0.5

HIGHLIGHT_DURATION_MS = 10000
HIGHLIGHT_BRIGHTNESS = 200
DEFAULT_HIGHLIGHT_COLOR = "blue"

TEST_ZONE = 1
TEST_COLOR = "green"
TEST_DURATION_MS = 3000


class LinkState(str, Enum):
    MOCK = "mock"
    DISCONNECTED = "disconnected"
    CONNECTED = "connected"


class IndicatorLink:
    """Mode selection, transport ownership and the LED operations."""

    def __init__(
        self,
        config: LinkConfig,
        zones: Optional[ZoneMap] = None,
        *,
        transport: Optional[Transport] = None,
        find_port: Callable[[], Optional[str]] = find_controller_port,
        serial_factory: Callable[[], serial.Serial] = serial.Serial,
        tcp_connect: Callable[..., socket.socket] = socket.create_connection,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Args:
            config: Frozen link settings
            zones: Location table (built-in table if omitted)
            transport: Pre-built transport; skips discovery/open in hardware mode
            find_port: Discovery function, used when no serial port is configured
            serial_factory: Builds the unopened pyserial object
            tcp_connect: socket.create_connection compatible connector
            sleep: Used for the mock delays and the serial settle delay
        """
        self.config = config
        self.zones = zones if zones is not None else ZoneMap()
        self.last_error: Optional[str] = None
        self._sleep = sleep
        self._transport: Optional[Transport] = None

        if config.mock:
            log.info("Running in development mode - LED controller mocked")
            return

        if transport is not None:
            self._transport = transport
            log.info("Using supplied %s transport (%s)", transport.kind, transport.endpoint)
        elif config.wireless:
            log.info("Using wireless mode for LED controller (%s:%d)", config.host, config.port)
            self._transport = TcpTransport(config.host, config.port, config.timeout_s, connect=tcp_connect)
        else:
            log.info("Attempting to connect to LED hardware via serial...")
            self._transport = self._open_serial(find_port, serial_factory)

    # ---------- construction helpers ----------

    def _open_serial(self, find_port, serial_factory) -> Optional[Transport]:
        try:
            port = self.config.serial_port or find_port()
        except Exception as e:
            port = None
            log.error("Serial port discovery failed: %s", e, exc_info=True)
        if not port:
            self.last_error = "no controller port found"
            log.warning("No Pico device found - LED controller disconnected until restart")
            return None

        log.info("Attempting to connect to %s", port)
        try:
            transport = SerialTransport.open(
                port,
                baud=self.config.baud,
                timeout_s=self.config.timeout_s,
                settle_s=self.config.settle_s,
                serial_factory=serial_factory,
                sleep=self._sleep,
            )
        except Exception as e:
            self.last_error = f"failed to open {port}: {e}"
            log.error("Failed to initialize LED controller on %s: %s", port, e, exc_info=True)
            return None

        log.info("Successfully connected to LED controller on %s", port)
        return transport

    # ---------- state ----------

    @property
    def is_mock(self) -> bool:
        return self.config.mock

    @property
    def state(self) -> LinkState:
        if self.is_mock:
            return LinkState.MOCK
        if self._transport is not None and self._transport.is_connected:
            return LinkState.CONNECTED
        return LinkState.DISCONNECTED

    def is_connected(self) -> bool:
        """True for wireless, or for an open serial port. Always False when mocked."""
        return self.state is LinkState.CONNECTED

    def status(self) -> Dict[str, Any]:
        transport = self._transport
        return {
            "mode": "mock" if self.is_mock else "hardware",
            "state": self.state.value,
            "isConnected": self.is_connected(),
            "transport": transport.kind if transport is not None else None,
            "endpoint": transport.endpoint if transport is not None else None,
            "lastError": self.last_error,
        }

    # ---------- operations ----------

    def send_command(self, command: IndicatorCommand) -> bool:
        if not isinstance(command, IndicatorCommand):
            self.last_error = f"not an IndicatorCommand: {type(command).__name__}"
            log.error("Rejected LED command: %s", self.last_error)
            return False

        if self.is_mock:
            log.info(
                "[MOCK] LED Command - Zone: %d, Color: %s, Action: %s",
                command.zone, command.color, command.action.value,
            )
            self._sleep(MOCK_SEND_DELAY_S)
            return True

        transport = self._transport
        if transport is None or not transport.is_connected:
            self.last_error = "LED controller not connected"
            log.warning("LED controller not connected - cannot send command")
            return False

        payload = encode_command(command, newline=transport.newline)
        try:
            reason = transport.write(payload)
        except Exception as e:
            reason = str(e) or type(e).__name__
            log.error("Transport %s raised during send: %s", transport.kind, e, exc_info=True)

        if reason is not None:
            self.last_error = reason
            log.error("Failed to send LED command over %s: %s", transport.kind, reason)
            return False

        self.last_error = None
        log.info("Sent LED command over %s: %s", transport.kind, payload.decode("utf-8").strip())
        return True

    def highlight_location(self, location: str, color: str = DEFAULT_HIGHLIGHT_COLOR) -> bool:
        zone = self.zones.resolve(location)
        if zone is None:
            self.last_error = f"unknown location: {location}"
            log.warning("Unknown location: %s", location)
            return False

        try:
            command = IndicatorCommand(
                zone=zone,
                color=color,
                action=Action.BLINK,
                duration_ms=HIGHLIGHT_DURATION_MS,
                brightness=HIGHLIGHT_BRIGHTNESS,
            )
        except ValueError as e:
            self.last_error = str(e)
            log.warning("Bad highlight request for %s: %s", location, e)
            return False
        return self.send_command(command)

    def turn_off_all(self) -> bool:
        return self.send_command(IndicatorCommand(zone=BROADCAST_ZONE, color="off", action=Action.OFF))

    def test_connection(self) -> bool:
        if self.is_mock:
            log.info("[MOCK] LED test connection successful")
            self._sleep(MOCK_TEST_DELAY_S)
            return True

        # wireless has nothing to pre-check, the send itself is the probe
        if not self.config.wireless and not self.is_connected():
            self.last_error = "LED controller not connected"
            log.warning("Cannot test connection - LED controller not connected")
            return False

        return self.send_command(
            IndicatorCommand(zone=TEST_ZONE, color=TEST_COLOR, action=Action.PULSE, duration_ms=TEST_DURATION_MS)
        )

    # ---------- teardown ----------

    def close(self) -> None:
        transport, self._transport = self._transport, None
        if transport is None:
            return
        try:
            transport.close()
        except Exception as e:
            log.error("Error disposing LED controller: %s", e)

    def __enter__(self) -> "IndicatorLink":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
