# -*- coding: utf-8 -*-
"""
Byte channels to the LED controller.

Two interchangeable transports:
  - SerialTransport: USB serial to a Pico, opened once and kept open.
  - TcpTransport:    Pico W listener, one short-lived connection per command.

Both turn every I/O fault into a failure reason returned from write()
(plus a log line); nothing raises into the link. The reason travels with the
call, so concurrent senders never see each other's errors. send() is the
bool wrapper that also keeps the most recent reason in `last_error`.
"""

import socket
import logging
import threading
import time
from abc import ABC, abstractmethod
from typing import Callable, Optional

import serial  # pyserial

from .config import DEFAULT_BAUD, SERIAL_SETTLE_S, SERIAL_TIMEOUT_S, TCP_TIMEOUT_S

log = logging.getLogger("warehouse_lights.transport")


class Transport(ABC):
    """Capability interface: send bytes, report connection state, close."""

    kind = "transport"
    newline = True  # whether encoded commands carry a trailing "\n"

    def __init__(self):
        self.last_error: Optional[str] = None

    @property
    @abstractmethod
    def is_connected(self) -> bool: ...

    @property
    @abstractmethod
    def endpoint(self) -> str: ...

    @abstractmethod
    def write(self, payload: bytes) -> Optional[str]:
        """Send one encoded command. Returns None on success, else the reason it failed."""

    def send(self, payload: bytes) -> bool:
        reason = self.write(payload)
        self.last_error = reason
        return reason is None

    def close(self) -> None:
        pass


# =============================================================================
# Serial
# =============================================================================

class SerialTransport(Transport):
    """
    Persistent serial connection. Writes are serialized with a lock so
    concurrent requests never interleave bytes on the wire.
    """

    kind = "serial"
    newline = True

    def __init__(self, ser: serial.Serial, port: str):
        """
        Args:
            ser: An open pyserial Serial object
            port: Port path, for logs and status
        """
        super().__init__()
        self._ser: Optional[serial.Serial] = ser
        self._port = port
        self._lock = threading.Lock()

    @classmethod
    def open(
        cls,
        port: str,
        baud: int = DEFAULT_BAUD,
        timeout_s: float = SERIAL_TIMEOUT_S,
        settle_s: float = SERIAL_SETTLE_S,
        serial_factory: Callable[[], serial.Serial] = serial.Serial,
        sleep: Callable[[float], None] = time.sleep,
    ) -> "SerialTransport":
        """
        Open `port` with DTR/RTS asserted (resets the Pico into its firmware)
        and wait `settle_s` for it to boot.

        Raises:
            serial.SerialException / OSError: If the port can't be opened
        """
        ser = serial_factory()
        ser.port = port
        ser.baudrate = baud
        ser.timeout = timeout_s
        ser.write_timeout = timeout_s
        ser.dtr = True
        ser.rts = True
        try:
            ser.open()
        except Exception:
            try:
                ser.close()
            except Exception:
                pass
            raise

        if settle_s > 0:
            sleep(settle_s)
        log.info("Serial connected: %s @ %d", port, baud)
        return cls(ser, port)

    @property
    def is_connected(self) -> bool:
        return self._ser is not None and bool(self._ser.is_open)

    @property
    def endpoint(self) -> str:
        return self._port

    def write(self, payload: bytes) -> Optional[str]:
        with self._lock:
            if self._ser is None or not self._ser.is_open:
                log.warning("Serial not connected - cannot send to %s", self._port)
                return "serial port not open"
            try:
                self._ser.write(payload)
                self._ser.flush()
            except Exception as e:
                # port stays open: a transient fault shouldn't force rediscovery
                log.warning("Serial write to %s failed: %s", self._port, e, exc_info=True)
                return f"serial write failed: {e}"
        return None

    def close(self) -> None:
        with self._lock:
            ser, self._ser = self._ser, None
            if ser is None:
                return
            try:
                ser.close()
                log.info("Serial closed: %s", self._port)
            except Exception as e:
                log.error("Error closing serial port %s: %s", self._port, e)


# =============================================================================
# Wireless (TCP)
# =============================================================================

class TcpTransport(Transport):
    """
    Stateless TCP: connect, send, close for every command. The Pico W can't
    hold idle sockets reliably and may reboot between highlights, so nothing
    is kept open.
    """

    kind = "wireless"
    newline = False

    def __init__(
        self,
        host: str,
        port: int,
        timeout_s: float = TCP_TIMEOUT_S,
        connect: Callable[..., socket.socket] = socket.create_connection,
    ):
        super().__init__()
        self.host = host
        self.port = port
        self.timeout_s = timeout_s
        self._connect = connect

    @property
    def is_connected(self) -> bool:
        # connectionless per call; target is assumed reachable
        return True

    @property
    def endpoint(self) -> str:
        return f"{self.host}:{self.port}"

    def write(self, payload: bytes) -> Optional[str]:
        try:
            with self._connect((self.host, self.port), timeout=self.timeout_s) as sock:
                sock.sendall(payload)
        except Exception as e:
            log.warning("TCP send to %s failed: %s", self.endpoint, e, exc_info=True)
            return f"tcp send to {self.endpoint} failed: {e!r}"
        return None
