#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Warehouse Lights - Pico Controller Simulator
--------------------------------------------
Stands in for the LED controller firmware so the API can be exercised
end-to-end without hardware. Every command received is decoded and logged.

Modes
- tcp: listens like the Pico W firmware; one JSON object per connection.
- pty: creates a pseudo-terminal and reads newline-delimited JSON like the USB
  firmware. The slave path is printed AND saved to --port-file so it can be
  passed as LED_SERIAL_PORT / --serial-port.

Usage:
    warehouse-lights-sim tcp --host 127.0.0.1 --port 5000
    warehouse-lights-sim pty --port-file sim_port.txt
"""

import os
import pty
import tty
import time
import json
import argparse
import threading
import socketserver
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .config import configure_logging

log = logging.getLogger("warehouse_lights.simulator")

RECV_TIMEOUT_S = 2.0
MAX_LINE = 4096


class _CommandHandler(socketserver.BaseRequestHandler):
    """Read until the client closes, then hand the bytes to the controller."""

    def handle(self):
        self.request.settimeout(RECV_TIMEOUT_S)
        chunks = bytearray()
        try:
            while True:
                data = self.request.recv(1024)
                if not data:
                    break
                chunks.extend(data)
        except OSError as e:
            log.warning("Client %s dropped: %s", self.client_address, e)
        if chunks:
            self.server.controller.record(bytes(chunks))


class _ThreadedServer(socketserver.ThreadingMixIn, socketserver.TCPServer):
    allow_reuse_address = True
    daemon_threads = True


class FakeController:
    """Collects decoded commands from either transport."""

    def __init__(self):
        self.commands: List[Dict[str, Any]] = []
        self.errors = 0
        self._cond = threading.Condition()
        self._buf = bytearray()
        self._server: Optional[_ThreadedServer] = None
        self._thread: Optional[threading.Thread] = None

    # ---------- decoding ----------

    def record(self, payload: bytes) -> Optional[Dict[str, Any]]:
        """Decode one command payload (trailing newline allowed)."""
        text = payload.decode("utf-8", errors="replace").strip()
        try:
            cmd = json.loads(text)
            if not isinstance(cmd, dict):
                raise ValueError("not an object")
        except ValueError:
            with self._cond:
                self.errors += 1
            log.warning("[PICO] Bad command: %r", text[:80])
            return None

        log.info("[PICO] zone=%s color=%s action=%s duration=%s brightness=%s",
                 cmd.get("zone"), cmd.get("color"), cmd.get("action"),
                 cmd.get("duration"), cmd.get("brightness"))
        with self._cond:
            self.commands.append(cmd)
            self._cond.notify_all()
        return cmd

    def feed(self, data: bytes) -> int:
        """
        Serial byte stream -> complete lines -> record().

        Returns:
            Number of complete lines consumed
        """
        self._buf.extend(data)
        lines = 0
        while True:
            try:
                i = self._buf.index(b"\n")
            except ValueError:
                if len(self._buf) > MAX_LINE:
                    # no terminator in sight; drop the garbage
                    log.warning("[PICO] Dropping %d unterminated bytes", len(self._buf))
                    self._buf.clear()
                break
            line = bytes(self._buf[:i])
            del self._buf[:i + 1]
            if line.strip():
                self.record(line)
                lines += 1
        return lines

    def wait_for(self, count: int, timeout_s: float = 2.0) -> bool:
        """Block until at least `count` commands arrived."""
        with self._cond:
            return self._cond.wait_for(lambda: len(self.commands) >= count, timeout=timeout_s)

    # ---------- TCP mode ----------

    def start_tcp(self, host: str = "127.0.0.1", port: int = 0) -> Tuple[str, int]:
        """Start listening in a background thread; port 0 picks a free port."""
        server = _ThreadedServer((host, port), _CommandHandler)
        server.controller = self
        self._server = server
        self._thread = threading.Thread(target=server.serve_forever, name="SIM", daemon=True)
        self._thread.start()
        addr = server.server_address[:2]
        log.info("Simulated Pico listening on %s:%d", addr[0], addr[1])
        return addr

    def stop(self):
        if self._server is None:
            return
        self._server.shutdown()
        self._server.server_close()
        self._server = None


# -----------------------------------------------------------------------------
# PTY mode
# -----------------------------------------------------------------------------
def open_pty() -> Tuple[int, str]:
    """
    Create a PTY pair and return (master_fd, slave_path).
    The link opens the *slave* path; we read from the master fd.
    """
    master_fd, slave_fd = pty.openpty()
    slave_path = os.ttyname(slave_fd)
    tty.setraw(master_fd)
    return master_fd, slave_path


def run_pty(controller: FakeController, port_file: Path):
    fd, slave_path = open_pty()
    port_file.write_text(slave_path + "\n", encoding="utf-8")
    log.info("Created PTY. Use --serial-port %s (saved to %s)", slave_path, port_file)
    try:
        while True:
            try:
                data = os.read(fd, 1024)
            except OSError:
                # slave side closed; keep the PTY for the next open
                data = b""
            if data:
                controller.feed(data)
            else:
                time.sleep(0.05)
    finally:
        try:
            os.close(fd)
        except OSError:
            pass


def main():
    ap = argparse.ArgumentParser(description="Simulated Pico LED controller")
    sub = ap.add_subparsers(dest="mode", required=True)
    tcp = sub.add_parser("tcp", help="Listen like the Pico W firmware")
    tcp.add_argument("--host", default="127.0.0.1")
    tcp.add_argument("--port", type=int, default=5000)
    p = sub.add_parser("pty", help="Serve a pseudo-terminal like the USB firmware")
    p.add_argument("--port-file", default="sim_port.txt", help="File to write the PTY slave path to")
    args = ap.parse_args()

    configure_logging()
    controller = FakeController()
    try:
        if args.mode == "tcp":
            controller.start_tcp(args.host, args.port)
            threading.Event().wait()
        else:
            run_pty(controller, Path(args.port_file))
    except KeyboardInterrupt:
        log.info("Stopping simulator.")
    finally:
        controller.stop()


if __name__ == "__main__":
    main()
