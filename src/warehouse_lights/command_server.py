#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Warehouse Lights - Command Server Daemon
----------------------------------------

Owns the single IndicatorLink on a host and serves it over a ZeroMQ REP
socket, so several API workers can share one serial port.

Request schema:
    {
      "action": "STATUS" | "INFO" | "SEND" | "HIGHLIGHT" | "OFF" | "TEST",
      "command": {...},        # required for SEND (wire field names)
      "location": "A1-01",     # required for HIGHLIGHT
      "color": "red"           # optional for HIGHLIGHT (default blue)
    }

Reply:
    {"ok": true, "status": {...link status...}}
    or
    {"ok": false, "error": "..."}

Run:
    warehouse-lightsd --cmd tcp://127.0.0.1:5560
"""

import os
import time
import json
import signal
import argparse
import threading
import logging
from typing import Any, Dict, Optional

import zmq  # pyzmq

from .config import CMD_ENDPOINT, LinkConfig, configure_logging
from .discovery import available_ports
from .link import DEFAULT_HIGHLIGHT_COLOR, IndicatorLink
from .protocol import command_from_dict
from .zones import ZoneMap

log = logging.getLogger("warehouse_lights.command_server")

POLL_INTERVAL_MS = 200


class CommandServer:
    """REP socket worker around an IndicatorLink."""

    def __init__(self, link: IndicatorLink, endpoint: str = CMD_ENDPOINT,
                 ctx: Optional[zmq.Context] = None):
        self.link = link
        self.endpoint = endpoint

        self.ctx = ctx or zmq.Context.instance()
        self.rep = self.ctx.socket(zmq.REP)
        self.rep.setsockopt(zmq.LINGER, 0)
        self.rep.bind(self.endpoint)

        self._stop = threading.Event()
        self.cmd_thread = threading.Thread(target=self._cmd_loop, name="CMD", daemon=True)

    # ---------- lifecycle ----------

    def start(self):
        log.info("Starting command server… REP=%s", self.endpoint)
        self.cmd_thread.start()

    def stop(self):
        """Stop the worker, close the socket and release the link."""
        self._stop.set()
        if self.cmd_thread.is_alive():
            self.cmd_thread.join(timeout=2.0)
        try:
            self.rep.close(0)
        except zmq.ZMQError as e:
            log.warning("Error closing REP socket: %s", e)
        self.link.close()

    # ---------- request handling ----------

    def handle(self, req: Dict[str, Any]) -> Dict[str, Any]:
        """Run one request against the link and build the reply."""
        if not isinstance(req, dict):
            return {"ok": False, "error": "request must be a JSON object"}
        action = str(req.get("action") or "").upper()

        if action == "STATUS":
            return {"ok": True, "status": self.link.status()}

        if action == "INFO":
            return {"ok": True, "status": self.link.status(), "availablePorts": available_ports()}

        if action == "SEND":
            try:
                command = command_from_dict(req.get("command"))
            except ValueError as e:
                return {"ok": False, "error": str(e)}
            return self._result(self.link.send_command(command), "Failed to send command")

        if action == "HIGHLIGHT":
            location = req.get("location")
            if not location:
                return {"ok": False, "error": "HIGHLIGHT requires 'location'"}
            color = req.get("color") or DEFAULT_HIGHLIGHT_COLOR
            return self._result(self.link.highlight_location(str(location), str(color)),
                                "Failed to highlight location")

        if action == "OFF":
            return self._result(self.link.turn_off_all(), "Failed to turn off LEDs")

        if action == "TEST":
            return self._result(self.link.test_connection(), "LED controller not responding")

        return {"ok": False, "error": f"Unsupported action: {action}"}

    def _result(self, ok: bool, failure: str) -> Dict[str, Any]:
        if ok:
            return {"ok": True, "status": self.link.status()}
        return {"ok": False, "error": self.link.last_error or failure, "status": self.link.status()}

    def _cmd_loop(self):
        while not self._stop.is_set():
            try:
                if not self.rep.poll(POLL_INTERVAL_MS):
                    continue
                raw = self.rep.recv()
            except zmq.ZMQError:
                if self._stop.is_set():
                    break
                continue

            try:
                reply = self.handle(json.loads(raw.decode("utf-8")))
            except ValueError as e:
                reply = {"ok": False, "error": f"invalid JSON: {e}"}
            except Exception as e:
                log.error("Command handling error: %s", e, exc_info=True)
                reply = {"ok": False, "error": str(e)}

            try:
                self.rep.send_json(reply)
            except zmq.ZMQError as e:
                log.warning("Failed to send reply: %s", e)


# =============================================================================
# Entrypoint
# =============================================================================

def main():
    ap = argparse.ArgumentParser(description="Warehouse Lights command server")
    ap.add_argument("--cmd", default=CMD_ENDPOINT, help="ZMQ REP endpoint (bind)")
    ap.add_argument("--serial-port", default=None, help="Serial port (auto-detect if empty)")
    ap.add_argument("--wireless", action="store_true", default=None, help="Talk to the Pico W over TCP")
    ap.add_argument("--force-hardware", action="store_true", default=None, help="Use real LEDs in development")
    args = ap.parse_args()

    configure_logging()
    config = LinkConfig.from_env().with_overrides(
        serial_port=args.serial_port,
        wireless=args.wireless,
        force_hardware=args.force_hardware,
    )
    link = IndicatorLink(config, ZoneMap.from_env())
    server = CommandServer(link, args.cmd)

    stop = False
    def _stop_handler(signum, frame):
        nonlocal stop
        if not stop:
            stop = True
            log.info("Shutting down…")
            server.stop()
        else:
            os._exit(1)

    signal.signal(signal.SIGINT, _stop_handler)
    signal.signal(signal.SIGTERM, _stop_handler)

    server.start()

    while not stop:
        time.sleep(0.5)


if __name__ == "__main__":
    main()
