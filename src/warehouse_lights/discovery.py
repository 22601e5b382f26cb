# -*- coding: utf-8 -*-
"""
Serial port discovery for the Pico LED controller.

The Pico has no discovery handshake, so this is a naming heuristic only:
  1. macOS call-out device  (/dev/cu.usbmodem*)  - preferred over tty.usbmodem
  2. Linux / Raspberry Pi CDC-ACM  (/dev/ttyACM*)
The first match of the first tier wins. Whether it answers is only known on
first send.
"""

import logging
from typing import Iterable, List, Optional

from serial.tools import list_ports

log = logging.getLogger("warehouse_lights.discovery")

PORT_PREFERENCE = ("cu.usbmodem", "ttyACM")


def list_port_names() -> List[str]:
    return [p.device for p in list_ports.comports() if p.device]


def available_ports() -> List[str]:
    """Port names for diagnostics; never raises."""
    try:
        return list_port_names()
    except Exception as e:
        log.warning("Could not enumerate serial ports: %s", e)
        return []


def find_controller_port(ports: Optional[Iterable[str]] = None) -> Optional[str]:
    """
    Pick the controller port from `ports` (enumerated now if not given).

    Returns:
        Port path, or None if nothing looks like a Pico
    """
    names = list(ports) if ports is not None else list_port_names()
    log.info("Available serial ports: %s", ", ".join(names) or "(none)")

    for marker in PORT_PREFERENCE:
        match = next((name for name in names if marker in name), None)
        if match is not None:
            log.info("Found Pico port (%s): %s", marker, match)
            return match

    log.warning("No Pico-like ports found")
    return None
