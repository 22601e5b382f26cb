# -*- coding: utf-8 -*-
"""
Runtime configuration for the indicator link.

Everything is read once from the environment (and optionally overridden on the
command line by the entry points), then frozen for the process lifetime.
"""

import os
import logging
from dataclasses import dataclass, replace
from typing import Optional

# ----------------------------
# Serial defaults (Pico USB CDC)
# ----------------------------
DEFAULT_BAUD = 9600
SERIAL_TIMEOUT_S = 2.0       # read/write timeout, a stalled device can't hang a request
SERIAL_SETTLE_S = 2.0        # DTR/RTS reset -> wait for the Pico to boot

# ----------------------------
# Wireless defaults (Pico W TCP listener)
# ----------------------------
DEFAULT_PICO_HOST = "192.168.1.50"
DEFAULT_PICO_PORT = 5000
TCP_TIMEOUT_S = 2.0

# ----------------------------
# Command server (ZMQ REP)
# ----------------------------
CMD_ENDPOINT = os.getenv("LED_CMD", "tcp://127.0.0.1:5560")

LOG_FORMAT = "%(asctime)s.%(msecs)03d [%(levelname)s] %(threadName)s: %(message)s"
LOG_DATEFMT = "%H:%M:%S"

_TRUTHY = ("1", "true", "yes", "on")


def env_flag(name: str, default: bool = False) -> bool:
    """Read a boolean flag from the environment (1/true/yes/on)."""
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in _TRUTHY


def configure_logging(level: Optional[str] = None) -> None:
    """Root logging setup for the entry points. Library code never calls this."""
    logging.basicConfig(
        level=(level or os.getenv("LED_LOGLEVEL", "INFO")).upper(),
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
    )


@dataclass(frozen=True)
class LinkConfig:
    """
    Settings handed to IndicatorLink at construction.

    development_mode and force_hardware decide mock vs hardware; wireless
    selects the TCP transport over serial. serial_port blank means auto-detect.
    """
    development_mode: bool = False
    force_hardware: bool = False
    wireless: bool = False
    host: str = DEFAULT_PICO_HOST
    port: int = DEFAULT_PICO_PORT
    serial_port: str = ""
    baud: int = DEFAULT_BAUD
    timeout_s: float = SERIAL_TIMEOUT_S
    settle_s: float = SERIAL_SETTLE_S

    def __post_init__(self):
        if not (0 < self.port <= 65535):
            raise ValueError(f"port out of range: {self.port}")
        if self.baud <= 0:
            raise ValueError(f"baud must be positive: {self.baud}")
        if self.timeout_s <= 0:
            raise ValueError("timeout_s must be positive")
        if self.settle_s < 0:
            raise ValueError("settle_s must be >= 0")

    @property
    def mock(self) -> bool:
        return self.development_mode and not self.force_hardware

    @classmethod
    def from_env(cls) -> "LinkConfig":
        return cls(
            development_mode=os.getenv("WAREHOUSE_ENV", "production").strip().lower() == "development",
            force_hardware=env_flag("LED_FORCE_HARDWARE"),
            wireless=env_flag("LED_WIRELESS"),
            host=os.getenv("LED_PICO_HOST", DEFAULT_PICO_HOST),
            port=int(os.getenv("LED_PICO_PORT", str(DEFAULT_PICO_PORT))),
            serial_port=os.getenv("LED_SERIAL_PORT", ""),
            baud=int(os.getenv("LED_BAUD", str(DEFAULT_BAUD))),
        )

    def with_overrides(self, **changes) -> "LinkConfig":
        """Copy with the non-None command-line overrides applied."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})
