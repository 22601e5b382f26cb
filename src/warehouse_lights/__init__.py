"""
Warehouse Lights - indicator link for the warehouse storage API.

Drives the bin indicator LEDs on a Pico controller, either over USB serial or
over the controller's wireless TCP listener, and falls back to a mock link in
development.
"""

from .config import LinkConfig
from .link import IndicatorLink, LinkState
from .protocol import Action, IndicatorCommand, encode_command
from .zones import ZoneMap

__all__ = [
    "Action",
    "IndicatorCommand",
    "IndicatorLink",
    "LinkConfig",
    "LinkState",
    "ZoneMap",
    "encode_command",
]

__version__ = "1.0.0"
