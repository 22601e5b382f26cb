# -*- coding: utf-8 -*-
"""
Indicator command model and wire codec.

The Pico firmware reads one compact JSON object per command:

    {"zone":1,"color":"red","action":"blink","duration":10000,"brightness":200}

Serial frames end with a newline (the firmware reads lines from USB CDC);
the wireless listener reads one object per TCP connection, so no terminator.
Nothing is ever read back from the device.
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping

BROADCAST_ZONE = 0
MAX_BRIGHTNESS = 255

DEFAULT_COLOR = "white"
DEFAULT_DURATION_MS = 5000


class Action(str, Enum):
    ON = "on"
    OFF = "off"
    BLINK = "blink"
    PULSE = "pulse"


@dataclass(frozen=True)
class IndicatorCommand:
    """One command for the LED controller. Zone 0 addresses every zone."""
    zone: int
    color: str = DEFAULT_COLOR
    action: Action = Action.ON
    duration_ms: int = DEFAULT_DURATION_MS
    brightness: int = MAX_BRIGHTNESS

    def __post_init__(self):
        # accept plain strings for action ("blink") and normalise to the enum
        try:
            object.__setattr__(self, "action", Action(self.action))
        except ValueError:
            raise ValueError(f"Unknown action: {self.action!r}") from None
        if isinstance(self.zone, bool) or not isinstance(self.zone, int) or self.zone < 0:
            raise ValueError(f"zone must be an integer >= 0, got {self.zone!r}")
        if not isinstance(self.color, str) or not self.color:
            raise ValueError("color must be a non-empty string")
        if isinstance(self.duration_ms, bool) or not isinstance(self.duration_ms, int) or self.duration_ms < 0:
            raise ValueError(f"duration_ms must be an integer >= 0, got {self.duration_ms!r}")
        if isinstance(self.brightness, bool) or not isinstance(self.brightness, int) \
                or not (0 <= self.brightness <= MAX_BRIGHTNESS):
            raise ValueError(f"brightness must be 0-{MAX_BRIGHTNESS}, got {self.brightness!r}")

    def to_wire(self) -> Dict[str, Any]:
        """Field names/order as the firmware expects them."""
        return {
            "zone": self.zone,
            "color": self.color,
            "action": self.action.value,
            "duration": self.duration_ms,
            "brightness": self.brightness,
        }


def encode_command(command: IndicatorCommand, newline: bool = True) -> bytes:
    text = json.dumps(command.to_wire(), separators=(",", ":"))
    if newline:
        text += "\n"
    return text.encode("utf-8")


def command_from_dict(data: Mapping[str, Any]) -> IndicatorCommand:
    """
    Build a command from a JSON request body (HTTP / command server).

    Uses the wire field names; "durationMs" is accepted as an alias for
    "duration". Numbers must be JSON integers: floats, booleans and numeric
    strings are rejected rather than coerced. Raises ValueError on a missing
    zone or bad values.
    """
    if not isinstance(data, Mapping):
        raise ValueError("command must be a JSON object")
    if "zone" not in data:
        raise ValueError("command requires 'zone'")

    action = data.get("action", Action.ON.value)
    if isinstance(action, str):
        action = action.lower()
    duration = data.get("duration", data.get("durationMs", DEFAULT_DURATION_MS))
    try:
        return IndicatorCommand(
            zone=data["zone"],
            color=data.get("color", DEFAULT_COLOR),
            action=action,
            duration_ms=duration,
            brightness=data.get("brightness", MAX_BRIGHTNESS),
        )
    except (TypeError, ValueError) as e:
        raise ValueError(f"invalid command: {e}") from None
