"""
Message schema for server -> device commands.

Commands are JSON text frames of the form:
    {"action": "toggleRelay", "relayState": true}
    {"action": "toggleFan", "fanState": false}
"""

import json
from dataclasses import dataclass

ACTION_TOGGLE_RELAY = "toggleRelay"
ACTION_TOGGLE_FAN = "toggleFan"

# action -> name of the state field carried with it
_STATE_FIELDS = {
    ACTION_TOGGLE_RELAY: "relayState",
    ACTION_TOGGLE_FAN: "fanState",
}


@dataclass(frozen=True)
class DeviceCommand:
    """
    Actuator command sent to the device.

    Attributes:
        action: ACTION_TOGGLE_RELAY or ACTION_TOGGLE_FAN
        state: New actuator state after the toggle
    """
    action: str
    state: bool

    def __post_init__(self):
        if self.action not in _STATE_FIELDS:
            raise ValueError(f"Unknown device action: {self.action!r}")

    @property
    def state_field(self) -> str:
        return _STATE_FIELDS[self.action]

    def to_dict(self) -> dict:
        return {"action": self.action, self.state_field: self.state}

    def to_json(self) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict())

    @classmethod
    def toggle_relay(cls, state: bool) -> 'DeviceCommand':
        return cls(action=ACTION_TOGGLE_RELAY, state=state)

    @classmethod
    def toggle_fan(cls, state: bool) -> 'DeviceCommand':
        return cls(action=ACTION_TOGGLE_FAN, state=state)
