"""
State Store for the last-known sensor/actuator snapshot.

Handles:
- Merging device reports into the snapshot (field-by-field overwrite)
- Atomic relay/fan toggles
- Report freshness for the online indicator
"""

import logging
import threading
import time
from dataclasses import dataclass, replace
from typing import Optional, Dict, Any

logger = logging.getLogger(__name__)

REPORT_FIELDS = ("temperature", "humidity", "soil_moisture")


@dataclass(frozen=True)
class SensorSnapshot:
    """
    Last-known readings and actuator states.

    Attributes:
        temperature: Last reported temperature, None until first report
        humidity: Last reported humidity, None until first report
        soil_moisture: Last reported soil moisture, None until first report
        relay_state: Relay output as last commanded by the server
        fan_state: Fan output as last commanded by the server
    """
    temperature: Optional[float] = None
    humidity: Optional[float] = None
    soil_moisture: Optional[float] = None
    relay_state: bool = False
    fan_state: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the wire shape served at /sensorData."""
        return {
            "temperature": self.temperature,
            "humidity": self.humidity,
            "soil_moisture": self.soil_moisture,
            "relayState": self.relay_state,
            "fanState": self.fan_state,
        }


class StateStore:
    """
    Owner of the single SensorSnapshot.

    Every mutation swaps in a new frozen snapshot under a lock, so readers
    always get a consistent copy without locking.
    """

    def __init__(self, clock=time.monotonic):
        self._snapshot = SensorSnapshot()
        self._lock = threading.Lock()
        self._clock = clock
        self._last_report_at: Optional[float] = None

    def get(self) -> SensorSnapshot:
        """Return the current snapshot (never None)."""
        return self._snapshot

    def apply_report(self, fields: Dict[str, Any]) -> None:
        """
        Merge device-reported values into the snapshot.

        Unknown keys are ignored. No plausibility checks are made.

        Args:
            fields: Partial mapping of temperature/humidity/soil_moisture
        """
        updates = {k: v for k, v in fields.items() if k in REPORT_FIELDS}
        with self._lock:
            self._snapshot = replace(self._snapshot, **updates)
            self._last_report_at = self._clock()
        logger.debug(f"Report applied: {updates}")

    def toggle_relay(self) -> bool:
        """Flip the relay state and return the new value."""
        with self._lock:
            new_state = not self._snapshot.relay_state
            self._snapshot = replace(self._snapshot, relay_state=new_state)
        return new_state

    def toggle_fan(self) -> bool:
        """Flip the fan state and return the new value."""
        with self._lock:
            new_state = not self._snapshot.fan_state
            self._snapshot = replace(self._snapshot, fan_state=new_state)
        return new_state

    @property
    def last_report_at(self) -> Optional[float]:
        return self._last_report_at

    def is_online(self, window_s: float) -> bool:
        """
        Check whether a report arrived within the last window_s seconds.

        Args:
            window_s: Freshness window in seconds

        Returns:
            False if no report was ever applied
        """
        if self._last_report_at is None:
            return False
        return self._clock() - self._last_report_at < window_s
