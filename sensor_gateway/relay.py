"""
Command Relay.

Handles:
- Flipping relay/fan state in the State Store
- Best-effort delivery of the matching command to the device, if connected
- Delivery statistics

Best-effort delivery contract: the state flip is final as soon as the
toggle returns. Delivery runs as a background task bounded by a send
timeout; its outcome is logged and counted but never reported to the
caller, and never rolls the state back.
"""

import asyncio
import logging
from typing import Set

from .message import DeviceCommand
from .registry import DeviceLink, DeviceLinkRegistry
from .state import StateStore

logger = logging.getLogger(__name__)


class CommandRelay:
    """
    Maps HTTP-triggered toggles onto the (possibly absent) device link.
    """

    def __init__(
        self,
        store: StateStore,
        registry: DeviceLinkRegistry,
        send_timeout: float = 2.0,
    ):
        """
        Initialize command relay.

        Args:
            store: State Store holding the actuator states
            registry: Registry providing the current device link
            send_timeout: Deadline for a single device send (seconds)
        """
        self.store = store
        self.registry = registry
        self.send_timeout = send_timeout

        # In-flight delivery tasks; held so they are not garbage collected
        self._pending: Set[asyncio.Task] = set()

        # Statistics
        self._sent = 0
        self._no_link = 0
        self._failed = 0

    async def toggle_relay_command(self) -> bool:
        """
        Toggle the relay and forward the command to the device.

        Returns:
            New relay state, regardless of delivery outcome
        """
        new_state = self.store.toggle_relay()
        logger.info(f"Relay toggled to {new_state}")
        self._dispatch(DeviceCommand.toggle_relay(new_state))
        return new_state

    async def toggle_fan_command(self) -> bool:
        """
        Toggle the fan and forward the command to the device.

        Returns:
            New fan state, regardless of delivery outcome
        """
        new_state = self.store.toggle_fan()
        logger.info(f"Fan toggled to {new_state}")
        self._dispatch(DeviceCommand.toggle_fan(new_state))
        return new_state

    def _dispatch(self, command: DeviceCommand) -> None:
        """Borrow the current link and schedule delivery on it."""
        link = self.registry.current()
        if link is None:
            self._no_link += 1
            logger.debug(f"No device connected, command not sent: {command.to_dict()}")
            return

        task = asyncio.create_task(self._deliver(link, command))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _deliver(self, link: DeviceLink, command: DeviceCommand) -> bool:
        """
        Send one command over link, absorbing any transport error.

        Returns:
            True if the send completed within the timeout
        """
        payload = command.to_json()
        try:
            await asyncio.wait_for(link.send_text(payload), timeout=self.send_timeout)
        except asyncio.TimeoutError:
            self._failed += 1
            logger.warning(f"Device send timed out after {self.send_timeout}s: {payload}")
            return False
        except Exception as e:
            self._failed += 1
            logger.warning(f"Device send failed: {e}")
            return False

        self._sent += 1
        logger.debug(f"Sent to device: {payload}")
        return True

    async def drain(self) -> None:
        """Wait for all in-flight deliveries to finish."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    @property
    def pending(self) -> int:
        return len(self._pending)

    def get_stats(self) -> dict:
        """Get delivery statistics."""
        return {
            "sent": self._sent,
            "no_link": self._no_link,
            "failed": self._failed,
            "pending": len(self._pending),
        }
