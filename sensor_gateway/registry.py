"""
Device Link Registry.

Handles:
- One-slot tracking of the active device channel
- Silent replacement when a second device connects
- Identity-checked cleanup so a stale close never clears a newer link
"""

import asyncio
import logging
from typing import Optional, Protocol

logger = logging.getLogger(__name__)


class DeviceLink(Protocol):
    """Outbound half of a device channel (a FastAPI WebSocket satisfies this)."""

    async def send_text(self, data: str) -> None:
        ...


class DeviceLinkRegistry:
    """
    Holds at most one active DeviceLink.

    Slot transitions:
        Empty  -> Active  set_active
        Active -> Active  set_active (previous link dropped, not closed)
        Active -> Empty   clear_if_current with the current link
        Active -> Active  clear_if_current with a stale link (no-op)
    """

    def __init__(self):
        self._current: Optional[DeviceLink] = None
        self._lock = asyncio.Lock()

    async def set_active(self, link: DeviceLink) -> None:
        """
        Install link as the active device channel.

        The previous link, if any, is forgotten but left open; its own
        close event will later be rejected by clear_if_current.

        Args:
            link: Newly accepted device channel

        Returns:
            None
        """
        async with self._lock:
            previous = self._current
            self._current = link
        if previous is not None and previous is not link:
            logger.info("Device link replaced by a new connection")
        else:
            logger.info("Device link registered")

    async def clear_if_current(self, link: DeviceLink) -> bool:
        """
        Clear the slot if link is still the active one.

        Args:
            link: Channel that reported closure

        Returns:
            True if the slot was cleared
        """
        async with self._lock:
            if self._current is not link:
                logger.info("Ignoring close of a superseded device link")
                return False
            self._current = None
        logger.info("Device link cleared")
        return True

    def current(self) -> Optional[DeviceLink]:
        """Get the active link, or None when no device is connected."""
        return self._current

    @property
    def connected(self) -> bool:
        return self._current is not None
