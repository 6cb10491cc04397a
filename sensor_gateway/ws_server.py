"""
WebSocket Connection Acceptor for the device channel.

Handles:
- Accepting the device connection at /device
- Registering it as the active link (replacing any previous one)
- Logging inbound device messages (not applied to the snapshot)
- Clearing the registry slot when this connection closes
"""

import logging

from fastapi import WebSocket, WebSocketDisconnect

from .registry import DeviceLinkRegistry

logger = logging.getLogger(__name__)


class DeviceAcceptor:
    """
    Accepts device connections and wires their lifecycle to the registry.

    No authentication: any client reaching the endpoint becomes the device.
    """

    def __init__(self, registry: DeviceLinkRegistry):
        """
        Initialize acceptor.

        Args:
            registry: Registry that owns the active device link
        """
        self.registry = registry

        self._connection_counter = 0
        self._replacements = 0
        self._messages_received = 0
        self._invalid_frames = 0

    async def handle(self, websocket: WebSocket) -> None:
        """Serve one device connection until it closes."""
        await websocket.accept()

        self._connection_counter += 1
        device_id = f"device_{self._connection_counter}"
        if self.registry.connected:
            self._replacements += 1
        await self.registry.set_active(websocket)

        logger.info(f"Device connected: {device_id} from {websocket.client}")

        try:
            await self._receive_messages(websocket, device_id)
        except WebSocketDisconnect:
            logger.info(f"Device disconnected: {device_id}")
        except Exception as e:
            logger.error(f"Error handling device {device_id}: {e}")
        finally:
            await self.registry.clear_if_current(websocket)

    async def _receive_messages(self, websocket: WebSocket, device_id: str) -> None:
        """Log every inbound frame; binary frames are counted and ignored."""
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000))

            text = message.get("text")
            if text is None:
                self._invalid_frames += 1
                logger.warning(f"Ignoring non-text frame from {device_id}")
                continue

            self._messages_received += 1
            logger.info(f"Message from {device_id}")
            logger.debug(f"{device_id} payload: {text}")

    def get_stats(self) -> dict:
        """Get acceptor statistics."""
        return {
            "connections": self._connection_counter,
            "replacements": self._replacements,
            "messages_received": self._messages_received,
            "invalid_frames": self._invalid_frames,
        }
