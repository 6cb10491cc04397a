"""
HTTP Query/Command API.

Endpoints:
  GET  /sensorData        - last-known snapshot
  GET  /getRelayState     - relay and fan states only
  GET  /getSensorStatus   - report freshness and device connection
  POST /toggleRelay       - flip relay, relay command to device
  POST /toggleFan         - flip fan, relay command to device
  POST /updateSensorData  - merge a sensor report into the snapshot
"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, ConfigDict, Field, StrictFloat

from .registry import DeviceLinkRegistry
from .relay import CommandRelay
from .state import StateStore

logger = logging.getLogger(__name__)


class SensorReportRequest(BaseModel):
    """Partial sensor report; absent fields keep their previous value."""
    model_config = ConfigDict(populate_by_name=True)

    # Strict: booleans and numeric strings are rejected, integers accepted
    temperature: Optional[StrictFloat] = Field(default=None, allow_inf_nan=False)
    humidity: Optional[StrictFloat] = Field(default=None, allow_inf_nan=False)
    soil_moisture: Optional[StrictFloat] = Field(
        default=None, alias="soilMoisture", allow_inf_nan=False
    )


def create_router(
    store: StateStore,
    registry: DeviceLinkRegistry,
    relay: CommandRelay,
    online_window_s: float = 30.0,
) -> APIRouter:
    """
    Create the API router bound to the given core components.

    Args:
        store: State Store read by the query endpoints
        registry: Device Link Registry (connection flag only)
        relay: Command Relay invoked by the toggle endpoints
        online_window_s: Report age under which the sensor counts as online

    Returns:
        APIRouter ready to be included in the application
    """
    router = APIRouter()

    @router.get("/sensorData")
    async def sensor_data():
        return store.get().to_dict()

    @router.get("/getRelayState")
    async def relay_state():
        snapshot = store.get()
        return {"relayState": snapshot.relay_state, "fanState": snapshot.fan_state}

    @router.get("/getSensorStatus")
    async def sensor_status():
        return {
            "isOnline": store.is_online(online_window_s),
            "deviceConnected": registry.connected,
        }

    @router.post("/toggleRelay")
    async def toggle_relay():
        return {"relayState": await relay.toggle_relay_command()}

    @router.post("/toggleFan")
    async def toggle_fan():
        return {"fanState": await relay.toggle_fan_command()}

    @router.post("/updateSensorData")
    async def update_sensor_data(report: SensorReportRequest):
        fields = report.model_dump(exclude_none=True)
        if not fields:
            logger.warning("Rejected sensor report with no readings")
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Invalid sensor data",
            )
        store.apply_report(fields)
        logger.info(f"Sensor data updated: {fields}")
        return {"success": True}

    return router
