from __future__ import annotations

import pytest

from sensor_gateway.registry import DeviceLinkRegistry
from sensor_gateway.relay import CommandRelay
from sensor_gateway.state import StateStore


@pytest.fixture
def store() -> StateStore:
    return StateStore()


@pytest.fixture
def registry() -> DeviceLinkRegistry:
    return DeviceLinkRegistry()


@pytest.fixture
def relay(store: StateStore, registry: DeviceLinkRegistry) -> CommandRelay:
    return CommandRelay(store, registry, send_timeout=0.05)
