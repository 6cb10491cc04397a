from __future__ import annotations

import asyncio

import pytest

from sensor_gateway.registry import DeviceLinkRegistry
from tests.fakes import RecordingLink


def test_starts_empty() -> None:
    registry = DeviceLinkRegistry()

    assert registry.current() is None
    assert registry.connected is False


@pytest.mark.asyncio
async def test_set_then_clear_current_empties_slot() -> None:
    registry = DeviceLinkRegistry()
    a = RecordingLink()

    await registry.set_active(a)
    assert registry.current() is a

    assert await registry.clear_if_current(a) is True
    assert registry.current() is None


@pytest.mark.asyncio
async def test_new_link_replaces_previous() -> None:
    registry = DeviceLinkRegistry()
    a, b = RecordingLink(), RecordingLink()

    await registry.set_active(a)
    await registry.set_active(b)

    assert registry.current() is b


@pytest.mark.asyncio
async def test_stale_close_does_not_clear_newer_link() -> None:
    registry = DeviceLinkRegistry()
    a, b = RecordingLink(), RecordingLink()

    await registry.set_active(a)
    await registry.set_active(b)

    assert await registry.clear_if_current(a) is False
    assert registry.current() is b


@pytest.mark.asyncio
async def test_clear_on_empty_slot_is_noop() -> None:
    registry = DeviceLinkRegistry()

    assert await registry.clear_if_current(RecordingLink()) is False
    assert registry.current() is None


@pytest.mark.asyncio
async def test_racing_connect_and_stale_close_keep_new_link() -> None:
    registry = DeviceLinkRegistry()
    a, b = RecordingLink(), RecordingLink()
    await registry.set_active(a)

    await asyncio.gather(registry.set_active(b), registry.clear_if_current(a))
    assert registry.current() is b

    await registry.set_active(a)
    await asyncio.gather(registry.clear_if_current(a), registry.set_active(b))
    assert registry.current() is b
