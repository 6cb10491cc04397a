from __future__ import annotations

import json

import pytest

from sensor_gateway.registry import DeviceLinkRegistry
from sensor_gateway.relay import CommandRelay
from sensor_gateway.state import StateStore
from tests.fakes import BrokenLink, HangingLink, RecordingLink


@pytest.mark.asyncio
async def test_relay_toggle_alternates_from_false(relay: CommandRelay) -> None:
    results = [await relay.toggle_relay_command() for _ in range(5)]

    assert results == [True, False, True, False, True]


@pytest.mark.asyncio
async def test_fan_and_relay_are_independent(relay: CommandRelay, store: StateStore) -> None:
    await relay.toggle_relay_command()
    assert store.get().fan_state is False

    await relay.toggle_fan_command()
    await relay.toggle_fan_command()
    assert store.get().relay_state is True
    assert store.get().fan_state is False


@pytest.mark.asyncio
async def test_toggle_without_device_still_flips(relay: CommandRelay) -> None:
    assert await relay.toggle_fan_command() is True
    assert relay.pending == 0
    assert relay.get_stats()["no_link"] == 1


@pytest.mark.asyncio
async def test_toggle_sends_command_to_current_link(
    relay: CommandRelay, registry: DeviceLinkRegistry
) -> None:
    link = RecordingLink()
    await registry.set_active(link)

    await relay.toggle_relay_command()
    await relay.toggle_fan_command()
    await relay.drain()

    assert [json.loads(m) for m in link.sent] == [
        {"action": "toggleRelay", "relayState": True},
        {"action": "toggleFan", "fanState": True},
    ]
    assert relay.get_stats()["sent"] == 2


@pytest.mark.asyncio
async def test_command_goes_to_replacement_link_only(
    relay: CommandRelay, registry: DeviceLinkRegistry
) -> None:
    old, new = RecordingLink(), RecordingLink()
    await registry.set_active(old)
    await registry.set_active(new)

    await relay.toggle_fan_command()
    await relay.drain()

    assert old.sent == []
    assert len(new.sent) == 1


@pytest.mark.asyncio
async def test_send_failure_is_absorbed_and_state_kept(
    relay: CommandRelay, registry: DeviceLinkRegistry, store: StateStore
) -> None:
    await registry.set_active(BrokenLink())

    assert await relay.toggle_relay_command() is True
    await relay.drain()

    assert store.get().relay_state is True
    assert relay.get_stats()["failed"] == 1


@pytest.mark.asyncio
async def test_hung_send_is_bounded_by_timeout(
    relay: CommandRelay, registry: DeviceLinkRegistry, store: StateStore
) -> None:
    await registry.set_active(HangingLink())

    assert await relay.toggle_fan_command() is True
    await relay.drain()

    assert store.get().fan_state is True
    assert relay.get_stats()["failed"] == 1
    assert relay.pending == 0


@pytest.mark.asyncio
async def test_toggle_returns_before_delivery_completes(
    store: StateStore, registry: DeviceLinkRegistry
) -> None:
    relay = CommandRelay(store, registry, send_timeout=0.05)
    await registry.set_active(HangingLink())

    assert await relay.toggle_relay_command() is True
    assert relay.pending == 1

    await relay.drain()
    assert relay.pending == 0
    assert store.get().relay_state is True


@pytest.mark.asyncio
async def test_device_connect_toggle_disconnect_scenario(
    relay: CommandRelay, registry: DeviceLinkRegistry
) -> None:
    l1 = RecordingLink()
    await registry.set_active(l1)

    assert await relay.toggle_fan_command() is True
    await relay.drain()
    assert json.loads(l1.sent[0]) == {"action": "toggleFan", "fanState": True}

    await registry.clear_if_current(l1)

    assert await relay.toggle_fan_command() is False
    await relay.drain()
    assert len(l1.sent) == 1
