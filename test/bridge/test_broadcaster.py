import json

import pytest

from bridge.broadcaster import MESSAGE_TYPE, MetricsBroadcaster, build_envelope
from bridge.registry import SubscriberRegistry
from model.metrics import MetricsSnapshot, SystemOverview


@pytest.fixture
def registry() -> SubscriberRegistry:
    return SubscriberRegistry()


@pytest.fixture
def broadcaster(registry, fake_system_monitor, fake_docker_monitor, silent_logger) -> MetricsBroadcaster:
    return MetricsBroadcaster(registry, fake_system_monitor, fake_docker_monitor, silent_logger, send_timeout=1.0)


@pytest.mark.asyncio
async def test_idle_tick_polls_nothing(broadcaster, fake_system_monitor, fake_docker_monitor):
    assert broadcaster.is_broadcasting is False
    assert await broadcaster.tick() == 0
    assert fake_system_monitor.calls["overview"] == 0
    assert fake_docker_monitor.calls["containers"] == 0


@pytest.mark.asyncio
async def test_tick_delivers_metrics_update(broadcaster, registry, subscriber_factory):
    subscriber = subscriber_factory("dashboard")
    registry.add(subscriber)

    assert await broadcaster.tick() == 1

    message = json.loads(subscriber.messages[0])
    assert message["type"] == MESSAGE_TYPE
    assert isinstance(message["timestamp"], str)
    assert message["data"]["system"]["hostname"] == "edge-01"
    assert message["data"]["docker"][0]["name"] == "web"


@pytest.mark.asyncio
async def test_failing_docker_source_degrades_to_empty_list(
    broadcaster, registry, subscriber_factory, fake_docker_monitor
):
    fake_docker_monitor.fail_listing = True
    subscriber = subscriber_factory("dashboard")
    registry.add(subscriber)

    assert await broadcaster.tick() == 1

    message = json.loads(subscriber.messages[0])
    assert message["data"]["docker"] == []
    assert message["data"]["system"]["cpu"]["usage"] == pytest.approx(12.5)


@pytest.mark.asyncio
async def test_failing_system_source_degrades_to_zeroed_overview(
    broadcaster, registry, subscriber_factory, fake_system_monitor
):
    fake_system_monitor.failing.add("overview")
    subscriber = subscriber_factory("dashboard")
    registry.add(subscriber)

    await broadcaster.tick()

    system = json.loads(subscriber.messages[0])["data"]["system"]
    assert system["hostname"] == ""
    assert system["cpu"]["usage"] == 0.0


@pytest.mark.asyncio
async def test_send_failure_prunes_subscriber_and_keeps_others(broadcaster, registry, subscriber_factory):
    healthy = subscriber_factory("healthy")
    broken = subscriber_factory("broken", fail=True)
    registry.add(healthy)
    registry.add(broken)

    assert await broadcaster.tick() == 1
    assert broken not in registry
    assert len(healthy.messages) == 1

    assert await broadcaster.tick() == 1
    assert len(healthy.messages) == 2
    assert broadcaster.ticks == 2


@pytest.mark.asyncio
async def test_ticks_bypass_the_request_cache(broadcaster, registry, subscriber_factory, fake_system_monitor):
    registry.add(subscriber_factory("dashboard"))

    await broadcaster.tick()
    await broadcaster.tick()

    assert fake_system_monitor.calls["overview"] == 2


@pytest.mark.asyncio
async def test_wait_idle_returns_immediately_when_no_tick_runs(broadcaster):
    assert await broadcaster.wait_idle(timeout=0.1) is True


def test_build_envelope_shape():
    snapshot = MetricsSnapshot(system=SystemOverview(hostname="edge-02"), docker=[], timestamp="2024-01-01T00:00:00.000Z")

    envelope = build_envelope(snapshot)

    assert envelope == {
        "type": "metrics_update",
        "timestamp": "2024-01-01T00:00:00.000Z",
        "data": {"system": envelope["data"]["system"], "docker": []},
    }
    assert envelope["data"]["system"]["hostname"] == "edge-02"


@pytest.mark.asyncio
async def test_slow_subscriber_is_pruned_and_closed(
    registry, fake_system_monitor, fake_docker_monitor, silent_logger, subscriber_factory
):
    broadcaster = MetricsBroadcaster(
        registry, fake_system_monitor, fake_docker_monitor, silent_logger, send_timeout=0.05
    )
    slow = subscriber_factory("slow", hang=True)
    fast = subscriber_factory("fast")
    registry.add(slow)
    registry.add(fast)

    assert await broadcaster.tick() == 1
    await registry.close_all()

    assert slow not in registry
    assert slow.closed is True
    assert len(fast.messages) == 1
