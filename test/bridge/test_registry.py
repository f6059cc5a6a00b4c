import pytest

from bridge.registry import SubscriberRegistry


@pytest.mark.asyncio
async def test_for_each_visits_every_open_member(subscriber_factory):
    registry = SubscriberRegistry()
    first, second = subscriber_factory("first"), subscriber_factory("second")
    registry.add(first)
    registry.add(second)

    seen = []

    async def _send(subscriber):
        seen.append(subscriber.name)

    pruned = await registry.for_each(_send)

    assert sorted(seen) == ["first", "second"]
    assert pruned == []


@pytest.mark.asyncio
async def test_failing_send_prunes_only_that_member(subscriber_factory):
    registry = SubscriberRegistry()
    healthy, broken = subscriber_factory("healthy"), subscriber_factory("broken", fail=True)
    registry.add(healthy)
    registry.add(broken)

    pruned = await registry.for_each(lambda subscriber: subscriber.send("payload"))

    assert pruned == [broken]
    assert broken not in registry
    assert broken.closed is True
    assert healthy in registry
    assert healthy.messages == ["payload"]


@pytest.mark.asyncio
async def test_closed_member_is_pruned_without_send(subscriber_factory):
    registry = SubscriberRegistry()
    gone = subscriber_factory("gone")
    gone.open = False
    registry.add(gone)

    pruned = await registry.for_each(lambda subscriber: subscriber.send("payload"))

    assert pruned == [gone]
    assert gone.messages == []
    assert registry.is_empty()


@pytest.mark.asyncio
async def test_member_removed_mid_walk_is_skipped(subscriber_factory):
    registry = SubscriberRegistry()
    a, b = subscriber_factory("a"), subscriber_factory("b")
    registry.add(a)
    registry.add(b)

    async def _send(subscriber):
        other = b if subscriber is a else a
        registry.remove(other)
        await subscriber.send("payload")

    await registry.for_each(_send)

    delivered = [s for s in (a, b) if s.messages]
    assert len(delivered) == 1
    assert len(registry) == 1


@pytest.mark.asyncio
async def test_close_all_closes_and_empties(subscriber_factory):
    registry = SubscriberRegistry()
    members = [subscriber_factory(str(i)) for i in range(3)]
    for member in members:
        registry.add(member)

    assert await registry.close_all() == 3
    assert registry.is_empty()
    assert all(member.closed for member in members)


def test_remove_unknown_member_returns_false(subscriber_factory):
    registry = SubscriberRegistry()
    assert registry.remove(subscriber_factory("stranger")) is False


@pytest.mark.asyncio
async def test_already_closed_member_is_not_closed_again(subscriber_factory):
    registry = SubscriberRegistry()
    gone = subscriber_factory("gone")
    gone.open = False
    registry.add(gone)

    await registry.for_each(lambda subscriber: subscriber.send("payload"))

    assert gone.closed is False
