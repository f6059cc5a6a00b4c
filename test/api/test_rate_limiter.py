from types import SimpleNamespace

from api.middleware import RateLimiter


def _request(host: str):
    return SimpleNamespace(client=SimpleNamespace(host=host), headers={})


def test_budget_is_tracked_per_address():
    limiter = RateLimiter(max_requests=2, window_seconds=60, key_func=lambda request: request.client.host)

    assert [limiter.hit(_request("10.0.0.1")) for _ in range(3)] == [True, True, False]
    assert limiter.hit(_request("10.0.0.2")) is True


def test_limiters_do_not_share_storage():
    first = RateLimiter(max_requests=1, window_seconds=60, key_func=lambda request: "same")
    second = RateLimiter(max_requests=1, window_seconds=60, key_func=lambda request: "same")

    assert first.hit(_request("10.0.0.1")) is True
    assert second.hit(_request("10.0.0.1")) is True
    assert first.hit(_request("10.0.0.1")) is False
