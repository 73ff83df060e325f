import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from gestion.core.errors import ApiError
from gestion.services import option_cache
from gestion.services.option_cache import OptionCache


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_options_reused_within_ttl():
    calls = []

    def load():
        calls.append(1)
        return [{"id": len(calls)}]

    cache = OptionCache(ttl=60)
    assert cache.get("http://a", "brands", load) == [{"id": 1}]
    assert cache.get("http://a", "brands", load) == [{"id": 1}]
    assert cache.get("http://a", "brands", load, force=True) == [{"id": 2}]
    assert len(calls) == 2


def test_options_expire():
    clock = FakeClock()
    values = iter([["old"], ["new"]])
    cache = OptionCache(ttl=10, clock=clock)

    assert cache.get("http://a", "units", lambda: next(values)) == ["old"]
    clock.now += 11
    assert cache.get("http://a", "units", lambda: next(values)) == ["new"]


def test_failed_reload_keeps_cached_options():
    results = [["cached"]]

    def load():
        if not results:
            raise ApiError("down")
        return results.pop()

    cache = OptionCache()
    assert cache.get("http://a", "brands", load) == ["cached"]
    assert cache.get("http://a", "brands", load, force=True) == ["cached"]


def test_first_failure_propagates():
    def load():
        raise ApiError("down")

    with pytest.raises(ApiError):
        OptionCache().get("http://a", "brands", load)


def test_cached_options_are_scoped_by_namespace():
    first = option_cache.cached_options("http://a", "brands", lambda: ["a"])
    second = option_cache.cached_options("http://b", "brands", lambda: ["b"])
    again = option_cache.cached_options("http://a", "brands", lambda: ["changed"])
    assert (first, second, again) == (["a"], ["b"], ["a"])

    option_cache.clear_options("http://a")
    assert option_cache.cached_options("http://a", "brands", lambda: ["changed"]) == ["changed"]
    assert option_cache.cached_options("http://b", "brands", lambda: ["x"]) == ["b"]


def test_cached_options_thread_safe():
    calls = []

    def slow_load():
        calls.append(1)
        time.sleep(0.01)
        return [{"id": "b1"}]

    with ThreadPoolExecutor(max_workers=5) as ex:
        results = list(
            ex.map(
                lambda _: option_cache.cached_options("http://a", "brands", slow_load),
                range(5),
            )
        )

    assert results == [[{"id": "b1"}]] * 5
    assert len(calls) == 1
