"""Tests for the listing cache."""

from crm.core import cache


def test_entries_expire(monkeypatch):
    now = [1000.0]
    monkeypatch.setattr(cache.time, "monotonic", lambda: now[0])
    cache.clear()

    cache.put("templates:list", ["a"], ttl=10)
    assert cache.get("templates:list") == ["a"]
    now[0] += 10
    assert cache.get("templates:list") is None


def test_invalidate_prefix_only_hits_family():
    cache.clear()
    cache.put(cache.TEMPLATE_LIST_KEY, [])
    cache.put("templates:other", [])
    cache.put("deals:list", [])

    assert cache.invalidate_prefix(cache.TEMPLATE_PREFIX) == 2
    assert cache.get("deals:list") == []
    cache.clear()
