from __future__ import annotations

import pytest

from econ_data_sync.sync.cache import EntityCache


def test_low_frequency_entry_does_not_satisfy_high_frequency_check():
    cache = EntityCache()
    cache.remember("DEU", high_frequency=False)
    assert cache.satisfies("DEU", high_frequency=False)
    assert not cache.satisfies("DEU", high_frequency=True)


def test_flag_never_downgrades_in_cache():
    cache = EntityCache()
    cache.remember("DEU", high_frequency=True)
    cache.remember("DEU", high_frequency=False)
    assert cache.satisfies("DEU", high_frequency=True)


def test_cache_evicts_least_recently_used():
    cache = EntityCache(max_size=2)
    cache.remember("A", high_frequency=False)
    cache.remember("B", high_frequency=False)
    assert cache.satisfies("A", high_frequency=False)
    cache.remember("C", high_frequency=False)
    assert len(cache) == 2
    assert not cache.satisfies("B", high_frequency=False)
    assert cache.satisfies("A", high_frequency=False)


def test_zero_size_cache_remembers_nothing():
    cache = EntityCache(max_size=0)
    cache.remember("A", high_frequency=True)
    assert not cache.satisfies("A", high_frequency=False)
    with pytest.raises(ValueError):
        EntityCache(max_size=-1)


def test_forget_drops_a_single_entry():
    cache = EntityCache()
    cache.remember("DEU", high_frequency=True)
    cache.remember("FRA", high_frequency=False)
    cache.forget("DEU")
    cache.forget("XXX")
    assert not cache.satisfies("DEU", high_frequency=False)
    assert cache.satisfies("FRA", high_frequency=False)
    assert len(cache) == 1
