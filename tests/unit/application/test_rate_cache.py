# nosec B101


from datetime import timedelta
from decimal import Decimal

import pytest

from application.services.rate_cache import FreshnessCacheLookup
from domain.models.rate import CollectionKey, RateObservation, SourceSelection


def _obs(rate, pair=('USD', 'IDR'), rate_type='sell'):
    return RateObservation(pair[0], pair[1], rate_type, Decimal(rate))


async def _store(repository, source, rate, query_time, key=CollectionKey.SPOT_RATE, **kwargs):
    await repository.insert(_obs(rate, **kwargs), source=source, collection_key=key, query_time=query_time)


@pytest.mark.asyncio
async def test_specific_source_returns_latest_row(repository, now):
    await _store(repository, 'fixerio', '1', now - timedelta(seconds=20))
    await _store(repository, 'fixerio', '2', now - timedelta(seconds=10))
    await _store(repository, 'openexchange', '3', now)
    cache = FreshnessCacheLookup(repository)

    rows = await cache.spot_rate('USD', 'IDR', 'sell', SourceSelection.parse('fixerio'), 60, now=now)

    assert [(r.source, r.rate) for r in rows] == [('fixerio', Decimal('2'))]


@pytest.mark.asyncio
async def test_any_returns_latest_row_from_any_source(repository, now):
    await _store(repository, 'fixerio', '1', now - timedelta(seconds=20))
    await _store(repository, 'openexchange', '3', now - timedelta(seconds=5))
    cache = FreshnessCacheLookup(repository)

    rows = await cache.spot_rate('USD', 'IDR', 'sell', SourceSelection.parse(':any'), 60, now=now)

    assert [r.source for r in rows] == ['openexchange']


@pytest.mark.asyncio
async def test_aggregation_policy_returns_latest_row_per_source(repository, now):
    await _store(repository, 'fixerio', '1', now - timedelta(seconds=20))
    await _store(repository, 'fixerio', '2', now - timedelta(seconds=10))
    await _store(repository, 'openexchange', '3', now - timedelta(seconds=5))
    await _store(repository, 'currencyapi', '4', now - timedelta(seconds=5), rate_type='buy')
    cache = FreshnessCacheLookup(repository)

    rows = await cache.spot_rate('USD', 'IDR', 'sell', SourceSelection.parse(':highest'), 60, now=now)

    assert [(r.source, r.rate) for r in rows] == [('fixerio', Decimal('2')), ('openexchange', Decimal('3'))]


@pytest.mark.asyncio
async def test_rows_outside_window_are_a_miss(repository, now):
    await _store(repository, 'fixerio', '1', now - timedelta(hours=5))
    cache = FreshnessCacheLookup(repository)

    for source in ('fixerio', ':any', ':average'):
        rows = await cache.spot_rate('USD', 'IDR', 'sell', SourceSelection.parse(source), 4 * 3600, now=now)
        assert rows == []


@pytest.mark.asyncio
async def test_full_table_dedupes_newest_first(repository, now):
    key = CollectionKey.ALL_SPOT_RATES
    await _store(repository, 'fixerio', '1', now - timedelta(seconds=30), key=key)
    await _store(repository, 'fixerio', '2', now - timedelta(seconds=10), key=key)
    await _store(repository, 'fixerio', '5', now - timedelta(seconds=10), key=key, pair=('EUR', 'USD'))
    await _store(repository, 'openexchange', '3', now - timedelta(seconds=10), key=key)
    cache = FreshnessCacheLookup(repository)

    rows = await cache.all_spot_rates(SourceSelection.parse(':all'), 60, now=now)

    assert sorted((r.source, r.pair, r.rate) for r in rows) == [
        ('fixerio', 'EUR/USD', Decimal('5')),
        ('fixerio', 'USD/IDR', Decimal('2')),
        ('openexchange', 'USD/IDR', Decimal('3')),
    ]


@pytest.mark.asyncio
async def test_full_table_ignores_single_pair_rows(repository, now):
    await _store(repository, 'fixerio', '1', now)
    cache = FreshnessCacheLookup(repository)

    assert await cache.all_spot_rates(SourceSelection.parse('fixerio'), 60, now=now) == []
    assert await cache.all_spot_rates(SourceSelection.parse(':any'), 60, now=now) == []


@pytest.mark.asyncio
async def test_full_table_specific_source(repository, now):
    key = CollectionKey.ALL_SPOT_RATES
    await _store(repository, 'fixerio', '1', now, key=key)
    await _store(repository, 'openexchange', '3', now, key=key)
    cache = FreshnessCacheLookup(repository)

    rows = await cache.all_spot_rates(SourceSelection.parse('openexchange'), 60, now=now)

    assert [r.source for r in rows] == ['openexchange']
