from datetime import timedelta

import pytest

from assetfind.data.records import AssetRecord
from assetfind.data.store import InMemoryCatalogStore
from assetfind.exceptions import InvalidCursorError, StaleCursorError, StoreUnavailableError
from assetfind.retrieval.cache import ResultCache
from assetfind.retrieval.retriever import LATEST_MAX_LIMIT, SUGGEST_LIMIT, clamp_latest, clamp_limit


def _ids(page):
    return [r.id for r in page.items]


def _car_records(long_ago, n=35):
    letters = "abcdefghijklmnopqrstuvwxyz"
    return [
        AssetRecord(
            id=f"r{i:02d}",
            title=f"car {letters[i % 26]}{letters[i // 26]}",
            created_at=long_ago + timedelta(hours=i),
        )
        for i in range(n)
    ]


@pytest.fixture
def big_service(make_service, long_ago):
    return make_service(InMemoryCatalogStore(_car_records(long_ago)))


# ---------- Car / cars / karr ----------
@pytest.mark.asyncio
async def test_search_basic(scenario_service):
    page = await scenario_service.search_first("car", limit=10)
    assert _ids(page) == ["A", "C"]
    assert page.total == 2
    assert page.cursor is None
    assert page.query == "car"


@pytest.mark.asyncio
async def test_plural_query_gives_same_results(scenario_service):
    singular = await scenario_service.search_first("car")
    plural = await scenario_service.search_first("Cars")
    assert _ids(plural) == _ids(singular) == ["A", "C"]
    assert plural.query == "car"


@pytest.mark.asyncio
async def test_spell_correction_query(scenario_service):
    page = await scenario_service.search_first("karr")
    assert _ids(page) == ["A", "C"]
    assert page.query == "car"


@pytest.mark.asyncio
async def test_multi_token_query(scenario_service):
    page = await scenario_service.search_first("red car")
    assert _ids(page) == ["A"]


@pytest.mark.asyncio
async def test_fallback_to_near_words(make_service, long_ago):
    store = InMemoryCatalogStore([
        AssetRecord(id="A", title="Red Sports Car", created_at=long_ago),
        AssetRecord(id="D", title="Blue Boat", created_at=long_ago),
    ])
    service = make_service(store)
    # no record has both words, so the looser near-word retry kicks in
    page = await service.search_first("car boat")
    assert set(_ids(page)) == {"A", "D"}


@pytest.mark.asyncio
async def test_fallback_is_tried_once(make_service, counting_store, scenario_store):
    store = counting_store(scenario_store, empty_find=True)
    page = await make_service(store).search_first("car")
    assert page.items == [] and page.total == 0
    # strict filter, then one near-word retry, and nothing more
    assert store.find_calls == 2


@pytest.mark.asyncio
async def test_strict_hit_skips_fallback(make_service, counting_store, scenario_store):
    store = counting_store(scenario_store)
    await make_service(store).search_first("car")
    assert store.find_calls == 1


@pytest.mark.asyncio
async def test_candidate_cap_bounds_the_pool(make_service, long_ago):
    service = make_service(InMemoryCatalogStore(_car_records(long_ago)), candidate_cap=7)
    page = await service.search_first("car", limit=50)
    assert page.total == 7
    assert len(page.items) == 7


# ---------- Empty cases ----------
@pytest.mark.asyncio
@pytest.mark.parametrize("query", ["", "   ", "the"])
async def test_blank_query_is_empty_page(scenario_service, query):
    page = await scenario_service.search_first(query)
    assert page.items == [] and page.total == 0 and page.cursor is None
    assert not scenario_service.dictionary.is_built


@pytest.mark.asyncio
async def test_empty_catalog(make_service):
    service = make_service(InMemoryCatalogStore([]))
    page = await service.search_first("car")
    assert page.items == [] and page.total == 0 and page.cursor is None


@pytest.mark.asyncio
async def test_no_match(scenario_service):
    page = await scenario_service.search_first("zebra")
    assert page.items == [] and page.total == 0 and page.cursor is None


# ---------- Paging ----------
def test_clamp_limit():
    assert clamp_limit(None) == 24
    assert clamp_limit(1) == 10
    assert clamp_limit(50) == 50
    assert clamp_limit(10_000) == 200


@pytest.mark.asyncio
async def test_first_page_respects_limit(big_service):
    page = await big_service.search_first("car", limit=10)
    assert len(page.items) == 10
    assert page.total == 35
    assert page.cursor == 10


@pytest.mark.asyncio
async def test_pages_partition_the_ranked_list(big_service):
    page = await big_service.search_first("car", limit=10)
    seen = list(page.items)
    cursors = []
    while page.cursor is not None:
        cursors.append(page.cursor)
        page = await big_service.search_next("car", page.cursor, limit=10)
        seen.extend(page.items)

    assert cursors == [10, 20, 30]
    cached = [c.record for c in big_service.cache.get("car").items]
    assert seen == cached
    assert len({r.id for r in seen}) == 35


@pytest.mark.asyncio
async def test_repeat_search_is_served_from_cache(big_service):
    first = await big_service.search_first("car", limit=50)
    entry = big_service.cache.get("car")
    again = await big_service.search_first("cars", limit=50)
    assert _ids(again) == _ids(first)
    assert big_service.cache.get("car") is entry


@pytest.mark.asyncio
async def test_cursor_past_end(big_service):
    await big_service.search_first("car")
    page = await big_service.search_next("car", 100)
    assert page.items == [] and page.cursor is None and page.total == 35


@pytest.mark.asyncio
async def test_negative_cursor(big_service):
    await big_service.search_first("car")
    with pytest.raises(InvalidCursorError):
        await big_service.search_next("car", -1)


@pytest.mark.asyncio
async def test_next_without_first_is_stale(scenario_service):
    with pytest.raises(StaleCursorError):
        await scenario_service.search_next("car", 10)


@pytest.mark.asyncio
async def test_fifo_eviction_makes_oldest_query_stale(scenario_store, make_service):
    service = make_service(scenario_store, cache_capacity=2)
    await service.search_first("car")
    await service.search_first("bus")
    await service.search_first("red")

    with pytest.raises(StaleCursorError):
        await service.search_next("car", 0)
    page = await service.search_next("bus", 0)
    assert _ids(page) == ["B"]


@pytest.mark.asyncio
async def test_expired_entry_makes_cursor_stale(scenario_store, make_service, clock):
    cache = ResultCache(ttl_seconds=60, capacity=10, clock=clock)
    service = make_service(scenario_store, cache=cache)
    await service.search_first("car")

    clock.now += 59
    page = await service.search_next("car", 0)
    assert _ids(page) == ["A", "C"]

    clock.now += 1
    with pytest.raises(StaleCursorError):
        await service.search_next("car", 0)


# ---------- Store failures ----------
@pytest.mark.asyncio
async def test_store_down_during_dictionary_build(failing_store, make_service):
    service = make_service(failing_store())
    with pytest.raises(StoreUnavailableError):
        await service.search_first("car")
    assert not service.dictionary.is_built


@pytest.mark.asyncio
async def test_store_down_during_retrieval(failing_store, make_service):
    service = make_service(failing_store(fail_scan=False))
    with pytest.raises(StoreUnavailableError) as exc:
        await service.search_first("car")
    assert exc.value.details["operation"] == "candidate retrieval"


# ---------- Suggestions ----------
@pytest.mark.asyncio
async def test_suggest(scenario_service, make_service, long_ago):
    assert await scenario_service.suggest("Re") == ["Red Sports Car"]
    assert await scenario_service.suggest("c") == []

    store = InMemoryCatalogStore([
        AssetRecord(id="1", title="Car wash", created_at=long_ago),
        AssetRecord(id="2", title="Car wash", tags=("carousel",), created_at=long_ago),
        AssetRecord(id="3", title="Cart", created_at=long_ago),
    ])
    titles = await make_service(store).suggest("car")
    # store order (newest first, then id desc), duplicates dropped
    assert titles == ["Cart", "Car wash"]


@pytest.mark.asyncio
async def test_suggest_limit_is_capped(make_service, long_ago):
    store = InMemoryCatalogStore(
        [AssetRecord(id=f"s{i:02d}", title=f"Car {i:02d}", created_at=long_ago) for i in range(15)]
    )
    titles = await make_service(store).suggest("car", limit=1000)
    assert len(titles) == SUGGEST_LIMIT


# ---------- Latest ----------
def test_clamp_latest():
    assert clamp_latest(None, None) == (1, 12)
    assert clamp_latest(0, 0) == (1, 12)
    assert clamp_latest(-3, -5) == (1, 1)
    assert clamp_latest(2, 10_000) == (2, LATEST_MAX_LIMIT)


@pytest.mark.asyncio
async def test_latest_pages_newest_first(big_service):
    first = await big_service.latest(page=1, limit=12)
    assert [r.id for r in first] == [f"r{i:02d}" for i in range(34, 22, -1)]

    last = await big_service.latest(page=3, limit=12)
    assert [r.id for r in last] == [f"r{i:02d}" for i in range(10, -1, -1)]

    assert await big_service.latest(page=4, limit=12) == []


@pytest.mark.asyncio
async def test_latest_defaults_and_limits(big_service):
    assert len(await big_service.latest()) == 12
    assert len(await big_service.latest(page=0, limit=1000)) == 35


@pytest.mark.asyncio
async def test_latest_does_not_touch_dictionary_or_cache(big_service):
    await big_service.latest()
    assert not big_service.dictionary.is_built
    assert len(big_service.cache) == 0


@pytest.mark.asyncio
async def test_store_down_during_latest(failing_store, make_service):
    with pytest.raises(StoreUnavailableError) as exc:
        await make_service(failing_store()).latest()
    assert exc.value.details["operation"] == "latest"
