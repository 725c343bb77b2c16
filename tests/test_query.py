"""Tests for redmap.query — find, pagination, streaming and clear."""

from __future__ import annotations

from unittest.mock import patch

import pytest
import structlog

from redmap.errors import StoreError
from redmap.logging import bind_context
from redmap.query import RecordStream, combine_filters
from tests._support import Person, Profile


async def seed(engine, n: int) -> list[str]:
    for i in range(n):
        await engine.save(Profile, Profile(title=f"p{i}", email=f"p{i}@test.ru"))
    return await engine.store.list_range("test_profile", 0, -1)


def ids_of(records) -> list[str]:
    return [record._id for record in records]


class TestCombineFilters:
    def test_none(self):
        assert combine_filters(None) == {}

    def test_mapping_is_copied(self):
        filters = {"title": "Alex"}
        combined = combine_filters(filters)
        assert combined == filters
        assert combined is not filters

    def test_sequence_is_merged_left_to_right(self):
        assert combine_filters([{"a": 1}, {"b": 2, "a": 3}]) == {"a": 3, "b": 2}


class TestFind:
    @pytest.mark.asyncio
    async def test_count(self, engine):
        await seed(engine, 3)
        assert (await engine.find(Profile, {})).count == 3

    @pytest.mark.asyncio
    async def test_empty_model(self, engine):
        query = await engine.find(Profile)
        assert query.count == 0
        assert await query.get_all() == []
        assert await query.each().collect() == []

    @pytest.mark.asyncio
    async def test_filters_are_kept_but_not_applied(self, engine):
        await seed(engine, 3)
        query = await engine.find(Profile, {"title": "p1"})
        assert query.filters == {"title": "p1"}
        assert len(await query.get_all()) == 3

    @pytest.mark.asyncio
    async def test_count_is_a_snapshot(self, engine):
        await seed(engine, 2)
        query = await engine.find(Profile)
        await seed(engine, 1)
        assert query.count == 2
        assert (await engine.find(Profile)).count == 3


class TestGetAll:
    @pytest.mark.asyncio
    async def test_resolves_in_list_order(self, engine):
        ids = await seed(engine, 5)
        records = await (await engine.find(Profile)).get_all()
        assert ids_of(records) == ids
        assert all(isinstance(record, Profile) for record in records)
        assert records[0].title == "p4"


class TestGetPage:
    @pytest.mark.asyncio
    async def test_pages_share_boundary_ids(self, engine):
        ids = await seed(engine, 25)
        query = await engine.find(Profile)

        page1 = ids_of(await query.get_page(1))
        page2 = ids_of(await query.get_page(2))
        page3 = ids_of(await query.get_page(3))

        assert page1 == ids[0:11]
        assert page2 == ids[10:21]
        assert page3 == ids[20:25]
        assert set(page1) | set(page2) | set(page3) == set(ids)
        assert set(page1) & set(page2) == {ids[10]}
        assert set(page2) & set(page3) == {ids[20]}

    @pytest.mark.asyncio
    async def test_default_limit_is_ten(self, engine):
        await seed(engine, 15)
        assert len(await (await engine.find(Profile)).get_page(1)) == 11

    @pytest.mark.asyncio
    async def test_page_past_end_is_empty(self, engine):
        await seed(engine, 3)
        assert await (await engine.find(Profile)).get_page(5, limit=2) == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(("page", "limit"), [(0, 10), (1, 0), (-1, 5)])
    async def test_invalid_bounds(self, engine, page, limit):
        query = await engine.find(Profile)
        with pytest.raises(ValueError):
            await query.get_page(page, limit)


class TestEach:
    @pytest.mark.asyncio
    async def test_streams_every_page(self, engine):
        ids = await seed(engine, 25)
        stream = (await engine.find(Profile)).each(limit=10)

        assert isinstance(stream, RecordStream)
        assert stream.pages == 3
        streamed = ids_of([record async for record in stream])
        assert streamed == ids[0:11] + ids[10:21] + ids[20:25]
        assert set(streamed) == set(ids)

    @pytest.mark.asyncio
    async def test_restartable(self, engine):
        await seed(engine, 7)
        stream = (await engine.find(Profile)).each(limit=3)
        first = ids_of(await stream.collect())
        second = ids_of([record async for record in stream])
        assert first == second
        assert len(first) == 7 + 2  # two shared page boundaries

    @pytest.mark.asyncio
    async def test_next_contract(self, engine):
        ids = await seed(engine, 2)
        stream = (await engine.find(Profile)).each(limit=5)

        assert (await stream.next())._id == ids[0]
        assert (await stream.next())._id == ids[1]
        assert await stream.next() is None
        assert await stream.next() is None

        stream.reset()
        assert (await stream.next())._id == ids[0]

    @pytest.mark.asyncio
    async def test_lazy_reads_one_page_at_a_time(self, engine, store):
        await seed(engine, 25)
        calls = []
        original = store.list_range

        async def tracking_range(key, start, stop):
            calls.append((start, stop))
            return await original(key, start, stop)

        store.list_range = tracking_range
        stream = (await engine.find(Profile)).each(limit=10)
        await stream.next()
        assert calls == [(0, 10)]

    def test_invalid_limit(self):
        with pytest.raises(ValueError):
            RecordStream(handle=None, limit=0)  # type: ignore[arg-type]


class TestClear:
    @pytest.mark.asyncio
    async def test_removes_everything_and_reports_snapshot(self, engine, store):
        await seed(engine, 3)
        result = await engine.clear(Profile, {})
        assert result.deleted_count == 3
        assert store.keys() == []
        assert (await engine.find(Profile)).count == 0

    @pytest.mark.asyncio
    async def test_clears_more_than_one_page(self, engine, store):
        await seed(engine, 25)
        result = await engine.clear(Profile)
        assert result.deleted_count == 25
        assert store.keys() == []

    @pytest.mark.asyncio
    async def test_empty_model(self, engine):
        assert (await engine.clear(Profile)).deleted_count == 0

    @pytest.mark.asyncio
    async def test_count_is_pre_clear_snapshot_not_actual_deletions(self, engine, store):
        await seed(engine, 2)
        # A dangling id whose hash is gone resolves to an id-less record.
        await store.list_push("test_profile", "01DANGLING")

        result = await engine.clear(Profile)

        assert result.deleted_count == 3
        assert await store.list_range("test_profile", 0, -1) == ["01DANGLING"]

    @pytest.mark.asyncio
    async def test_dangling_id_with_required_field(self, engine, store):
        engine.register(Person)
        person = await engine.save(Person, Person(name="Alex"))
        await store.list_push("test_person", "01DANGLING")

        result = await engine.clear(Person)

        assert result.deleted_count == 2
        assert await store.hash_get_all(f"test_person#{person._id}") == {}
        assert await store.list_range("test_person", 0, -1) == ["01DANGLING"]

    @pytest.mark.asyncio
    async def test_model_bound_to_log_context_while_clearing(self, engine):
        await seed(engine, 1)
        with patch("redmap.engine.bind_context", wraps=bind_context) as bind:
            await engine.clear(Profile)
        bind.assert_called_once_with(model="profile")
        assert "model" not in structlog.contextvars.get_contextvars()

    @pytest.mark.asyncio
    async def test_log_context_released_on_failure(self, faulty_engine, faulty_store):
        await seed(faulty_engine, 1)
        faulty_store.install_fault("list_range")
        with pytest.raises(StoreError):
            await faulty_engine.clear(Profile)
        assert "model" not in structlog.contextvars.get_contextvars()

    @pytest.mark.asyncio
    async def test_other_models_untouched(self, engine, store):
        await seed(engine, 2)
        note = await engine.model("note").save(engine.model("note").create(body="keep"))
        await engine.clear(Profile)
        assert await store.list_range("test_note", 0, -1) == [note._id]
