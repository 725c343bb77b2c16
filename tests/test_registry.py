"""Tests for redmap.registry — operations bound per model."""

import pytest

from tests._support import Note, Profile


class TestBoundModel:
    @pytest.mark.asyncio
    async def test_save_and_get(self, engine):
        profiles = engine.model(Profile)
        profile = await profiles.save(Profile(title="Alex"))
        fetched = await profiles.get(profile._id)
        assert fetched.title == "Alex"

    @pytest.mark.asyncio
    async def test_remove_returns_true_once(self, engine):
        profiles = engine.model(Profile)
        profile = await profiles.save(Profile(title="Alex"))
        assert await profiles.remove(profile) is True
        assert await profiles.remove(profile) is False

    @pytest.mark.asyncio
    async def test_remove_unsaved_record(self, engine):
        assert await engine.model(Profile).remove(Profile()) is False

    @pytest.mark.asyncio
    async def test_clear_returns_whether_anything_existed(self, engine):
        profiles = engine.model(Profile)
        assert await profiles.clear() is False
        await profiles.save(Profile(title="Alex"))
        assert await profiles.clear() is True
        assert (await profiles.find({})).count == 0

    @pytest.mark.asyncio
    async def test_strict_get(self, engine):
        from redmap.errors import RecordNotFoundError

        with pytest.raises(RecordNotFoundError):
            await engine.model(Profile).get("01NOTTHERE", strict=True)

    def test_create_uses_factory(self, engine):
        note = engine.model(Note).create(body="hi", mood="ok")
        assert isinstance(note, Note)
        assert note.mood == "ok"
        assert note._id is None

    def test_repr(self, engine):
        assert repr(engine.model(Profile)) == "BoundModel('profile')"
