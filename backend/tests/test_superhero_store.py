"""
Superhero Registry Backend — Superhero Service Tests (SQLite)
==============================================================

What:  SuperheroService against a real in-memory database, so ordering,
       search, counting and the unique constraint are exercised for real.

What we test:
    ✅ Created records are retrievable by id with the same field values
    ✅ Nickname uniqueness on create and update (own nickname allowed)
    ✅ Newest-first pagination and its metadata
    ✅ Case-insensitive search over nickname and real name
    ✅ add_image / remove_image idempotence
    ✅ Deleted records are gone
    ✅ Timestamps read back from storage are UTC-aware
"""

from datetime import timedelta
from uuid import uuid4

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.exceptions import ConflictError, NotFoundError
from app.schemas.superhero import SuperheroCreate, SuperheroUpdate
from app.services.superhero_service import SuperheroService


def new_hero(nickname: str, real_name: str = "Anonymous", images=None) -> SuperheroCreate:
    return SuperheroCreate(
        nickname=nickname,
        real_name=real_name,
        origin_description=f"Origin of {nickname}",
        superpowers=["strength"],
        catch_phrase=f"{nickname} to the rescue",
        images=images or [],
    )


class TestCreateAndRead:

    @pytest.mark.asyncio
    async def test_created_hero_is_retrievable(self, store):
        created = await store.create(
            new_hero("Superman", "Clark Kent", images=["http://img/s1.png", "http://img/s2.png"])
        )

        fetched = await store.find_one(created.id)

        assert fetched.nickname == "Superman"
        assert fetched.real_name == "Clark Kent"
        assert fetched.superpowers == ["strength"]
        assert fetched.images == ["http://img/s1.png", "http://img/s2.png"]
        assert fetched.created_at == fetched.updated_at

    @pytest.mark.asyncio
    async def test_duplicate_nickname_conflicts(self, store):
        await store.create(new_hero("Superman"))

        with pytest.raises(ConflictError):
            await store.create(new_hero("Superman", "Someone Else"))

        listing = await store.find_all()
        assert listing.pagination.total == 1

    @pytest.mark.asyncio
    async def test_nickname_uniqueness_is_case_sensitive(self, store):
        await store.create(new_hero("Superman"))
        await store.create(new_hero("superman"))

        listing = await store.find_all()
        assert listing.pagination.total == 2

    @pytest.mark.asyncio
    async def test_find_one_unknown_id(self, store):
        with pytest.raises(NotFoundError):
            await store.find_one(uuid4())


class TestTimestamps:

    @pytest.mark.asyncio
    async def test_reloaded_timestamps_are_utc_aware(self, store, db_session, db_engine, clock):
        created = await store.create(new_hero("Superman"))
        await db_session.commit()

        # A separate session has to read the row back from storage
        factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
        async with factory() as fresh:
            reloaded = await SuperheroService(fresh, clock=clock).find_one(created.id)

        assert reloaded.created_at.tzinfo is not None
        assert reloaded.created_at.utcoffset() == timedelta(0)
        assert reloaded.created_at == created.created_at
        assert reloaded.updated_at == created.updated_at

    @pytest.mark.asyncio
    async def test_update_after_reload_keeps_comparable_timestamps(self, store, db_session, db_engine, clock):
        created = await store.create(new_hero("Superman"))
        await db_session.commit()

        factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
        async with factory() as fresh:
            updated = await SuperheroService(fresh, clock=clock).add_image(created.id, "http://img/1.png")

        assert updated.created_at == created.created_at
        assert updated.updated_at > updated.created_at


class TestPagination:

    @pytest_asyncio.fixture
    async def twelve_heroes(self, store):
        # Created A..L in order; the step clock makes L the newest
        for letter in "ABCDEFGHIJKL":
            await store.create(new_hero(f"Hero {letter}"))

    @pytest.mark.asyncio
    async def test_first_page_newest_first(self, store, twelve_heroes):
        result = await store.find_all(page=1, limit=5)

        assert [hero.nickname for hero in result.data] == [
            "Hero L", "Hero K", "Hero J", "Hero I", "Hero H",
        ]
        assert result.pagination.total == 12
        assert result.pagination.total_pages == 3
        assert result.pagination.has_next is True
        assert result.pagination.has_prev is False

    @pytest.mark.asyncio
    async def test_last_page_is_partial(self, store, twelve_heroes):
        result = await store.find_all(page=3, limit=5)

        assert [hero.nickname for hero in result.data] == ["Hero B", "Hero A"]
        assert result.pagination.has_next is False
        assert result.pagination.has_prev is True

    @pytest.mark.asyncio
    async def test_page_past_the_end_is_empty(self, store, twelve_heroes):
        result = await store.find_all(page=4, limit=5)

        assert result.data == []
        assert result.pagination.total == 12
        assert result.pagination.has_next is False

    @pytest.mark.asyncio
    async def test_pages_do_not_overlap(self, store, twelve_heroes):
        seen = []
        for page in (1, 2, 3):
            result = await store.find_all(page=page, limit=5)
            seen.extend(hero.id for hero in result.data)

        assert len(seen) == 12
        assert len(set(seen)) == 12


class TestSearch:

    @pytest_asyncio.fixture
    async def roster(self, store):
        await store.create(new_hero("Superman", "Clark Kent"))
        await store.create(new_hero("Batman", "Bruce Wayne"))
        await store.create(new_hero("Wonder Woman", "Diana Prince"))
        await store.create(new_hero("The Flash", "Barry Allen"))
        await store.create(new_hero("Aquaman", "Arthur Curry"))

    @pytest.mark.asyncio
    async def test_matches_nickname_case_insensitively(self, store, roster):
        result = await store.find_all(search="MAN")

        assert {hero.nickname for hero in result.data} == {
            "Superman", "Batman", "Wonder Woman", "Aquaman",
        }
        assert result.pagination.total == 4

    @pytest.mark.asyncio
    async def test_matches_real_name(self, store, roster):
        result = await store.find_all(search="wayne")

        assert [hero.nickname for hero in result.data] == ["Batman"]

    @pytest.mark.asyncio
    async def test_total_counts_matches_not_page(self, store, roster):
        result = await store.find_all(page=1, limit=2, search="man")

        assert len(result.data) == 2
        assert result.pagination.total == 4
        assert result.pagination.total_pages == 2

    @pytest.mark.asyncio
    async def test_wildcards_match_literally(self, store, roster):
        result = await store.find_all(search="%")

        assert result.data == []
        assert result.pagination.total == 0

    @pytest.mark.asyncio
    async def test_empty_search_returns_everything(self, store, roster):
        result = await store.find_all(search="")

        assert result.pagination.total == 5


class TestUpdate:

    @pytest.mark.asyncio
    async def test_own_nickname_does_not_conflict(self, store):
        hero = await store.create(new_hero("Superman", "Clark Kent"))

        updated = await store.update(hero.id, new_hero("Superman", "Kal-El"))

        assert updated.nickname == "Superman"
        assert updated.real_name == "Kal-El"
        assert updated.updated_at > hero.updated_at
        assert updated.created_at == hero.created_at

    @pytest.mark.asyncio
    async def test_rename_to_other_heroes_nickname_conflicts(self, store):
        await store.create(new_hero("Superman"))
        batman = await store.create(new_hero("Batman"))

        with pytest.raises(ConflictError):
            await store.update(batman.id, SuperheroUpdate(nickname="Superman"))

    @pytest.mark.asyncio
    async def test_patch_changes_only_sent_fields(self, store):
        hero = await store.create(new_hero("Superman", "Clark Kent", images=["http://img/1.png"]))

        updated = await store.update(hero.id, SuperheroUpdate(catch_phrase="Up, up and away!"))

        assert updated.catch_phrase == "Up, up and away!"
        assert updated.real_name == "Clark Kent"
        assert updated.images == ["http://img/1.png"]

    @pytest.mark.asyncio
    async def test_images_are_replaced_not_merged(self, store):
        hero = await store.create(new_hero("Superman", images=["http://img/1.png", "http://img/2.png"]))

        updated = await store.update(hero.id, SuperheroUpdate(images=["http://img/3.png"]))

        assert updated.images == ["http://img/3.png"]

    @pytest.mark.asyncio
    async def test_full_replace_without_images_clears_them(self, store):
        hero = await store.create(new_hero("Superman", images=["http://img/1.png"]))

        updated = await store.update(hero.id, new_hero("Superman"))

        assert updated.images == []

    @pytest.mark.asyncio
    async def test_update_unknown_id(self, store):
        with pytest.raises(NotFoundError):
            await store.update(uuid4(), SuperheroUpdate(real_name="Nobody"))


class TestRemove:

    @pytest.mark.asyncio
    async def test_removed_hero_is_gone(self, store):
        hero = await store.create(new_hero("Superman"))

        result = await store.remove(hero.id)

        assert result.id == hero.id
        with pytest.raises(NotFoundError):
            await store.find_one(hero.id)

    @pytest.mark.asyncio
    async def test_remove_unknown_id(self, store):
        with pytest.raises(NotFoundError):
            await store.remove(uuid4())

    @pytest.mark.asyncio
    async def test_remove_twice(self, store):
        hero = await store.create(new_hero("Superman"))
        await store.remove(hero.id)

        with pytest.raises(NotFoundError):
            await store.remove(hero.id)


class TestImages:

    @pytest.mark.asyncio
    async def test_add_image_appends(self, store):
        hero = await store.create(new_hero("Superman", images=["http://img/1.png"]))

        updated = await store.add_image(hero.id, "http://img/2.png")

        assert updated.images == ["http://img/1.png", "http://img/2.png"]
        assert updated.updated_at > hero.updated_at

    @pytest.mark.asyncio
    async def test_add_same_image_twice_mutates_once(self, store):
        hero = await store.create(new_hero("Superman"))

        first = await store.add_image(hero.id, "http://img/1.png")
        second = await store.add_image(hero.id, "http://img/1.png")

        assert second.images == ["http://img/1.png"]
        assert second.updated_at == first.updated_at

    @pytest.mark.asyncio
    async def test_remove_image(self, store):
        hero = await store.create(new_hero("Superman", images=["http://img/1.png", "http://img/2.png"]))

        updated = await store.remove_image(hero.id, "http://img/1.png")

        assert updated.images == ["http://img/2.png"]
        assert (await store.find_one(hero.id)).images == ["http://img/2.png"]

    @pytest.mark.asyncio
    async def test_remove_absent_image_is_noop(self, store):
        hero = await store.create(new_hero("Superman", images=["http://img/1.png"]))

        updated = await store.remove_image(hero.id, "http://img/404.png")

        assert updated.images == ["http://img/1.png"]
        assert updated.updated_at == hero.updated_at

    @pytest.mark.asyncio
    async def test_remove_last_image_leaves_empty_list(self, store):
        hero = await store.create(new_hero("Superman", images=["http://img/1.png"]))

        updated = await store.remove_image(hero.id, "http://img/1.png")

        assert updated.images == []
