"""
Tests for the ID allocator and the pokemon repository.
"""

import asyncio
from datetime import datetime
from unittest.mock import AsyncMock, patch

import pytest

from pokekv.core.errors import AllocationFailure, AtomicFailure
from pokekv.kv import CommitResult, KvError, MemoryKvStore
from pokekv.repositories import IdAllocator, PokemonRepository


@pytest.fixture
def store():
    """Create an empty in-memory store."""
    return MemoryKvStore()


@pytest.fixture
def repo(store):
    """Create a pokemon repository over the store."""
    return PokemonRepository(store)


class TestIdAllocator:
    """Tests for IdAllocator."""

    @pytest.mark.asyncio
    async def test_ids_start_at_one_and_increase(self, store):
        """Test sequential allocation."""
        allocator = IdAllocator(store, "pokemons")
        assert [await allocator.next() for _ in range(3)] == [1, 2, 3]
        assert (await store.get(allocator.key)).value == 3

    @pytest.mark.asyncio
    async def test_counter_key(self, store):
        """Test that the counter lives under the counter namespace."""
        allocator = IdAllocator(store, "pokemons")
        await allocator.next()
        assert allocator.key == ("counter", "pokemons")
        assert (await store.get(("counter", "pokemons"))).value == 1

    @pytest.mark.asyncio
    async def test_collections_are_independent(self, store):
        """Test that each collection has its own counter."""
        a = IdAllocator(store, "pokemons")
        b = IdAllocator(store, "trainers")
        await a.next()
        await a.next()
        assert await b.next() == 1

    @pytest.mark.asyncio
    async def test_store_failure_is_allocation_failure(self, store):
        """Test that a failed increment surfaces as AllocationFailure."""
        allocator = IdAllocator(store, "pokemons")
        with patch.object(store, "increment", AsyncMock(side_effect=KvError("down"))):
            with pytest.raises(AllocationFailure):
                await allocator.next()


class TestPokemonRepository:
    """Tests for PokemonRepository."""

    @pytest.mark.asyncio
    async def test_create_assigns_server_fields(self, repo, store):
        """Test that create stamps id and createdAt and stores the record."""
        record = await repo.create({"name": "Pikachu", "id": 99, "createdAt": "yesterday"})

        assert record["id"] == 1
        assert record["name"] == "Pikachu"
        assert record["createdAt"].endswith("Z")
        datetime.fromisoformat(record["createdAt"].replace("Z", "+00:00"))

        entry = await store.get(("pokemons", 1))
        assert entry.value == record

    @pytest.mark.asyncio
    async def test_create_does_not_mutate_input(self, repo):
        """Test that client fields are copied."""
        fields = {"name": "Eevee"}
        await repo.create(fields)
        assert fields == {"name": "Eevee"}

    @pytest.mark.asyncio
    async def test_concurrent_creates_get_unique_ids(self, repo):
        """Test that concurrent creates never share an ID."""
        records = await asyncio.gather(
            *(repo.create({"n": i}) for i in range(40))
        )
        ids = [r["id"] for r in records]
        assert len(set(ids)) == 40
        assert await repo.count() == 40

    @pytest.mark.asyncio
    async def test_allocation_failure_writes_nothing(self, repo, store):
        """Test that no record is written without an ID."""
        with patch.object(store, "increment", AsyncMock(side_effect=KvError("down"))):
            with pytest.raises(AllocationFailure):
                await repo.create({"name": "Pikachu"})
        assert await repo.list() == []

    @pytest.mark.asyncio
    async def test_get(self, repo):
        """Test point lookups."""
        await repo.create({"name": "Pikachu"})
        assert (await repo.get(1))["name"] == "Pikachu"
        assert await repo.get(2) is None

    @pytest.mark.asyncio
    async def test_count(self, repo):
        """Test counting stored records."""
        assert await repo.count() == 0
        await repo.create({"name": "Pikachu"})
        await repo.create({"name": "Eevee"})
        assert await repo.count() == 2

    @pytest.mark.asyncio
    async def test_list_orders_by_id(self, repo):
        """Test ascending ID order past single digits."""
        for i in range(12):
            await repo.create({"n": i})
        assert [r["id"] for r in await repo.list()] == list(range(1, 13))

    @pytest.mark.asyncio
    async def test_update_replaces_whole_record(self, repo):
        """Test that update is a full replace."""
        await repo.create({"name": "Pikachu", "level": 5})
        updated = await repo.update(1, {"id": 1, "name": "Raichu"})

        assert updated == {"id": 1, "name": "Raichu"}
        assert await repo.get(1) == {"id": 1, "name": "Raichu"}

    @pytest.mark.asyncio
    async def test_update_missing_returns_none(self, repo):
        """Test that update never creates a record."""
        assert await repo.update(5, {"id": 5}) is None
        assert await repo.get(5) is None

    @pytest.mark.asyncio
    async def test_update_gives_up_on_busy_record(self, repo, store):
        """Test that a record changing under every attempt fails atomically."""
        await repo.create({"name": "Pikachu"})
        with patch.object(store, "_commit", AsyncMock(return_value=CommitResult(ok=False))):
            with pytest.raises(AtomicFailure):
                await repo.update(1, {"id": 1, "name": "Raichu"})
        assert (await repo.get(1))["name"] == "Pikachu"

    @pytest.mark.asyncio
    async def test_delete(self, repo):
        """Test single delete."""
        await repo.create({"name": "Pikachu"})
        assert await repo.delete(1) is True
        assert await repo.get(1) is None
        assert await repo.delete(1) is False

    @pytest.mark.asyncio
    async def test_delete_all_resets_ids(self, repo, store):
        """Test that bulk delete empties the collection and the counter."""
        for name in ("Pikachu", "Eevee", "Mew"):
            await repo.create({"name": name})

        assert await repo.delete_all() == 3
        assert await repo.list() == []
        assert await store.get(("counter", "pokemons")) is None

        record = await repo.create({"name": "Ditto"})
        assert record["id"] == 1

    @pytest.mark.asyncio
    async def test_delete_all_on_empty_collection(self, repo):
        """Test bulk delete with nothing stored."""
        assert await repo.delete_all() == 0

    @pytest.mark.asyncio
    async def test_delete_all_failure_is_all_or_nothing(self, repo, store):
        """Test that a failed commit deletes nothing and keeps the counter."""
        await repo.create({"name": "Pikachu"})
        await repo.create({"name": "Eevee"})

        with patch.object(store, "_commit", AsyncMock(return_value=CommitResult(ok=False))):
            with pytest.raises(AtomicFailure):
                await repo.delete_all()

        assert await repo.count() == 2
        assert (await store.get(("counter", "pokemons"))).value == 2

    @pytest.mark.asyncio
    async def test_delete_all_store_error(self, repo, store):
        """Test that a backend error during bulk delete is an AtomicFailure."""
        await repo.create({"name": "Pikachu"})
        with patch.object(store, "_commit", AsyncMock(side_effect=KvError("down"))):
            with pytest.raises(AtomicFailure):
                await repo.delete_all()
        assert await repo.count() == 1

    @pytest.mark.asyncio
    async def test_delete_all_fails_on_concurrent_update(self, repo, store):
        """Test that a record changed after listing aborts the bulk delete."""
        await repo.create({"name": "Pikachu"})
        original_list = store.list

        async def list_then_update(prefix=()):
            entries = await original_list(prefix)
            await store.set(("pokemons", 1), {"id": 1, "name": "Raichu"})
            return entries

        with patch.object(store, "list", list_then_update):
            with pytest.raises(AtomicFailure):
                await repo.delete_all()

        assert (await repo.get(1))["name"] == "Raichu"
