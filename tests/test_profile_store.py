import json

import pytest

from app.services.profile_store import (
    ACTIVE_PROFILE_KEY,
    CARD_PREFIX,
    PROFILE_PREFIX,
    JsonFileStore,
    card_key,
    profile_key,
)


def test_key_helpers_prefix_ids():
    assert profile_key("abc") == "profile-abc"
    assert card_key("abc") == "card-abc"


@pytest.mark.asyncio
async def test_read_missing_key_returns_none(store):
    assert await store.read("profile-missing") is None


@pytest.mark.asyncio
async def test_write_then_read(store, tmp_path):
    await store.write(profile_key("p1"), {"id": "p1", "name": "Kitchen"})

    assert await store.read("profile-p1") == {"id": "p1", "name": "Kitchen"}
    on_disk = json.loads((tmp_path / "profile-p1.json").read_text(encoding="utf-8"))
    assert on_disk["name"] == "Kitchen"


@pytest.mark.asyncio
async def test_write_replaces_and_leaves_no_temp_files(store, tmp_path):
    await store.write(ACTIVE_PROFILE_KEY, {"profileId": "a"})
    await store.write(ACTIVE_PROFILE_KEY, {"profileId": "b"})

    assert await store.read(ACTIVE_PROFILE_KEY) == {"profileId": "b"}
    assert sorted(p.name for p in tmp_path.iterdir()) == ["activeProfile.json"]


@pytest.mark.asyncio
async def test_delete_is_idempotent(store):
    await store.write(card_key("c1"), {"id": "c1"})

    await store.delete(card_key("c1"))
    await store.delete(card_key("c1"))

    assert await store.read(card_key("c1")) is None


@pytest.mark.asyncio
async def test_count_by_prefix(store):
    await store.write(profile_key("a"), {})
    await store.write(profile_key("b"), {})
    await store.write(card_key("x"), {})
    await store.write(ACTIVE_PROFILE_KEY, {"profileId": "a"})

    assert await store.count(PROFILE_PREFIX) == 2
    assert await store.count(CARD_PREFIX) == 1


@pytest.mark.asyncio
async def test_count_on_missing_directory_is_zero(tmp_path):
    store = JsonFileStore(tmp_path / "not-created")

    assert await store.count(PROFILE_PREFIX) == 0


@pytest.mark.asyncio
async def test_ensure_ready_creates_directory(tmp_path):
    store = JsonFileStore(tmp_path / "nested" / "data")

    await store.ensure_ready()

    assert (tmp_path / "nested" / "data").is_dir()


@pytest.mark.asyncio
@pytest.mark.parametrize("key", ["", ".", "..", "card-a/b", "card-a\\b"])
async def test_path_like_keys_read_as_absent(store, key):
    assert store.is_valid_key(key) is False
    assert await store.read(key) is None


@pytest.mark.asyncio
@pytest.mark.parametrize("key", ["", "..", "card-a/b", "card-a\\b"])
async def test_path_like_keys_rejected_on_write_and_delete(store, key):
    with pytest.raises(ValueError):
        await store.write(key, {})
    with pytest.raises(ValueError):
        await store.delete(key)
