import pytest

from app.services.cache_utils import clear_ttl_cache, load_ttl_cache, store_ttl_cache


def test_store_then_load(cache_dir):
    store_ttl_cache("profiles", "ABC:2024-01-01", {"frequency": "QUARTERLY"}, ttl_seconds=60)
    assert load_ttl_cache("profiles", "ABC:2024-01-01") == {"frequency": "QUARTERLY"}
    assert load_ttl_cache("profiles", "XYZ:2024-01-01") is None
    assert load_ttl_cache("other", "ABC:2024-01-01") is None


def test_expired_entries_are_dropped(cache_dir):
    store_ttl_cache("profiles", "ABC", [1, 2, 3], ttl_seconds=-1)
    assert load_ttl_cache("profiles", "ABC") is None
    assert list((cache_dir / "profiles").glob("*.json")) == []


def test_corrupt_entry_reads_as_miss(cache_dir):
    store_ttl_cache("profiles", "ABC", 1, ttl_seconds=60)
    (entry,) = (cache_dir / "profiles").glob("*.json")
    entry.write_text("{not json", encoding="utf-8")
    assert load_ttl_cache("profiles", "ABC") is None


def test_namespace_is_sanitised_and_clearable(cache_dir):
    store_ttl_cache("../prof iles", "A", 1, ttl_seconds=60)
    store_ttl_cache("../prof iles", "B", 2, ttl_seconds=60)
    assert (cache_dir / "profiles").is_dir()

    assert clear_ttl_cache("../prof iles") == 2
    assert load_ttl_cache("profiles", "A") is None
    assert clear_ttl_cache("never-used") == 0


def test_failed_write_leaves_no_temp_file(cache_dir):
    with pytest.raises(TypeError):
        store_ttl_cache("profiles", "ABC", {"when": object()}, ttl_seconds=60)
    assert list((cache_dir / "profiles").iterdir()) == []
    assert load_ttl_cache("profiles", "ABC") is None
