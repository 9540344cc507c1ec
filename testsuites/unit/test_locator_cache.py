import json
import threading
import time
from datetime import datetime, timedelta, timezone

from testsuites.ui_testing.framework.locator_cache import LocatorCache
from testsuites.ui_testing.framework.locators import CachedLocatorResult


NOW = datetime(2026, 3, 10, 12, 0, 0, tzinfo=timezone.utc)


def _entry(original, generated="button[data-testid='submit']", strategy="CSS", timestamp=NOW):
    return CachedLocatorResult(original, generated, strategy, timestamp)


def test_lookup_returns_inserted_entry(tmp_path):
    cache = LocatorCache(tmp_path / "cache.json")
    entry = _entry("#submit")

    cache.insert("#submit", entry)

    assert cache.lookup("#submit") == entry
    assert cache.lookup("#missing") is None
    assert "#submit" in cache
    assert len(cache) == 1


def test_save_then_load_restores_entries(tmp_path):
    path = tmp_path / "nested" / "cache.json"
    cache = LocatorCache(path)
    cache.insert("#submit", _entry("#submit"))
    cache.insert("//a[@id='home']", _entry("//a[@id='home']", "//a[@href='/']", "XPATH"))

    cache.save_to_file()

    restored = LocatorCache(path)
    restored.load_from_file()
    assert restored.snapshot() == cache.snapshot()


def test_saved_file_uses_camel_case_fields(tmp_path):
    path = tmp_path / "cache.json"
    cache = LocatorCache(path)
    cache.insert("#submit", _entry("#submit"))

    cache.save_to_file()

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data == {
        "#submit": {
            "originalLocator": "#submit",
            "generatedLocator": "button[data-testid='submit']",
            "strategy": "CSS",
            "timestamp": NOW.isoformat(),
        }
    }


def test_load_does_not_overwrite_in_memory_entries(tmp_path):
    path = tmp_path / "cache.json"
    on_disk = LocatorCache(path)
    on_disk.insert("#submit", _entry("#submit", "#from-disk"))
    on_disk.insert("#other", _entry("#other", "#other-from-disk"))
    on_disk.save_to_file()

    cache = LocatorCache(path)
    cache.insert("#submit", _entry("#submit", "#from-memory"))
    cache.load_from_file()

    assert cache.lookup("#submit").generated_locator == "#from-memory"
    assert cache.lookup("#other").generated_locator == "#other-from-disk"


def test_missing_file_leaves_cache_empty(tmp_path):
    cache = LocatorCache(tmp_path / "absent.json")

    cache.load_from_file()

    assert len(cache) == 0


def test_corrupt_file_is_logged_and_ignored(tmp_path, log_messages):
    path = tmp_path / "cache.json"
    path.write_text("{not json", encoding="utf-8")
    cache = LocatorCache(path)

    cache.load_from_file()

    assert len(cache) == 0
    assert any("Failed to load locator cache" in m for m in log_messages)


def test_non_object_file_is_ignored(tmp_path):
    path = tmp_path / "cache.json"
    path.write_text("[]", encoding="utf-8")
    cache = LocatorCache(path)

    cache.load_from_file()

    assert len(cache) == 0


def test_cleanup_keeps_entries_at_the_cutoff(tmp_path):
    cache = LocatorCache(tmp_path / "cache.json")
    max_age = timedelta(days=3)
    cache.insert("#old", _entry("#old", timestamp=NOW - max_age - timedelta(seconds=1)))
    cache.insert("#edge", _entry("#edge", timestamp=NOW - max_age))
    cache.insert("#fresh", _entry("#fresh", timestamp=NOW - timedelta(hours=1)))

    removed = cache.cleanup_older_than(max_age, now=NOW)

    assert removed == 1
    assert sorted(cache.snapshot()) == ["#edge", "#fresh"]


def test_statistics_report_count_and_extremes(tmp_path):
    cache = LocatorCache(tmp_path / "cache.json")
    assert cache.statistics().total_entries == 0
    assert cache.statistics().oldest_entry is None

    cache.insert("#a", _entry("#a", timestamp=NOW - timedelta(days=2)))
    cache.insert("#b", _entry("#b", timestamp=NOW))

    stats = cache.statistics()
    assert stats.total_entries == 2
    assert stats.oldest_entry == NOW - timedelta(days=2)
    assert stats.newest_entry == NOW


def test_key_lock_serializes_same_key(tmp_path):
    cache = LocatorCache(tmp_path / "cache.json")
    active = []
    peak = []
    guard = threading.Lock()

    def worker():
        with cache.key_lock("#submit"):
            with guard:
                active.append(1)
                peak.append(len(active))
            time.sleep(0.01)
            with guard:
                active.pop()

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert max(peak) == 1


def test_concurrent_inserts_are_all_kept(tmp_path):
    cache = LocatorCache(tmp_path / "cache.json")

    def worker(n):
        for i in range(50):
            key = f"#item-{n}-{i}"
            cache.insert(key, _entry(key))

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(cache) == 200


def test_key_lock_is_released_after_use(tmp_path):
    cache = LocatorCache(tmp_path / "cache.json")

    with cache.key_lock("#submit"):
        assert "#submit" in cache._key_locks

    assert cache._key_locks == {}


def test_key_locks_do_not_accumulate_across_keys(tmp_path):
    cache = LocatorCache(tmp_path / "cache.json")

    def worker(n):
        for i in range(25):
            with cache.key_lock(f"#item-{i % 5}"):
                time.sleep(0.001)

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert cache._key_locks == {}


def test_key_lock_is_released_when_block_raises(tmp_path):
    cache = LocatorCache(tmp_path / "cache.json")

    try:
        with cache.key_lock("#submit"):
            raise RuntimeError("inference blew up")
    except RuntimeError:
        pass

    assert cache._key_locks == {}
    with cache.key_lock("#submit"):
        pass


def test_save_failure_is_logged_and_entries_survive(tmp_path, log_messages):
    cache_dir = tmp_path / "cache.json"
    cache_dir.mkdir()
    cache = LocatorCache(cache_dir)
    entry = _entry("#submit")
    cache.insert("#submit", entry)

    cache.save_to_file()

    assert any("Failed to save locator cache" in m for m in log_messages)
    assert cache.lookup("#submit") == entry
    assert len(cache) == 1


def test_save_replaces_file_with_current_map(tmp_path):
    path = tmp_path / "cache.json"
    stale = _entry("#stale", "#stale-generated")
    path.write_text(json.dumps({"#stale": stale.to_dict()}), encoding="utf-8")
    cache = LocatorCache(path)
    cache.insert("#submit", _entry("#submit", "#first"))
    cache.insert("#submit", _entry("#submit", "#second"))

    cache.save_to_file()

    data = json.loads(path.read_text(encoding="utf-8"))
    assert list(data) == ["#submit"]
    assert data["#submit"]["generatedLocator"] == "#second"


def test_load_accepts_utc_designator_and_long_fractions(tmp_path):
    path = tmp_path / "cache.json"
    path.write_text(json.dumps({
        "#submit": {
            "originalLocator": "#submit",
            "generatedLocator": "button[data-testid='submit']",
            "strategy": "CSS",
            "timestamp": "2026-03-10T12:00:00.1234567Z",
        }
    }), encoding="utf-8")
    cache = LocatorCache(path)

    cache.load_from_file()

    loaded = cache.lookup("#submit")
    assert loaded.timestamp == NOW.replace(microsecond=123456)
