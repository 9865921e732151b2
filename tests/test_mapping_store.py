"""
tests/test_mapping_store.py
Once-only loading, source merging and graceful failure of MappingStore.
"""

import threading
import time
import urllib.error
from unittest.mock import MagicMock, patch

from merchwatch.mapping_store import MappingStore, fetch_mapping_url, load_mapping_directory
from merchwatch.models.record import MappingEntry

DUMP_A = "pid,designer_name,merch_name\n123456,Asha,Ravi Kumar\n"
DUMP_B = "product_id,designer,merchandiser\n123456,Other,Other\n654321,Neha,Sam\n"


def _write_dumps(tmp_path):
    (tmp_path / "dump_a.csv").write_text(DUMP_A, encoding="utf-8")
    (tmp_path / "dump_b.csv").write_bytes(b"\xef\xbb\xbf" + DUMP_B.encode("utf-8"))
    (tmp_path / "notes.csv").write_text("pid\n111111\n", encoding="utf-8")
    return tmp_path


def _fake_response(body: bytes):
    resp = MagicMock()
    resp.read.return_value = body
    resp.__enter__.return_value = resp
    resp.__exit__.return_value = False
    return resp


class TestDirectoryLoading:

    def test_only_dump_files(self, tmp_path):
        tables = load_mapping_directory(_write_dumps(tmp_path))
        assert len(tables) == 2

    def test_missing_directory(self, tmp_path):
        assert load_mapping_directory(tmp_path / "nope") == []

    def test_merge_earliest_file_wins(self, tmp_path):
        store = MappingStore(mapping_dir=_write_dumps(tmp_path))
        mapping = store.get()
        assert mapping["123456"] == MappingEntry("Asha", "Ravi Kumar")
        assert mapping["654321"] == MappingEntry("Neha", "Sam")
        assert "111111" not in mapping


class TestOnceOnly:

    def test_second_call_returns_same_object(self, tmp_path):
        store = MappingStore(mapping_dir=_write_dumps(tmp_path))
        first = store.get()
        (tmp_path / "dump_c.csv").write_text("pid\n222222\n", encoding="utf-8")
        second = store.get()
        assert first is second
        assert "222222" not in second

    def test_idempotent_across_stores(self, tmp_path):
        _write_dumps(tmp_path)
        a = MappingStore(mapping_dir=tmp_path).get()
        b = MappingStore(mapping_dir=tmp_path).get()
        assert a == b
        assert len(a) == len(b)

    def test_concurrent_callers_share_one_load(self, tmp_path):
        store = MappingStore(mapping_dir=_write_dumps(tmp_path))
        calls = []
        original = store._load_all

        def slow_load():
            calls.append(1)
            time.sleep(0.05)
            return original()

        store._load_all = slow_load
        results = []
        threads = [threading.Thread(target=lambda: results.append(store.get())) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(calls) == 1
        assert len(results) == 8
        assert all(r is results[0] for r in results)

    def test_is_loaded(self, tmp_path):
        store = MappingStore(mapping_dir=_write_dumps(tmp_path))
        assert not store.is_loaded
        store.get()
        assert store.is_loaded


class TestFailures:

    def test_no_sources_is_empty(self):
        assert MappingStore().get() == {}

    def test_unexpected_error_degrades_to_empty(self, tmp_path):
        store = MappingStore(mapping_dir=tmp_path)
        store._load_all = MagicMock(side_effect=RuntimeError("boom"))
        assert store.get() == {}

    def test_network_failure_skips_source(self, tmp_path):
        store = MappingStore(mapping_dir=_write_dumps(tmp_path), mapping_urls=["https://example.invalid/dump.csv"])
        with patch("urllib.request.urlopen", side_effect=urllib.error.URLError("offline")):
            mapping = store.get()
        assert set(mapping) == {"123456", "654321"}


class TestUrlSource:

    def test_fetch_parses_body(self):
        body = b"\xef\xbb\xbfpid,designer_name,merch_name\n333333,Zoya,Arjun\n"
        with patch("urllib.request.urlopen", return_value=_fake_response(body)):
            mapping = fetch_mapping_url("https://example.com/dump.csv")
        assert mapping == {"333333": MappingEntry("Zoya", "Arjun")}

    def test_directory_before_url(self, tmp_path):
        body = b"pid,designer_name,merch_name\n123456,Remote,Remote\n444444,R,R\n"
        store = MappingStore(mapping_dir=_write_dumps(tmp_path), mapping_urls=["https://example.com/dump.csv"])
        with patch("urllib.request.urlopen", return_value=_fake_response(body)):
            mapping = store.get()
        assert mapping["123456"].designer == "Asha"
        assert "444444" in mapping
