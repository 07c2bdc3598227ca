# tests/test_file_store.py
# What this covers:
#   - queued writes land on disk in issue order
#   - reads and listings see writes/deletes that are still queued
#   - identical content is not rewritten
#   - failed writes go to on_error instead of raising
#   - empty folders are pruned bottom-up

from tracecore.storage.file_store import FileStore, content_digest

def test_writes_apply_in_order(tmp_path):
    store = FileStore(tmp_path)
    for i in range(50):
        store.write("stats/currentStats.json", f"v{i}".encode())
    store.flush()
    assert (tmp_path / "stats" / "currentStats.json").read_bytes() == b"v49"
    store.close()

def test_reads_see_pending_writes(tmp_path):
    store = FileStore(tmp_path)
    store.write("a/b/c.json", b"{}")
    # visible immediately, whether or not the writer has run yet
    assert store.read("a/b/c.json") == b"{}"
    assert store.exists("a/b/c.json")
    assert store.list_under("a") == ["a/b/c.json"]
    store.flush()
    assert store.read("a/b/c.json") == b"{}"
    store.close()

def test_delete_hides_file_before_it_is_applied(tmp_path):
    store = FileStore(tmp_path)
    store.write("x/one.md", b"1")
    store.write("x/two.md", b"2")
    store.flush()
    store.delete("x/one.md")
    assert store.read("x/one.md") is None
    assert store.list_under("x") == ["x/two.md"]
    store.flush()
    assert not (tmp_path / "x" / "one.md").exists()
    store.close()

def test_identical_content_is_skipped(tmp_path):
    store = FileStore(tmp_path)
    store.write("r.md", b"same")
    store.flush()
    mtime = (tmp_path / "r.md").stat().st_mtime_ns
    assert store._digests["r.md"] == content_digest(b"same")
    store.write("r.md", b"same")
    assert "r.md" not in store._pending
    store.flush()
    assert (tmp_path / "r.md").stat().st_mtime_ns == mtime
    store.close()

def test_write_failure_goes_to_on_error(tmp_path):
    errors = []
    (tmp_path / "blocked").write_text("i am a file")
    store = FileStore(tmp_path, on_error=lambda path, e: errors.append(path))
    store.write("blocked/inner.json", b"{}")
    store.flush()
    assert errors == ["blocked/inner.json"]
    # overlay is cleared once the failed write settles
    assert store.read("blocked/inner.json") is None
    store.close()

def test_prune_empty_folders(tmp_path):
    store = FileStore(tmp_path)
    store.ensure_folder("base/2026/March/daily")
    store.ensure_folder("base/2026/April")
    store.write("base/2026/April/keep.md", b"k")
    store.prune_empty_folders("base/2026")
    store.flush()
    assert not (tmp_path / "base" / "2026" / "March").exists()
    assert (tmp_path / "base" / "2026" / "April" / "keep.md").exists()
    store.close()

def test_list_under_missing_folder(tmp_path):
    store = FileStore(tmp_path)
    assert store.list_under("nothing/here") == []
    assert store.read("nothing/here/x.json") is None
