from __future__ import annotations
import os
import threading
from pathlib import Path
from queue import Queue, Empty
from typing import Optional, Dict, List, Tuple, Callable, Any

import structlog
from blake3 import blake3

log = structlog.get_logger()

ErrorCallback = Callable[[str, Exception], None]

_TOMBSTONE = object()

OP_WRITE = "write"
OP_DELETE = "delete"
OP_PRUNE = "prune"

def content_digest(data: bytes) -> str:
    return blake3(data).hexdigest()

class FileStore:
    """
    Folder-backed blob store with asynchronous, strictly ordered mutation.

    - write/delete/prune are queued and applied by one writer thread in issue
      order, so a later write to a path can never be overtaken by an earlier one
    - reads, exists and list_under see queued-but-unapplied mutations
    - a write whose content digest matches the last applied one is dropped
    - failures are logged and handed to on_error; nothing is retried here
    """
    def __init__(self, root: str | Path, on_error: Optional[ErrorCallback] = None):
        self.root = Path(root)
        self.on_error = on_error
        self._q: Queue = Queue()
        self._lock = threading.RLock()
        self._pending: Dict[str, Any] = {}     # path -> bytes | _TOMBSTONE
        self._digests: Dict[str, str] = {}     # path -> digest of last applied write
        self._stop = threading.Event()
        self._thr: Optional[threading.Thread] = None

    # -------- lifecycle --------

    def start(self) -> None:
        if self._thr and self._thr.is_alive():
            return
        self._stop.clear()
        self._thr = threading.Thread(target=self._loop, name="file-store-writer", daemon=True)
        self._thr.start()

    def flush(self) -> None:
        """Block until every queued mutation has been applied."""
        self.start()
        self._q.join()

    def close(self) -> None:
        # the loop drains what is queued before it exits
        self._stop.set()
        if self._thr:
            self._thr.join()
            self._thr = None

    # -------- reads --------

    def _abs(self, path: str) -> Path:
        return self.root / path

    def read(self, path: str) -> Optional[bytes]:
        with self._lock:
            if path in self._pending:
                pending = self._pending[path]
                return None if pending is _TOMBSTONE else pending
        target = self._abs(path)
        if not target.is_file():
            return None
        return target.read_bytes()

    def exists(self, path: str) -> bool:
        with self._lock:
            if path in self._pending:
                return self._pending[path] is not _TOMBSTONE
        return self._abs(path).exists()

    def list_under(self, path: str) -> List[str]:
        prefix = path.rstrip("/") + "/"
        found = set()
        base = self._abs(path)
        if base.is_dir():
            for p in base.rglob("*"):
                if p.is_file() and not p.name.endswith(".tmp"):
                    found.add(p.relative_to(self.root).as_posix())
        with self._lock:
            for p, pending in self._pending.items():
                if not p.startswith(prefix):
                    continue
                if pending is _TOMBSTONE:
                    found.discard(p)
                else:
                    found.add(p)
        return sorted(found)

    # -------- mutations --------

    def ensure_folder(self, path: str) -> None:
        # exist_ok tolerates another process creating it first
        self._abs(path).mkdir(parents=True, exist_ok=True)

    def write(self, path: str, data: bytes) -> None:
        digest = content_digest(data)
        with self._lock:
            if path not in self._pending and self._digests.get(path) == digest and self._abs(path).is_file():
                return
            self._pending[path] = data
            self._q.put((OP_WRITE, path, data, digest))
        self.start()

    def delete(self, path: str) -> None:
        with self._lock:
            self._pending[path] = _TOMBSTONE
            self._q.put((OP_DELETE, path, _TOMBSTONE, None))
        self.start()

    def prune_empty_folders(self, path: str) -> None:
        self._q.put((OP_PRUNE, path, None, None))
        self.start()

    # -------- internal --------

    def _loop(self):
        while not (self._stop.is_set() and self._q.empty()):
            try:
                op = self._q.get(timeout=0.2)
            except Empty:
                continue
            try:
                self._apply(op)
            except OSError as e:
                log.warning("store.write.error", op=op[0], path=op[1], err=str(e))
                if self.on_error:
                    try:
                        self.on_error(op[1], e)
                    except Exception as cb_err:
                        log.warning("store.on_error.error", err=str(cb_err))
            finally:
                self._settle(op)
                self._q.task_done()

    def _apply(self, op: Tuple[str, str, Any, Optional[str]]) -> None:
        kind, path, data, digest = op
        target = self._abs(path)
        if kind == OP_WRITE:
            target.parent.mkdir(parents=True, exist_ok=True)
            tmp = target.with_name(target.name + ".tmp")
            tmp.write_bytes(data)
            os.replace(tmp, target)
            with self._lock:
                self._digests[path] = digest
        elif kind == OP_DELETE:
            with self._lock:
                self._digests.pop(path, None)
            if target.is_dir():
                target.rmdir()
            elif target.exists():
                target.unlink()
        elif kind == OP_PRUNE:
            self._prune(target)

    def _prune(self, folder: Path) -> None:
        if not folder.is_dir():
            return
        for child in folder.iterdir():
            if child.is_dir():
                self._prune(child)
        if not any(folder.iterdir()):
            folder.rmdir()
            log.debug("store.folder.pruned", path=str(folder))

    def _settle(self, op) -> None:
        _, path, data, _ = op
        with self._lock:
            # only the newest queued mutation for a path clears the overlay
            if path in self._pending and self._pending[path] is data:
                del self._pending[path]
