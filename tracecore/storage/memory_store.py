from __future__ import annotations
from typing import Dict, List, Optional, Set

class MemoryStore:
    """Synchronous in-memory stand-in for FileStore, same interface."""
    def __init__(self):
        self.files: Dict[str, bytes] = {}
        self.folders: Set[str] = set()
        self.writes: List[str] = []
        self.fail_writes = False

    def read(self, path: str) -> Optional[bytes]:
        return self.files.get(path)

    def exists(self, path: str) -> bool:
        return path in self.files or path in self.folders

    def list_under(self, path: str) -> List[str]:
        prefix = path.rstrip("/") + "/"
        return sorted(p for p in self.files if p.startswith(prefix))

    def ensure_folder(self, path: str) -> None:
        parts = path.strip("/").split("/")
        for i in range(1, len(parts) + 1):
            self.folders.add("/".join(parts[:i]))

    def write(self, path: str, data: bytes) -> None:
        if self.fail_writes:
            raise OSError(f"store unavailable: {path}")
        if "/" in path:
            self.ensure_folder(path.rsplit("/", 1)[0])
        self.files[path] = data
        self.writes.append(path)

    def delete(self, path: str) -> None:
        self.files.pop(path, None)
        self.folders.discard(path)

    def prune_empty_folders(self, path: str) -> None:
        prefix = path.rstrip("/") + "/"
        for folder in sorted(self.folders, key=len, reverse=True):
            if folder != path and not folder.startswith(prefix):
                continue
            inner = folder + "/"
            busy = any(p.startswith(inner) for p in self.files) or any(
                f.startswith(inner) for f in self.folders
            )
            if not busy:
                self.folders.discard(folder)

    def flush(self) -> None:
        pass

    def close(self) -> None:
        pass
