"""Shared fixtures for the quill test suite."""

import sys
from pathlib import Path
from typing import Dict, List

import pytest

# Ensure project root is importable
PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from engine.interrupt import set_interrupt  # noqa: E402
from workspace.file_operations import FileOperations, ReadResult, WriteResult  # noqa: E402


class MemoryFileOps(FileOperations):
    """In-memory documents keyed by path, with injectable failures."""

    def __init__(self, files: Dict[str, str] = None):
        self.files: Dict[str, str] = dict(files or {})
        self.fail_reads = set()
        self.fail_writes = set()
        self.raise_reads = set()
        self.reads: List[str] = []
        self.writes: List[str] = []

    async def read_file(self, path):
        self.reads.append(path)
        if path in self.raise_reads:
            raise OSError(f"device not ready: {path}")
        if path in self.fail_reads or path not in self.files:
            return ReadResult(error=f"Failed to read file: {path}")
        return ReadResult(content=self.files[path], encoding="utf-8")

    async def write_file(self, path, content):
        if path in self.fail_writes:
            return WriteResult(error=f"Failed to write file: {path}")
        self.writes.append(path)
        self.files[path] = content
        return WriteResult(bytes_written=len(content.encode("utf-8")))

    def list_tree(self, root):
        """Build a nested tree from the flat path keys under ``root``."""
        prefix = root.rstrip("/") + "/"
        nodes: List[dict] = []
        for path in sorted(self.files):
            if not path.startswith(prefix):
                continue
            rel_parts = path[len(prefix):].split("/")
            level = nodes
            for depth, name in enumerate(rel_parts[:-1]):
                rel = "/".join(rel_parts[:depth + 1])
                existing = next((n for n in level if n["name"] == name and n["type"] == "directory"), None)
                if existing is None:
                    existing = {"name": name, "path": prefix + rel, "relative_path": rel,
                                "type": "directory", "children": []}
                    level.append(existing)
                level = existing["children"]
            level.append({
                "name": rel_parts[-1],
                "path": path,
                "relative_path": "/".join(rel_parts),
                "type": "file",
            })
        return nodes


@pytest.fixture()
def memory_ops():
    return MemoryFileOps()


@pytest.fixture(autouse=True)
def _clear_interrupt():
    set_interrupt(False)
    yield
    set_interrupt(False)


@pytest.fixture()
def quill_home(tmp_path, monkeypatch):
    """Point QUILL_HOME at a temporary directory."""
    home = tmp_path / ".quill"
    monkeypatch.setenv("QUILL_HOME", str(home))
    monkeypatch.delenv("QUILL_LOG_LEVEL", raising=False)
    return home
