"""
File Operations Module

The search engine never touches the disk directly.  It talks to a
FileOperations object that reads documents, writes them back and lists the
project tree.  LocalFileOperations is the on-disk implementation; tests and
embedding hosts can supply their own (in-memory buffers, remote stores, ...).

Usage:
    from workspace.file_operations import LocalFileOperations

    file_ops = LocalFileOperations()
    tree = file_ops.list_tree("/path/to/notes")

    result = await file_ops.read_file("/path/to/notes/todo.md")
    if result.success:
        print(result.content)
"""

import asyncio
import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from workspace.text_io import read_text_with_fallback, write_text

logger = logging.getLogger(__name__)

# Files the editor shows in its tree
DOCUMENT_EXTENSIONS = (".md", ".markdown", ".txt")


# =============================================================================
# Result Data Classes
# =============================================================================

@dataclass
class ReadResult:
    """Result from reading a file."""
    content: str = ""
    encoding: Optional[str] = None
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict:
        result = {"success": self.success}
        if self.success:
            result["content"] = self.content
        else:
            result["error"] = self.error
        return result


@dataclass
class WriteResult:
    """Result from writing a file."""
    bytes_written: int = 0
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict:
        return {k: v for k, v in self.__dict__.items() if v is not None}


# =============================================================================
# Abstract Interface
# =============================================================================

class FileOperations(ABC):
    """Boundary between the search engine and document storage."""

    @abstractmethod
    async def read_file(self, path: str) -> ReadResult:
        """Read a whole document as text."""
        ...

    @abstractmethod
    async def write_file(self, path: str, content: str) -> WriteResult:
        """Replace a document's content."""
        ...

    @abstractmethod
    def list_tree(self, root: str) -> List[Dict[str, Any]]:
        """List the project tree as nested ``{name, path, relative_path, type}`` nodes."""
        ...


# =============================================================================
# Local disk implementation
# =============================================================================

class LocalFileOperations(FileOperations):
    """
    File operations on the local filesystem.

    Blocking reads and writes run in a worker thread so an asyncio host keeps
    its event loop responsive while a large project is scanned.
    """

    def __init__(self, extensions: Optional[Iterable[str]] = None):
        """
        Args:
            extensions: File suffixes list_tree keeps (default: .md, .markdown, .txt)
        """
        self.extensions = tuple(e.lower() for e in (extensions or DOCUMENT_EXTENSIONS))

    def is_document(self, name: str) -> bool:
        return os.path.splitext(name)[1].lower() in self.extensions

    # =========================================================================
    # READ / WRITE
    # =========================================================================

    async def read_file(self, path: str) -> ReadResult:
        try:
            content, encoding = await asyncio.to_thread(read_text_with_fallback, path)
        except OSError as e:
            return ReadResult(error=f"Failed to read file: {type(e).__name__}: {e}")
        return ReadResult(content=content, encoding=encoding)

    async def write_file(self, path: str, content: str) -> WriteResult:
        try:
            bytes_written = await asyncio.to_thread(write_text, path, content)
        except OSError as e:
            return WriteResult(error=f"Failed to write file: {type(e).__name__}: {e}")
        return WriteResult(bytes_written=bytes_written)

    # =========================================================================
    # TREE
    # =========================================================================

    def list_tree(self, root: str) -> List[Dict[str, Any]]:
        """
        Recursively list documents under ``root``.

        Entries are sorted by name, directories without any document are
        dropped, and entries that cannot be stat'ed are logged and skipped.
        """
        return self._list_dir(os.path.abspath(root), "")

    def _list_dir(self, dir_path: str, relative_path: str) -> List[Dict[str, Any]]:
        nodes: List[Dict[str, Any]] = []
        try:
            names = sorted(os.listdir(dir_path))
        except OSError as e:
            logger.warning("Cannot list %s: %s", dir_path, e)
            return nodes

        for name in names:
            full_path = os.path.join(dir_path, name)
            rel = f"{relative_path}/{name}" if relative_path else name
            try:
                if os.path.isdir(full_path):
                    children = self._list_dir(full_path, rel)
                    if children:
                        nodes.append({
                            "name": name,
                            "path": full_path,
                            "relative_path": rel,
                            "type": "directory",
                            "children": children,
                        })
                elif os.path.isfile(full_path) and self.is_document(name):
                    stat = os.stat(full_path)
                    nodes.append({
                        "name": name,
                        "path": full_path,
                        "relative_path": rel,
                        "type": "file",
                        "size": stat.st_size,
                        "modified": stat.st_mtime,
                    })
            except OSError as e:
                logger.warning("Cannot access %s: %s", full_path, e)
        return nodes
