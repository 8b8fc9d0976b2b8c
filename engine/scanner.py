"""
File Scanner

Flattens the file tree handed over by ``FileOperations.list_tree`` and applies
include/exclude glob filters.  Traversal order is preserved everywhere so two
searches over an unchanged tree report files in the same order.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

from engine.models import FileDescriptor
from engine.patterns import GlobFilter, normalize_path

logger = logging.getLogger(__name__)


def _node_relative_path(node: Dict[str, Any]) -> str:
    # list_tree emits relative_path; trees built by the editor use relativePath
    rel = node.get("relative_path") or node.get("relativePath")
    return normalize_path(rel or node.get("path", ""))


def flatten(tree: Optional[Iterable[Dict[str, Any]]]) -> List[FileDescriptor]:
    """
    Depth-first walk of a file tree, yielding only ``type == "file"`` nodes.

    Args:
        tree: List of nodes ``{name, path, relative_path, type, children?, size?}``

    Returns:
        FileDescriptors in traversal order
    """
    files: List[FileDescriptor] = []
    stack = [iter(tree or [])]
    while stack:
        node = next(stack[-1], None)
        if node is None:
            stack.pop()
            continue
        if node.get("type") == "file":
            files.append(FileDescriptor(
                absolute_path=node.get("path", ""),
                relative_path=_node_relative_path(node),
                size_hint=node.get("size"),
            ))
        children = node.get("children")
        if children:
            stack.append(iter(children))
    return files


def filter_candidates(
    files: Iterable[FileDescriptor],
    include: Optional[GlobFilter] = None,
    exclude: Optional[GlobFilter] = None,
) -> List[FileDescriptor]:
    """Keep files passing the include list (empty = all) and no exclude glob."""
    candidates = []
    for descriptor in files:
        rel = descriptor.relative_path or descriptor.absolute_path
        if include and not include.matches_any(rel):
            continue
        if exclude and exclude.matches_any(rel):
            logger.debug("Excluded by glob: %s", rel)
            continue
        candidates.append(descriptor)
    return candidates
