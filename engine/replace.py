"""
Replace Coordinator

Applies replacements to files on disk through the FileOperations
collaborator.  Within a file every match is substituted by a single forward
pass over the freshly read content; offsets stored in a search result are
only used for single-match replacement, and only after checking they still
line up with the file.
"""

import logging

from engine.errors import FileAccessError, StaleMatchError
from engine.models import MatchSpan, ProjectSearchResult, ReplaceSummary
from engine.patterns import CompiledPattern

logger = logging.getLogger(__name__)


class ReplaceCoordinator:
    """Single-match, single-file and project-wide replacement."""

    def __init__(self, file_ops):
        """
        Args:
            file_ops: FileOperations used to read and write documents
        """
        self.file_ops = file_ops

    async def _read(self, file_path: str) -> str:
        try:
            result = await self.file_ops.read_file(file_path)
        except Exception as e:
            raise FileAccessError(file_path, str(e)) from e
        if result.error:
            raise FileAccessError(file_path, result.error)
        return result.content or ""

    async def _write(self, file_path: str, content: str) -> None:
        try:
            result = await self.file_ops.write_file(file_path, content)
        except Exception as e:
            raise FileAccessError(file_path, str(e)) from e
        if result.error:
            raise FileAccessError(file_path, result.error)

    async def replace_in_file(self, file_path: str, pattern: CompiledPattern,
                              replacement: str) -> int:
        """
        Replace every match of ``pattern`` in one file.

        The file is re-read so replacements never apply to content from an
        earlier search.  The replacement text is inserted verbatim.

        Returns:
            Number of replacements; 0 means the file was not written.

        Raises:
            FileAccessError: the file could not be read or written
        """
        before = await self._read(file_path)
        after, count = pattern.fresh().substitute(before, replacement)
        if count == 0 or after == before:
            logger.debug("Replace: nothing to change in %s", file_path)
            return 0
        await self._write(file_path, after)
        logger.info("Replace: %d replacement(s) in %s", count, file_path)
        return count

    async def replace_across_project(self, result_set: ProjectSearchResult,
                                     pattern: CompiledPattern,
                                     replacement: str) -> ReplaceSummary:
        """
        Replace in every file of a search result, in result order.

        A file that fails to read or write counts as zero replacements and is
        listed in ``failed_files``; the remaining files are still processed.
        The result set's offsets are stale afterwards.
        """
        summary = ReplaceSummary()
        for entry in result_set:
            try:
                count = await self.replace_in_file(entry.file_path, pattern, replacement)
            except FileAccessError as e:
                logger.warning("Replace: %s", e)
                summary.failed_files.append(entry.file_path)
                continue
            summary.add(entry.file_path, count)
        return summary

    async def replace_one(self, file_path: str, span: MatchSpan, replacement: str) -> str:
        """
        Replace a single match and return the updated content.

        Raises:
            FileAccessError: the file could not be read or written
            StaleMatchError: the file changed since the span was found
        """
        content = await self._read(file_path)
        if span.end > len(content) or content[span.start:span.end] != span.text:
            raise StaleMatchError(file_path, span.start, span.end)
        updated = content[:span.start] + replacement + content[span.end:]
        if updated != content:
            await self._write(file_path, updated)
        return updated
