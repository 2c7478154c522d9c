"""Attach the source text of every file that has issues."""

import asyncio
import logging

from codescan.analyzers.base import AnalysisResult
from codescan.errors import PathTraversalError
from codescan.services.path_safety import safe_join

logger = logging.getLogger(__name__)


def _read_text(path: str) -> str:
    with open(path, "r", encoding="utf-8", errors="replace") as handle:
        return handle.read()


async def read_file_content(workspace: str, relative_path: str) -> str | None:
    """Read one workspace file, or None when it is unsafe or unreadable."""
    try:
        full_path = safe_join(workspace, relative_path)
    except PathTraversalError:
        logger.warning(f"Skipping content for path outside the workspace: {relative_path}")
        return None

    try:
        return await asyncio.to_thread(_read_text, full_path)
    except OSError as e:
        logger.warning(f"Could not read {relative_path}: {e}")
        return None


async def attach_file_contents(result: AnalysisResult, workspace: str) -> AnalysisResult:
    """Fill ``result.file_contents`` for each distinct file referenced by an issue.

    Files are read concurrently. A file that cannot be read is left out of the
    map and the run carries on.
    """
    paths = sorted({issue.file for issue in result.issues})
    if not paths:
        return result

    contents = await asyncio.gather(*(read_file_content(workspace, path) for path in paths))
    for path, content in zip(paths, contents):
        if content is not None:
            result.file_contents[path] = content

    missing = len(paths) - len(result.file_contents)
    if missing:
        logger.warning(f"Attached contents for {len(result.file_contents)} files; {missing} unavailable")
    return result
