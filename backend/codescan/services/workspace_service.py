"""Allocation and cleanup of per-run workspaces."""

import logging
import os
import shutil
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timedelta
from typing import AsyncIterator

logger = logging.getLogger(__name__)


class WorkspaceManager:
    """Hands out uniquely named directories under one workspace root.

    The root is passed in explicitly so concurrent runs and tests never share
    ambient temp-directory state.
    """

    PREFIX = "analysis-"

    def __init__(self, root: str):
        self.root = os.path.realpath(root)

    def create(self) -> str:
        """Create a fresh, empty workspace directory."""
        os.makedirs(self.root, exist_ok=True)
        path = os.path.join(self.root, f"{self.PREFIX}{uuid.uuid4().hex}")
        os.mkdir(path)
        logger.info(f"Created workspace {path}")
        return path

    @asynccontextmanager
    async def allocate(self) -> AsyncIterator[str]:
        """Yield a new workspace and remove it on every exit path."""
        path = self.create()
        try:
            yield path
        finally:
            self.cleanup(path)

    def cleanup(self, path: str) -> None:
        """Delete a workspace. Paths outside the root are refused."""
        if not path or os.path.dirname(os.path.realpath(path)) != self.root:
            logger.warning(f"Refusing to delete path outside workspace root: {path}")
            return

        if os.path.exists(path):
            try:
                shutil.rmtree(path)
                logger.info(f"Cleaned up {path}")
            except OSError as e:
                logger.error(f"Failed to cleanup {path}: {e}")

    def cleanup_old(self, max_age_seconds: int = 24 * 3600) -> int:
        """Delete workspaces older than max_age. Returns count deleted."""
        if not os.path.exists(self.root):
            return 0

        cutoff_time = datetime.now() - timedelta(seconds=max_age_seconds)
        deleted_count = 0

        for item in os.listdir(self.root):
            item_path = os.path.join(self.root, item)
            if not item.startswith(self.PREFIX) or not os.path.isdir(item_path):
                continue

            try:
                mtime = datetime.fromtimestamp(os.path.getmtime(item_path))
                if mtime < cutoff_time:
                    shutil.rmtree(item_path)
                    logger.info(f"Cleaned up stale workspace: {item}")
                    deleted_count += 1
            except OSError as e:
                logger.error(f"Failed to check/cleanup {item_path}: {e}")

        return deleted_count
