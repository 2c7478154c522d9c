"""Tests for workspace allocation and cleanup."""

import os
import time

import pytest

from codescan.services.workspace_service import WorkspaceManager


class TestWorkspaceManager:
    """Test per-run workspace directories."""

    def test_create_unique_directories(self, workspace_root):
        """Each workspace is a new, uniquely named directory under the root."""
        manager = WorkspaceManager(workspace_root)

        first = manager.create()
        second = manager.create()

        assert first != second
        assert os.path.dirname(first) == workspace_root
        assert os.path.basename(first).startswith("analysis-")
        assert os.path.isdir(first) and os.listdir(first) == []

    @pytest.mark.asyncio
    async def test_allocate_removes_on_success(self, workspace_root):
        manager = WorkspaceManager(workspace_root)

        async with manager.allocate() as path:
            with open(os.path.join(path, "file.txt"), "w") as handle:
                handle.write("data")

        assert not os.path.exists(path)

    @pytest.mark.asyncio
    async def test_allocate_removes_on_error(self, workspace_root):
        manager = WorkspaceManager(workspace_root)

        with pytest.raises(RuntimeError):
            async with manager.allocate() as path:
                raise RuntimeError("boom")

        assert not os.path.exists(path)

    def test_cleanup_refuses_outside_root(self, workspace_root, tmp_path):
        """Directories that are not direct children of the root are kept."""
        manager = WorkspaceManager(workspace_root)
        outside = tmp_path / "keep-me"
        outside.mkdir()

        manager.cleanup(str(outside))

        assert outside.exists()

    def test_cleanup_missing_path_is_noop(self, workspace_root):
        manager = WorkspaceManager(workspace_root)

        manager.cleanup(os.path.join(workspace_root, "analysis-missing"))

    def test_cleanup_old_removes_stale_only(self, workspace_root):
        manager = WorkspaceManager(workspace_root)
        stale = manager.create()
        fresh = manager.create()
        unrelated = os.path.join(workspace_root, "other-dir")
        os.mkdir(unrelated)

        old = time.time() - 3 * 3600
        os.utime(stale, (old, old))
        os.utime(unrelated, (old, old))

        deleted = manager.cleanup_old(max_age_seconds=3600)

        assert deleted == 1
        assert not os.path.exists(stale)
        assert os.path.exists(fresh)
        assert os.path.exists(unrelated)

    def test_cleanup_old_without_root(self, tmp_path):
        manager = WorkspaceManager(str(tmp_path / "missing"))

        assert manager.cleanup_old() == 0
