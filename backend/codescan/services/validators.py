"""Input validation for repository URLs, branches and sparse-checkout patterns."""

import logging
import re

from codescan.errors import ValidationError

logger = logging.getLogger(__name__)

MAX_BRANCH_LENGTH = 255
MAX_PATTERN_LENGTH = 512

_REMOTE_URL = re.compile(
    r"^(?:https?|ssh|git)://"
    r"(?:[A-Za-z0-9._-]+@)?"
    r"[A-Za-z0-9.-]+(?::\d{1,5})?"
    r"(?:/[A-Za-z0-9._~%+-]+)+/?$"
)
_SCP_URL = re.compile(r"^[A-Za-z0-9._-]+@[A-Za-z0-9.-]+:[A-Za-z0-9._~-]+(?:/[A-Za-z0-9._~-]+)*$")
_FILE_URL = re.compile(r"^file://(?:/[A-Za-z0-9._-]+)+/?$")
_GITHUB_URL = re.compile(r"github\.com[/:]([^/]+)/([^/]+?)(?:\.git)?/?$")

_BRANCH = re.compile(r"^[A-Za-z0-9._/-]+$")
_PATTERN = re.compile(r"^!?[A-Za-z0-9_.*?/\[\]{}@+,=-]+$")


def validate_repository_url(url: str, allow_local: bool = False) -> str:
    """Validate a remote repository URL against a restrictive syntax.

    Shell metacharacters, whitespace and option-like values never match.
    ``file://`` URLs are only accepted when ``allow_local`` is set.
    """
    candidate = (url or "").strip()
    if _REMOTE_URL.match(candidate) or _SCP_URL.match(candidate):
        return candidate
    if allow_local and _FILE_URL.match(candidate) and ".." not in candidate.split("/"):
        return candidate
    raise ValidationError(f"Invalid repository URL: {url!r}")


def validate_branch(branch: str) -> str:
    """Validate a branch name using a conservative subset of git's ref rules."""
    if not branch or len(branch) > MAX_BRANCH_LENGTH or not _BRANCH.match(branch):
        raise ValidationError(f"Invalid branch name: {branch!r}")
    if (
        branch.startswith(("/", ".", "-"))
        or branch.endswith(("/", "."))
        or branch.endswith(".lock")
        or ".." in branch
        or "//" in branch
        or "/." in branch
    ):
        raise ValidationError(f"Invalid branch name: {branch!r}")
    return branch


def validate_pattern(pattern: str) -> str:
    """Validate one sparse-checkout glob."""
    if not pattern or len(pattern) > MAX_PATTERN_LENGTH or not _PATTERN.match(pattern):
        raise ValidationError(f"Invalid file pattern: {pattern!r}")
    if ".." in pattern.lstrip("!").split("/"):
        raise ValidationError(f"File pattern may not contain '..': {pattern!r}")
    return pattern


def parse_github_url(url: str) -> tuple[str, str] | None:
    """Return ``(owner, repo)`` for GitHub URLs, or None for other hosts."""
    match = _GITHUB_URL.search(url)
    if not match:
        return None
    return match.group(1), match.group(2)


_EXTENSIONS = re.compile(r"^[A-Za-z0-9]+(?:,[A-Za-z0-9]+)*$")


def validate_file_extensions(extensions: str | None) -> str | None:
    """Validate a comma-separated extension list such as ``ts,tsx``."""
    if extensions is None or not extensions.strip():
        return None
    candidate = extensions.strip()
    if not _EXTENSIONS.match(candidate):
        raise ValidationError(f"Invalid file extensions: {extensions!r}")
    return candidate
