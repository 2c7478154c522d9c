"""Path helpers that keep caller-influenced paths inside a trusted base directory.

Every filesystem access derived from user input (config file names, cache
locations, issue file reads) goes through :func:`safe_join`. Analyzer output
paths are normalized with :func:`relativize`, and rule-engine ruleset
references are checked with :func:`validate_ruleset_reference` before they are
handed to the external tool.
"""

import logging
import os
import posixpath
import re

from codescan.errors import InvalidRulesetPathError, PathTraversalError

logger = logging.getLogger(__name__)

_WINDOWS_DRIVE = re.compile(r"^[a-zA-Z]:/")
_URL_PREFIXES = ("http://", "https://")
_BUILTIN_RULESET_PREFIXES = ("category/", "rulesets/")


def _is_within(path: str, base: str) -> bool:
    return path == base or path.startswith(base.rstrip(os.sep) + os.sep)


def _has_parent_segment(path: str) -> bool:
    return ".." in re.split(r"[\\/]", path)


def _looks_absolute(path: str) -> bool:
    normalized = path.replace("\\", "/")
    return normalized.startswith("/") or bool(_WINDOWS_DRIVE.match(normalized))


def safe_join(base: str, *segments: str) -> str:
    """Join ``segments`` onto ``base`` and refuse results outside ``base``.

    Both paths are fully resolved (symlinks included) for the containment
    check, so a link inside the workspace that points elsewhere is rejected
    too. The returned path is the absolute, unresolved join, so a base given
    through a symlink is preserved.

    Raises:
        PathTraversalError: If the resolved path escapes the resolved base.
    """
    resolved_base = os.path.realpath(base)
    resolved = os.path.realpath(os.path.join(resolved_base, *segments))

    if not _is_within(resolved, resolved_base):
        logger.error(
            "Security alert: path traversal attempt. Base: %r, segments: %r, resolved: %r",
            base,
            "/".join(segments),
            resolved,
        )
        raise PathTraversalError(
            f"Path '{resolved}' is outside the allowed base directory '{resolved_base}'"
        )
    return os.path.abspath(os.path.join(base, *segments))


def relativize(path: str | None, base: str, allow_outside: bool = False) -> str:
    """Convert an analyzer-reported path into a forward-slash path under ``base``.

    Paths outside ``base`` collapse to their basename with a warning unless
    ``allow_outside`` is set, in which case the normalized absolute path is
    returned. Relative input is assumed to already be workspace-relative.
    """
    if not path:
        return "unknown"

    normalized = path.replace("\\", "/")
    normalized_base = str(base).replace("\\", "/")

    if not _looks_absolute(normalized):
        return normalized

    relative = posixpath.relpath(normalized, normalized_base)
    if relative == ".." or relative.startswith("../"):
        if allow_outside:
            return normalized
        logger.warning(
            "File path %s is outside the base directory %s; keeping basename only",
            normalized,
            normalized_base,
        )
        return posixpath.basename(normalized)
    return relative


def ensure_relative(path: str) -> str:
    """Lexically reject absolute paths and ``..`` segments.

    Used for caller-supplied paths before a workspace exists to join them to.
    """
    candidate = path.strip()
    if _looks_absolute(candidate) or os.path.isabs(candidate) or _has_parent_segment(candidate):
        logger.error("Security alert: rejected path %r", path)
        raise PathTraversalError(f"Path '{path}' must be relative and stay inside the workspace")
    return candidate


def validate_ruleset_reference(ref: str, base: str) -> str:
    """Validate one ruleset reference for the rule-based analyzer.

    Accepted forms are an http(s) URL, a built-in category token such as
    ``category/java/bestpractices.xml``, or a relative file path. The trimmed
    reference is returned unchanged: relative paths are interpreted by the
    tool against its own working directory.

    Raises:
        InvalidRulesetPathError: For empty, absolute or traversing references.
    """
    trimmed = ref.strip()
    if not trimmed:
        raise InvalidRulesetPathError("Empty ruleset reference")

    if trimmed.startswith(_URL_PREFIXES):
        return trimmed

    if _has_parent_segment(trimmed):
        logger.error("Security alert: path traversal in ruleset reference %r", trimmed)
        raise InvalidRulesetPathError(
            f"Path traversal ('..') in ruleset path '{trimmed}' is not allowed"
        )

    if trimmed.startswith(_BUILTIN_RULESET_PREFIXES):
        return trimmed

    if _looks_absolute(trimmed) or os.path.isabs(trimmed):
        logger.error("Security alert: absolute ruleset path %r", trimmed)
        raise InvalidRulesetPathError(
            f"Absolute ruleset path '{trimmed}' is not allowed; use a relative path or a built-in category"
        )

    try:
        safe_join(base, trimmed)
    except PathTraversalError as exc:
        raise InvalidRulesetPathError(str(exc)) from exc
    return trimmed
