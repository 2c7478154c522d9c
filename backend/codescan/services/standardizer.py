"""Maps raw analyzer payloads onto the common Issue schema.

Each tool family has a fixed, total severity table: every native value lands
in exactly one of error/warning/info, and unknown values fall to info. Summary
counts are always recomputed from the filtered issues, never taken from the
tool's own totals.
"""

import logging
from collections.abc import Mapping, Sequence
from typing import Any, Callable

from codescan.analyzers.base import (
    SEVERITY_ERROR,
    SEVERITY_INFO,
    SEVERITY_WARNING,
    AnalysisResult,
    Issue,
    Summary,
)
from codescan.config import Settings, get_settings
from codescan.errors import PathTraversalError
from codescan.services.path_safety import relativize, safe_join

logger = logging.getLogger(__name__)

# Dependency install trees never reported back to the user
EXCLUDED_DIRS = frozenset({"node_modules", "vendor", "bower_components", ".venv", "site-packages"})

DEFAULT_PMD_ERROR_MAX_PRIORITY = 2
DEFAULT_PMD_WARNING_MAX_PRIORITY = 4

ESLINT_SEVERITIES = {2: SEVERITY_ERROR, 1: SEVERITY_WARNING}
PYLINT_SEVERITIES = {
    "fatal": SEVERITY_ERROR,
    "error": SEVERITY_ERROR,
    "warning": SEVERITY_WARNING,
}
PHPCS_SEVERITIES = {"error": SEVERITY_ERROR, "warning": SEVERITY_WARNING}


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _as_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def eslint_severity(level: Any) -> str:
    return ESLINT_SEVERITIES.get(_as_int(level), SEVERITY_INFO)


def pmd_severity(
    priority: Any,
    error_max: int = DEFAULT_PMD_ERROR_MAX_PRIORITY,
    warning_max: int = DEFAULT_PMD_WARNING_MAX_PRIORITY,
) -> str:
    value = _as_int(priority)
    if value is None:
        return SEVERITY_INFO
    if value <= error_max:
        return SEVERITY_ERROR
    if value <= warning_max:
        return SEVERITY_WARNING
    return SEVERITY_INFO


def pylint_severity(message_type: Any) -> str:
    return PYLINT_SEVERITIES.get(str(message_type or "").lower(), SEVERITY_INFO)


def phpcs_severity(message_type: Any) -> str:
    return PHPCS_SEVERITIES.get(str(message_type or "").lower(), SEVERITY_INFO)


def summarize(issues: list[Issue]) -> Summary:
    return Summary(
        error_count=sum(1 for issue in issues if issue.severity == SEVERITY_ERROR),
        warning_count=sum(1 for issue in issues if issue.severity == SEVERITY_WARNING),
        file_count=len({issue.file for issue in issues}),
    )


def _dicts(value: Any) -> list[Mapping]:
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes)):
        return [item for item in value if isinstance(item, Mapping)]
    return []


class ResultStandardizer:
    """Standardizes one tool payload into an AnalysisResult."""

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self._parsers: dict[str, Callable[[Any, str], list[Issue]]] = {
            "eslint": self._from_eslint,
            "pmd": self._from_pmd,
            "pylint": self._from_pylint,
            "phpcs": self._from_phpcs,
        }

    def standardize(self, tool_name: str, tool_label: str, payload: Any, language: str, workspace: str) -> AnalysisResult:
        parser = self._parsers.get(tool_name)
        if parser is None:
            logger.warning(f"No standardizer for tool '{tool_name}'; reporting no issues")
            raw_issues = []
        else:
            raw_issues = parser(payload, workspace)

        issues = [issue for issue in raw_issues if self._keep(issue, workspace)]
        dropped = len(raw_issues) - len(issues)
        if dropped:
            logger.info(f"Dropped {dropped} {tool_label} issues during standardization")

        return AnalysisResult(
            tool=tool_label,
            language=language,
            summary=summarize(issues),
            issues=issues,
        )

    def _keep(self, issue: Issue, workspace: str) -> bool:
        path = issue.file
        if not path or path in ("unknown", "."):
            return False
        if path.startswith("/") or (len(path) > 1 and path[1] == ":"):
            return False
        if any(part in EXCLUDED_DIRS for part in path.split("/")):
            return False
        if issue.line is None or issue.line <= 0:
            return False
        try:
            safe_join(workspace, path)
        except PathTraversalError:
            logger.warning(f"Dropping issue for file outside the workspace: {path}")
            return False
        return True

    def _from_eslint(self, payload: Any, workspace: str) -> list[Issue]:
        if not isinstance(payload, list):
            logger.warning("ESLint results were not in the expected array format")
            return []

        issues = []
        for entry in _dicts(payload):
            file_path = relativize(_as_str(entry.get("filePath")), workspace)
            for message in _dicts(entry.get("messages")):
                rule = _as_str(message.get("ruleId")) or "unknown"
                ruleset = rule.rsplit("/", 1)[0] if "/" in rule else "eslint"
                suggestions = _dicts(message.get("suggestions"))
                issues.append(
                    Issue(
                        file=file_path,
                        line=_as_int(message.get("line")),
                        end_line=_as_int(message.get("endLine")),
                        column=_as_int(message.get("column")),
                        end_column=_as_int(message.get("endColumn")),
                        rule=rule,
                        ruleset=ruleset,
                        severity=eslint_severity(message.get("severity")),
                        message=_as_str(message.get("message")) or "",
                        suggestion=_as_str(suggestions[0].get("desc")) if suggestions else None,
                    )
                )
        return issues

    def _from_pmd(self, payload: Any, workspace: str) -> list[Issue]:
        if not isinstance(payload, Mapping) or not isinstance(payload.get("files"), list):
            logger.warning("PMD results were not in the expected format")
            return []

        error_max = self.settings.pmd_error_max_priority
        warning_max = self.settings.pmd_warning_max_priority
        issues = []
        for entry in _dicts(payload["files"]):
            file_path = relativize(_as_str(entry.get("filename")), workspace)
            for violation in _dicts(entry.get("violations")):
                issues.append(
                    Issue(
                        file=file_path,
                        line=_as_int(violation.get("beginline")),
                        end_line=_as_int(violation.get("endline")),
                        column=_as_int(violation.get("begincolumn")),
                        end_column=_as_int(violation.get("endcolumn")),
                        rule=_as_str(violation.get("rule")) or "unknown",
                        ruleset=_as_str(violation.get("ruleset")) or "pmd",
                        severity=pmd_severity(violation.get("priority"), error_max, warning_max),
                        message=_as_str(violation.get("description")) or _as_str(violation.get("msg")) or "",
                        suggestion=_as_str(violation.get("suggestion")) or _as_str(violation.get("externalInfoUrl")),
                    )
                )
        return issues

    def _from_pylint(self, payload: Any, workspace: str) -> list[Issue]:
        if not isinstance(payload, list):
            logger.warning("PyLint results were not in the expected array format")
            return []

        issues = []
        for item in _dicts(payload):
            message_type = _as_str(item.get("type"))
            issues.append(
                Issue(
                    file=relativize(_as_str(item.get("path")), workspace),
                    line=_as_int(item.get("line")),
                    end_line=_as_int(item.get("endLine")),
                    column=_as_int(item.get("column")),
                    end_column=_as_int(item.get("endColumn")),
                    rule=_as_str(item.get("symbol")) or _as_str(item.get("message-id")) or "unknown",
                    ruleset=message_type or "pylint",
                    severity=pylint_severity(message_type),
                    message=_as_str(item.get("message")) or "",
                )
            )
        return issues

    def _from_phpcs(self, payload: Any, workspace: str) -> list[Issue]:
        files = payload.get("files") if isinstance(payload, Mapping) else None
        if not isinstance(files, Mapping):
            logger.warning("PHPCS results were not in the expected format")
            return []

        issues = []
        for raw_path, file_data in files.items():
            if not isinstance(file_data, Mapping):
                continue
            file_path = relativize(_as_str(raw_path), workspace)
            for message in _dicts(file_data.get("messages")):
                source = _as_str(message.get("source")) or "phpcs"
                issues.append(
                    Issue(
                        file=file_path,
                        line=_as_int(message.get("line")),
                        column=_as_int(message.get("column")),
                        rule=source,
                        ruleset=source.split(".", 1)[0],
                        severity=phpcs_severity(message.get("type")),
                        message=_as_str(message.get("message")) or "",
                        suggestion="Automatically fixable with phpcbf" if message.get("fixable") else None,
                    )
                )
        return issues
