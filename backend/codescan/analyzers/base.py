"""Base adapter interfaces and the standardized result model."""

import json
import logging
import shutil
from dataclasses import asdict, dataclass, field
from typing import Any, Optional

from codescan.config import Settings, get_settings
from codescan.errors import (
    ConfigurationError,
    ExecutableNotFoundError,
    ExecutionFailedError,
)
from codescan.services.process_runner import CommandResult, run_command

logger = logging.getLogger(__name__)

SEVERITY_ERROR = "error"
SEVERITY_WARNING = "warning"
SEVERITY_INFO = "info"
SEVERITIES = (SEVERITY_ERROR, SEVERITY_WARNING, SEVERITY_INFO)


@dataclass
class AnalysisOptions:
    """Caller options for one analysis run."""

    branch: str = "main"
    specific_files: list[str] = field(default_factory=list)
    rulesets: Optional[str] = None
    config_file: Optional[str] = None
    file_extensions: Optional[str] = None
    engine: Optional[str] = None
    standard: Optional[str] = None
    token: Optional[str] = None


@dataclass
class Issue:
    """One standardized analyzer finding."""

    file: str
    line: int
    rule: str
    ruleset: str
    severity: str
    message: str
    end_line: Optional[int] = None
    column: Optional[int] = None
    end_column: Optional[int] = None
    suggestion: Optional[str] = None


@dataclass
class Summary:
    error_count: int = 0
    warning_count: int = 0
    file_count: int = 0


@dataclass
class AnalysisResult:
    """Standardized output of one analysis run."""

    tool: str
    language: str
    summary: Summary = field(default_factory=Summary)
    issues: list[Issue] = field(default_factory=list)
    file_contents: dict[str, str] = field(default_factory=dict)
    branch: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class ToolAdapter:
    """Base class for analyzer adapters.

    Subclasses build the tool invocation and may prepare configuration in the
    workspace. :meth:`_execute` applies the shared exit-status policy: output
    that parses as the tool's JSON is a success even when the exit status is
    non-zero, since these tools exit non-zero when they find violations.
    """

    name: str = "base"
    tool: str = "Base"
    languages: tuple[str, ...] = ()
    # Exit statuses the tool documents as configuration or usage errors
    config_exit_codes: frozenset[int] = frozenset()
    empty_payload: Any = None

    CONFIG_ERROR_MARKERS = (
        "configuration error",
        "cannot find module",
        "parsing error",
        "no such ruleset",
        "ruleset not found",
        "cannot load ruleset",
        "invalid config",
        "usage:",
    )
    NOT_FOUND_MARKERS = ("command not found", ": not found", "is not recognized as")

    def __init__(self, settings: Settings | None = None, runner=run_command):
        self.settings = settings or get_settings()
        self.runner = runner

    def supports(self, language: str) -> bool:
        return language.lower() in self.languages

    def validate_options(self, language: str, options: AnalysisOptions) -> None:
        """Check caller options before any process starts."""
        return None

    async def run(self, workspace: str, language: str, options: AnalysisOptions) -> Any:
        raise NotImplementedError

    def _require_on_path(self, executable: str) -> str:
        found = shutil.which(executable)
        if not found:
            raise ExecutableNotFoundError(
                f"{self.tool} executable '{executable}' not found. Ensure it is installed and on PATH."
            )
        return found

    async def _execute(
        self,
        args: list[str],
        cwd: str,
        env: dict[str, str] | None = None,
    ) -> Any:
        logger.info(f"Running {self.tool}: {' '.join(args)}")
        try:
            result = await self.runner(args, cwd=cwd, timeout=self.settings.analyzer_timeout, env=env)
        except ExecutableNotFoundError as exc:
            raise ExecutableNotFoundError(
                f"{self.tool} executable not found ({args[0]}). Ensure it is installed."
            ) from exc

        stdout = result.stdout.strip()
        if not stdout and result.ok:
            return self.empty_payload

        payload = self._parse_output(stdout)
        if payload is not None:
            if not result.ok:
                logger.info(f"{self.tool} exited with {result.returncode} and reported violations")
            return payload

        raise self._classify_failure(result)

    def _parse_output(self, stdout: str) -> Any:
        if not stdout.startswith(("{", "[")):
            return None
        try:
            return json.loads(stdout)
        except ValueError:
            return None

    def _classify_failure(self, result: CommandResult) -> Exception:
        stderr = result.stderr.strip()
        lowered = stderr.lower()
        logger.error(f"{self.tool} failed with exit code {result.returncode}: {stderr[:500]}")

        if result.returncode == 127 or any(marker in lowered for marker in self.NOT_FOUND_MARKERS):
            return ExecutableNotFoundError(f"{self.tool} executable not found: {stderr}")
        if result.returncode in self.config_exit_codes or any(
            marker in lowered for marker in self.CONFIG_ERROR_MARKERS
        ):
            return ConfigurationError(f"{self.tool} configuration error: {stderr}")
        return ExecutionFailedError(
            f"{self.tool} execution failed with exit code {result.returncode}",
            exit_code=result.returncode,
            stdout=result.stdout,
            stderr=result.stderr,
        )
