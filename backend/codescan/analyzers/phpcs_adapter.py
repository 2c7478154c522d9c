"""PHP_CodeSniffer adapter for PHP."""

import re
from typing import Any

from codescan.analyzers.base import AnalysisOptions, ToolAdapter
from codescan.errors import ValidationError

_STANDARD = re.compile(r"^[A-Za-z0-9_.,-]+$")


class PHPCSAdapter(ToolAdapter):
    """Runs phpcs from PATH with the JSON report."""

    name = "phpcs"
    tool = "PHP_CodeSniffer"
    languages = ("php",)
    config_exit_codes = frozenset({3})
    empty_payload = {"files": {}}

    def validate_options(self, language: str, options: AnalysisOptions) -> None:
        if options.standard and not _STANDARD.match(options.standard):
            raise ValidationError(f"Invalid coding standard: {options.standard!r}")

    def build_command(self, workspace: str, options: AnalysisOptions, executable: str = "phpcs") -> list[str]:
        args = [executable, "--report=json"]
        if options.standard:
            args.append(f"--standard={options.standard}")
        if options.file_extensions:
            args.append(f"--extensions={options.file_extensions}")
        args.append(workspace)
        return args

    async def run(self, workspace: str, language: str, options: AnalysisOptions) -> Any:
        self.validate_options(language, options)
        executable = self._require_on_path("phpcs")
        return await self._execute(self.build_command(workspace, options, executable), cwd=workspace)
