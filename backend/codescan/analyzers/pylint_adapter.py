"""Pylint adapter for Python."""

from typing import Any

from codescan.analyzers.base import AnalysisOptions, ToolAdapter
from codescan.services.path_safety import ensure_relative, safe_join


class PylintAdapter(ToolAdapter):
    """Runs Pylint from PATH. The tool is never installed on demand."""

    name = "pylint"
    tool = "PyLint"
    languages = ("python",)
    # Pylint sets bit 32 for usage errors
    config_exit_codes = frozenset({32})
    empty_payload: list = []

    def validate_options(self, language: str, options: AnalysisOptions) -> None:
        if options.config_file and options.config_file.strip():
            ensure_relative(options.config_file)

    def build_command(self, workspace: str, options: AnalysisOptions, executable: str = "pylint") -> list[str]:
        args = [executable, "--output-format=json", "--recursive=y"]
        if options.config_file and options.config_file.strip():
            args.append(f"--rcfile={safe_join(workspace, options.config_file.strip())}")
        args.append(workspace)
        return args

    async def run(self, workspace: str, language: str, options: AnalysisOptions) -> Any:
        executable = self._require_on_path("pylint")
        return await self._execute(self.build_command(workspace, options, executable), cwd=workspace)
