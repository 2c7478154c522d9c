"""ESLint adapter for JavaScript and TypeScript."""

import json
import logging
import os
from typing import Any

from codescan.analyzers.base import AnalysisOptions, ToolAdapter
from codescan.services.path_safety import ensure_relative, safe_join

logger = logging.getLogger(__name__)

STANDARD_CONFIGS = [
    ".eslintrc.js",
    ".eslintrc.cjs",
    ".eslintrc.json",
    ".eslintrc.yml",
    ".eslintrc.yaml",
    ".eslintrc",
    "eslint.config.js",
    "eslint.config.mjs",
    "eslint.config.cjs",
    "eslint.config.ts",
    "eslint.config.mts",
    "eslint.config.cts",
]

DEFAULT_CONFIG = {
    "env": {"browser": True, "es2021": True, "node": True},
    "extends": "eslint:recommended",
    "parserOptions": {"ecmaVersion": "latest", "sourceType": "module"},
}


class ESLintAdapter(ToolAdapter):
    """Runs ESLint, preferring a project-local installation."""

    name = "eslint"
    tool = "ESLint"
    languages = ("javascript", "typescript")
    config_exit_codes = frozenset({2})
    empty_payload: list = []

    def validate_options(self, language: str, options: AnalysisOptions) -> None:
        if options.config_file and options.config_file.strip():
            ensure_relative(options.config_file)

    def resolve_executable(self, workspace: str) -> str:
        local = safe_join(workspace, "node_modules", ".bin", "eslint")
        if os.path.isfile(local) and os.access(local, os.X_OK):
            logger.info(f"Using project-local ESLint at {local}")
            return local
        return "eslint"

    def has_standard_config(self, workspace: str) -> bool:
        return any(os.path.exists(safe_join(workspace, name)) for name in STANDARD_CONFIGS)

    def ensure_default_config(self, workspace: str) -> bool:
        """Write a minimal config when the project has none. Returns True if written."""
        if self.has_standard_config(workspace):
            return False
        config_path = safe_join(workspace, ".eslintrc.json")
        with open(config_path, "w", encoding="utf-8") as handle:
            json.dump(DEFAULT_CONFIG, handle, indent=2)
        logger.info(f"Created default ESLint config at {config_path}")
        return True

    def build_command(
        self,
        workspace: str,
        language: str,
        options: AnalysisOptions,
        executable: str,
        config_path: str | None = None,
    ) -> list[str]:
        extensions = options.file_extensions or ("ts,tsx" if language == "typescript" else "js,jsx")
        args = [
            executable,
            workspace,
            "--ext",
            extensions,
            "-f",
            "json",
            "--cache",
            "--cache-location",
            safe_join(workspace, ".eslintcache"),
        ]
        if config_path:
            args.extend(["--config", config_path])
        return args

    async def run(self, workspace: str, language: str, options: AnalysisOptions) -> Any:
        executable = self.resolve_executable(workspace)
        config_path = None

        if options.config_file and options.config_file.strip():
            config_path = safe_join(workspace, options.config_file.strip())
            logger.info(f"Using custom ESLint config: {config_path}")
            legacy = os.path.basename(config_path).startswith(".eslintrc")
        else:
            self.ensure_default_config(workspace)
            legacy = not any(
                os.path.exists(safe_join(workspace, name))
                for name in STANDARD_CONFIGS
                if name.startswith("eslint.config")
            )

        # .eslintrc files need legacy mode on ESLint 9+
        env = {"ESLINT_USE_FLAT_CONFIG": "false"} if legacy else None
        args = self.build_command(workspace, language.lower(), options, executable, config_path)
        return await self._execute(args, cwd=workspace, env=env)
