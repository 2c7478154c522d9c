"""PMD adapter for the rule-based engine and its language variants."""

import logging
from typing import Any

from codescan.analyzers.base import AnalysisOptions, ToolAdapter
from codescan.errors import UnsupportedLanguageError
from codescan.services.path_safety import validate_ruleset_reference

logger = logging.getLogger(__name__)

LANGUAGE_RULESETS = {
    "java": "category/java/bestpractices.xml,category/java/errorprone.xml",
    "javascript": "category/ecmascript/bestpractices.xml,category/ecmascript/errorprone.xml",
    # PMD uses the ecmascript rules for TypeScript too
    "typescript": "category/ecmascript/bestpractices.xml,category/ecmascript/errorprone.xml",
    "php": "category/php/bestpractices.xml,category/php/errorprone.xml",
    "python": "category/python/bestpractices.xml,category/python/errorprone.xml",
    "apex": "category/apex/bestpractices.xml",
    "jsp": "category/jsp/bestpractices.xml",
    "plsql": "category/plsql/bestpractices.xml",
    "xml": "category/xml/errorprone.xml",
    "velocity": "category/vm/bestpractices.xml",
}

PMD_DOCS_BASE = "https://docs.pmd-code.org/latest"

LANGUAGE_FILE_EXTENSIONS = {
    "typescript": "ts,tsx",
    "php": "php",
}


def default_rulesets(language: str) -> list[str]:
    """Default ruleset bundle for ``language``."""
    rulesets = LANGUAGE_RULESETS.get(language.lower())
    if rulesets is None:
        raise UnsupportedLanguageError(f"Unsupported language: {language}")
    return rulesets.split(",")


def rules_docs_url(language: str) -> str:
    """PMD rule reference page for the ruleset category ``language`` uses."""
    # category/<pmd language id>/<file>.xml; TypeScript maps onto ecmascript
    category = default_rulesets(language)[0].split("/")[1]
    return f"{PMD_DOCS_BASE}/pmd_rules_{category}.html"


class PMDAdapter(ToolAdapter):
    """Runs ``pmd check`` with a validated ruleset list."""

    name = "pmd"
    tool = "PMD"
    languages = tuple(LANGUAGE_RULESETS)
    config_exit_codes = frozenset({2})
    empty_payload = {"files": []}

    def resolve_rulesets(self, language: str, options: AnalysisOptions, base: str) -> list[str]:
        """Caller rulesets (each entry validated) or the language's default bundle."""
        custom = (options.rulesets or "").strip()
        if custom:
            validated = [
                validate_ruleset_reference(entry, base)
                for entry in custom.split(",")
                if entry.strip()
            ]
            if validated:
                return validated
            logger.warning("PMD: custom ruleset string was empty after validation; using defaults")

        default = LANGUAGE_RULESETS.get(language.lower(), LANGUAGE_RULESETS["java"])
        return default.split(",")

    def validate_options(self, language: str, options: AnalysisOptions) -> None:
        self.resolve_rulesets(language, options, self.settings.workspace_root)

    def build_command(self, workspace: str, language: str, rulesets: list[str], options: AnalysisOptions) -> list[str]:
        args = [
            self.settings.pmd_path,
            "check",
            "-d",
            workspace,
            "-R",
            ",".join(rulesets),
            "-f",
            "json",
        ]
        extensions = options.file_extensions or LANGUAGE_FILE_EXTENSIONS.get(language)
        if extensions:
            args.extend(["--file-extension", extensions])
        return args

    async def run(self, workspace: str, language: str, options: AnalysisOptions) -> Any:
        language = language.lower()
        rulesets = self.resolve_rulesets(language, options, workspace)
        logger.info(f"Running PMD on {workspace} with rulesets: {','.join(rulesets)}")

        payload = await self._execute(self.build_command(workspace, language, rulesets, options), cwd=workspace)

        if isinstance(payload, dict):
            for key in ("processingErrors", "configurationErrors"):
                if payload.get(key):
                    logger.warning(f"PMD reported {len(payload[key])} {key}")
        return payload
