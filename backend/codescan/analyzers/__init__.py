"""Analyzer adapter registry."""

from codescan.analyzers.base import (
    AnalysisOptions,
    AnalysisResult,
    Issue,
    Summary,
    ToolAdapter,
)
from codescan.analyzers.eslint_adapter import ESLintAdapter
from codescan.analyzers.phpcs_adapter import PHPCSAdapter
from codescan.analyzers.pmd_adapter import LANGUAGE_RULESETS, PMDAdapter
from codescan.analyzers.pylint_adapter import PylintAdapter
from codescan.errors import UnsupportedLanguageError

# Default tool per language; languages missing here fall back to PMD when it
# ships rules for them.
DEFAULT_ADAPTERS = {
    "javascript": ESLintAdapter,
    "typescript": ESLintAdapter,
    "java": PMDAdapter,
    "python": PylintAdapter,
    "php": PHPCSAdapter,
}

ENGINE_ADAPTERS = {
    "eslint": ESLintAdapter,
    "pmd": PMDAdapter,
    "pylint": PylintAdapter,
    "phpcs": PHPCSAdapter,
}


def supported_languages() -> list[str]:
    return sorted(set(DEFAULT_ADAPTERS) | set(LANGUAGE_RULESETS))


def default_tools() -> dict[str, str]:
    """Tool used for each supported language when no engine is forced."""
    return {lang: DEFAULT_ADAPTERS.get(lang, PMDAdapter).tool for lang in supported_languages()}


def get_adapter(language: str, engine: str | None = None, **kwargs) -> ToolAdapter:
    """Instantiate the adapter for ``language``, optionally forcing an engine."""
    normalized = (language or "").lower()
    if engine:
        adapter_cls = ENGINE_ADAPTERS.get(engine.lower())
        if adapter_cls is None:
            raise UnsupportedLanguageError(f"Unknown analysis engine: {engine}")
    else:
        adapter_cls = DEFAULT_ADAPTERS.get(normalized)
        if adapter_cls is None and normalized in LANGUAGE_RULESETS:
            adapter_cls = PMDAdapter
        if adapter_cls is None:
            raise UnsupportedLanguageError(f"Unsupported language: {language}")

    adapter = adapter_cls(**kwargs)
    if not adapter.supports(normalized):
        raise UnsupportedLanguageError(f"{adapter.tool} does not support language: {language}")
    return adapter


__all__ = [
    "AnalysisOptions",
    "AnalysisResult",
    "Issue",
    "Summary",
    "ToolAdapter",
    "ESLintAdapter",
    "PMDAdapter",
    "PylintAdapter",
    "PHPCSAdapter",
    "DEFAULT_ADAPTERS",
    "default_tools",
    "get_adapter",
    "supported_languages",
]
