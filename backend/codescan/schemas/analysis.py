"""Schemas for analysis requests, records and results."""

from typing import Any

from pydantic import BaseModel, Field

from codescan.analyzers.base import AnalysisOptions


class AnalysisRequest(BaseModel):
    """Request to analyze a repository."""

    repository_url: str = Field(description="Remote repository URL")
    language: str = Field(default="java", description="Language to analyze")
    repository_id: str | None = Field(default=None, description="Caller-side repository ID")
    repository_name: str | None = None
    branch: str = "main"
    specific_files: list[str] = Field(default_factory=list)
    rulesets: str | None = Field(default=None, description="Comma-separated rule engine rulesets")
    config_file: str | None = Field(default=None, description="Workspace-relative tool config")
    file_extensions: str | None = None
    engine: str | None = Field(default=None, description="Force a tool: eslint, pmd, pylint, phpcs")
    standard: str | None = Field(default=None, description="PHP_CodeSniffer coding standard")
    token: str | None = Field(default=None, description="Access token for private repositories")

    def to_options(self) -> AnalysisOptions:
        return AnalysisOptions(
            branch=self.branch,
            specific_files=list(self.specific_files),
            rulesets=self.rulesets,
            config_file=self.config_file,
            file_extensions=self.file_extensions,
            engine=self.engine,
            standard=self.standard,
            token=self.token,
        )


class IssueResponse(BaseModel):
    file: str
    line: int
    rule: str
    ruleset: str
    severity: str
    message: str
    end_line: int | None = None
    column: int | None = None
    end_column: int | None = None
    suggestion: str | None = None


class SummaryResponse(BaseModel):
    error_count: int = 0
    warning_count: int = 0
    file_count: int = 0


class AnalysisResultResponse(BaseModel):
    """Standardized result of a synchronous run."""

    tool: str
    language: str
    branch: str | None = None
    summary: SummaryResponse
    issues: list[IssueResponse]
    file_contents: dict[str, str] = Field(default_factory=dict)


class AnalysisRecordResponse(BaseModel):
    """Stored analysis record."""

    id: str
    repository_id: str
    repository_name: str | None = None
    repository_url: str
    language: str
    branch: str | None = None
    status: str
    tool: str | None = None
    summary: SummaryResponse | None = None
    warnings_ref: str | None = None
    error: dict[str, Any] | None = None
    created_at: str
    updated_at: str


class AnalysisListResponse(BaseModel):
    analyses: list[AnalysisRecordResponse]
    total: int


class WarningsResponse(BaseModel):
    analysis_id: str
    warnings: list[IssueResponse]
    total: int


class FileContentResponse(BaseModel):
    path: str
    content: str


class LanguagesResponse(BaseModel):
    languages: list[str]
    default_tools: dict[str, str]


class RulesResponse(BaseModel):
    """Default rule engine rulesets for a language."""

    language: str
    docs_url: str
    rulesets: list[str]
