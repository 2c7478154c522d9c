"""Typed errors raised by the analysis core."""


class AnalysisError(Exception):
    """Base error for an analysis run.

    ``kind`` is a stable identifier the HTTP layer maps to a status code.
    ``phase`` is filled in by the orchestrator with the step that failed.
    """

    kind = "analysis_error"

    def __init__(self, message: str, phase: str | None = None):
        super().__init__(message)
        self.message = message
        self.phase = phase

    def to_dict(self) -> dict:
        return {"error": self.kind, "message": self.message, "phase": self.phase}


class ValidationError(AnalysisError):
    """Malformed repository URL, branch, pattern or option."""

    kind = "validation_error"


class UnsupportedLanguageError(ValidationError):
    """No analyzer is registered for the requested language."""

    kind = "unsupported_language"


class PathTraversalError(AnalysisError):
    """A path resolved outside its trusted base directory."""

    kind = "path_traversal"


class InvalidRulesetPathError(AnalysisError):
    """A ruleset reference is absolute or contains a traversal segment."""

    kind = "invalid_ruleset_path"


class NoSuitableBranchError(AnalysisError):
    """Neither the requested branch nor main/master exist on the remote."""

    kind = "no_suitable_branch"


class ExecutableNotFoundError(AnalysisError):
    """An external executable could not be started."""

    kind = "executable_not_found"


class ConfigurationError(AnalysisError):
    """The external tool rejected its configuration."""

    kind = "configuration_error"


class ExecutionFailedError(AnalysisError):
    """An external tool failed without producing structured output."""

    kind = "execution_failed"

    def __init__(
        self,
        message: str,
        exit_code: int | None = None,
        stdout: str = "",
        stderr: str = "",
        phase: str | None = None,
    ):
        super().__init__(message, phase=phase)
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["exit_code"] = self.exit_code
        data["stderr"] = self.stderr
        return data


class CheckoutError(ExecutionFailedError):
    """A git command failed during sparse checkout."""

    kind = "checkout_failed"


class CommandTimeoutError(AnalysisError):
    """An external process exceeded its time bound and was killed."""

    kind = "timeout"

    def __init__(self, message: str, timeout: float | None = None, phase: str | None = None):
        super().__init__(message, phase=phase)
        self.timeout = timeout


class RecordNotFoundError(Exception):
    """A stored analysis record or file could not be found."""

    pass
