"""Sparse checkout of remote repositories into a workspace."""

import logging
import os
import re
import shutil
import stat
import tempfile
import time
from dataclasses import dataclass

import httpx

from codescan.config import Settings, get_settings
from codescan.errors import (
    CheckoutError,
    NoSuitableBranchError,
    RecordNotFoundError,
    UnsupportedLanguageError,
    ValidationError,
)
from codescan.services.path_safety import ensure_relative, safe_join
from codescan.services.process_runner import CommandResult, run_command
from codescan.services.validators import (
    parse_github_url,
    validate_branch,
    validate_pattern,
    validate_repository_url,
)
from codescan.services.workspace_service import WorkspaceManager

logger = logging.getLogger(__name__)

# Config and manifest files kept in every checkout so analyzers can find
# project-local tool configuration.
ALWAYS_INCLUDED_PATTERNS = [
    ".eslintrc*",
    "eslint.config.*",
    ".prettierrc*",
    "package.json",
    "tsconfig.json",
    "pom.xml",
    "build.gradle",
    "requirements.txt",
    "pyproject.toml",
    "setup.cfg",
    ".pylintrc",
    "composer.json",
    "phpcs.xml*",
]

LANGUAGE_PATTERNS = {
    "java": ["**/*.java"],
    "javascript": ["**/*.js", "**/*.jsx"],
    "typescript": ["**/*.ts", "**/*.tsx", "tsconfig.json"],
    "python": ["**/*.py"],
    "php": ["**/*.php"],
    "apex": ["**/*.cls", "**/*.trigger"],
    "jsp": ["**/*.jsp"],
    "plsql": ["**/*.sql"],
    "xml": ["**/*.xml"],
    "velocity": ["**/*.vm"],
}

FALLBACK_BRANCHES = ("main", "master")


@dataclass(frozen=True)
class CheckoutSpec:
    """What to fetch: a remote, a branch and the sparse patterns."""

    repository_url: str
    branch: str = "main"
    patterns: tuple[str, ...] = ()

    @classmethod
    def create(
        cls,
        repository_url: str,
        patterns: list[str],
        branch: str = "main",
        allow_local: bool = False,
    ) -> "CheckoutSpec":
        """Build a spec, validating every caller-influenced field."""
        if not patterns:
            raise ValidationError("At least one file pattern is required")
        return cls(
            repository_url=validate_repository_url(repository_url, allow_local=allow_local),
            branch=validate_branch(branch),
            patterns=tuple(validate_pattern(p) for p in patterns),
        )


def generate_patterns(language: str, specific_files: list[str] | None = None) -> list[str]:
    """Sparse patterns for ``language``; ``specific_files`` replace the language globs."""
    if specific_files:
        selected = list(specific_files)
    else:
        selected = LANGUAGE_PATTERNS.get(language.lower())
        if selected is None:
            raise UnsupportedLanguageError(f"Unsupported language: {language}")

    patterns: list[str] = []
    for pattern in [*ALWAYS_INCLUDED_PATTERNS, *selected]:
        if pattern not in patterns:
            patterns.append(pattern)
    return patterns


class SparseCheckoutService:
    """Materializes only the files matching a CheckoutSpec.

    The handshake is init -> remote -> sparse rules -> branch resolution ->
    shallow fetch -> checkout. A failure at any step removes the workspace
    before the error propagates.
    """

    # Patterns to redact from error messages
    TOKEN_PATTERNS = [
        r'ghp_[a-zA-Z0-9]{36,}',
        r'github_pat_[a-zA-Z0-9_]{22,}',
        r'ghu_[a-zA-Z0-9]{36,}',
        r'ghs_[a-zA-Z0-9]{36,}',
        r'gho_[a-zA-Z0-9]{36,}',
        r'glpat-[a-zA-Z0-9_-]{20,}',
    ]

    RAW_GITHUB_BASE = "https://raw.githubusercontent.com"
    TOKEN_ENV_VAR = "CODESCAN_GIT_TOKEN"

    def __init__(
        self,
        settings: Settings | None = None,
        runner=run_command,
        workspaces: WorkspaceManager | None = None,
    ):
        self.settings = settings or get_settings()
        self.runner = runner
        self.workspaces = workspaces or WorkspaceManager(self.settings.workspace_root)

    def build_spec(
        self,
        repository_url: str,
        language: str,
        branch: str = "main",
        specific_files: list[str] | None = None,
    ) -> CheckoutSpec:
        return CheckoutSpec.create(
            repository_url,
            generate_patterns(language, specific_files),
            branch=branch,
            allow_local=self.settings.allow_local_repositories,
        )

    def _sanitize_error(self, error: str) -> str:
        """Remove tokens and credentials from git output."""
        sanitized = error
        for pattern in self.TOKEN_PATTERNS:
            sanitized = re.sub(pattern, '[REDACTED]', sanitized)
        sanitized = re.sub(r'://[^:/@\s]+:[^@\s]+@', '://[REDACTED]@', sanitized)
        return sanitized

    async def checkout(self, spec: CheckoutSpec, workspace: str, token: str | None = None) -> str:
        """Populate ``workspace`` from ``spec``. Returns the branch checked out."""
        started = time.monotonic()
        askpass_script_path = None
        env = {"GIT_TERMINAL_PROMPT": "0"}

        try:
            os.makedirs(workspace, exist_ok=True)
            if token:
                askpass_script_path = self._create_askpass_script()
                env["GIT_ASKPASS"] = askpass_script_path
                env[self.TOKEN_ENV_VAR] = token

            await self._initialize(spec.repository_url, workspace, env)
            await self._configure_sparse_checkout(list(spec.patterns), workspace, env)
            branch = await self._resolve_branch(spec.branch, spec.repository_url, workspace, env)
            await self._fetch_and_checkout(branch, workspace, env)
        except BaseException:
            logger.error(f"Sparse checkout of {self._sanitize_error(spec.repository_url)} failed")
            shutil.rmtree(workspace, ignore_errors=True)
            raise
        finally:
            if askpass_script_path and os.path.exists(askpass_script_path):
                os.remove(askpass_script_path)

        logger.info(
            f"Sparse checkout of {self._sanitize_error(spec.repository_url)} "
            f"(branch {branch}) took {time.monotonic() - started:.1f}s"
        )
        return branch

    async def _git(
        self,
        args: list[str],
        workspace: str,
        env: dict[str, str],
        timeout: float | None = None,
    ) -> CommandResult:
        result = await self.runner(
            ["git", *args],
            cwd=workspace,
            timeout=timeout or self.settings.git_command_timeout,
            env=env,
        )
        if not result.ok:
            stderr = self._sanitize_error(result.stderr.strip())
            raise CheckoutError(
                f"git {args[0]} failed: {stderr}",
                exit_code=result.returncode,
                stdout=self._sanitize_error(result.stdout),
                stderr=stderr,
            )
        return result

    async def _initialize(self, repository_url: str, workspace: str, env: dict[str, str]) -> None:
        logger.info(f"Initializing git repository in {workspace}")
        await self._git(["init", "--quiet"], workspace, env)
        await self._git(["remote", "add", "origin", repository_url], workspace, env)

    async def _configure_sparse_checkout(
        self, patterns: list[str], workspace: str, env: dict[str, str]
    ) -> None:
        await self._git(["config", "core.sparseCheckout", "true"], workspace, env)
        await self._git(["config", "core.sparseCheckoutCone", "false"], workspace, env)

        sparse_file = safe_join(workspace, ".git", "info", "sparse-checkout")
        os.makedirs(os.path.dirname(sparse_file), exist_ok=True)
        with open(sparse_file, "w", encoding="utf-8") as handle:
            handle.write("\n".join(patterns) + "\n")
        logger.info(f"Wrote {len(patterns)} sparse-checkout patterns")

    async def _resolve_branch(
        self, desired: str, repository_url: str, workspace: str, env: dict[str, str]
    ) -> str:
        result = await self._git(["ls-remote", "--heads", "origin"], workspace, env)
        heads = set()
        for line in result.stdout.splitlines():
            parts = line.split("\t")
            if len(parts) == 2 and parts[1].startswith("refs/heads/"):
                heads.add(parts[1][len("refs/heads/"):])

        if desired in heads:
            return desired

        logger.warning(
            f"Branch '{desired}' not found on {self._sanitize_error(repository_url)}; "
            f"trying {', '.join(FALLBACK_BRANCHES)}"
        )
        for fallback in FALLBACK_BRANCHES:
            if fallback in heads:
                logger.info(f"Using fallback branch '{fallback}'")
                return fallback

        raise NoSuitableBranchError(
            f"Cannot find a suitable branch (tried {desired}, {', '.join(FALLBACK_BRANCHES)}) "
            f"on {self._sanitize_error(repository_url)}"
        )

    async def _fetch_and_checkout(self, branch: str, workspace: str, env: dict[str, str]) -> None:
        timeout = self.settings.git_fetch_timeout
        logger.info(f"Fetching branch '{branch}' with depth=1")
        await self._git(["fetch", "--depth=1", "origin", branch], workspace, env, timeout=timeout)
        await self._git(["checkout", "--force", "-B", branch, "FETCH_HEAD"], workspace, env, timeout=timeout)

    def _create_askpass_script(self) -> str:
        """Create temporary GIT_ASKPASS script that prints the token from the environment."""
        fd, script_path = tempfile.mkstemp(prefix="git_askpass_", suffix=".sh")

        try:
            script_content = f"#!/bin/sh\nprintf '%s\\n' \"${self.TOKEN_ENV_VAR}\"\n"
            os.write(fd, script_content.encode())
            os.close(fd)
            os.chmod(script_path, stat.S_IRWXU)
            return script_path
        except OSError:
            os.close(fd)
            if os.path.exists(script_path):
                os.remove(script_path)
            raise

    def list_matching_files(self, workspace: str) -> list[str]:
        """Relative, forward-slash paths of every checked-out file."""
        files = []
        for dirpath, dirnames, filenames in os.walk(workspace):
            dirnames[:] = [d for d in dirnames if d != ".git"]
            for filename in filenames:
                full_path = os.path.join(dirpath, filename)
                files.append(os.path.relpath(full_path, workspace).replace(os.sep, "/"))
        return sorted(files)

    async def fetch_single_file(
        self,
        repository_url: str,
        file_path: str,
        branch: str = "main",
        token: str | None = None,
    ) -> str:
        """Fetch one file without a full checkout.

        GitHub URLs are served from raw content, trying ``branch`` then the
        fallback branches. Other hosts use a one-pattern sparse checkout into a
        throwaway workspace.
        """
        relative_path = ensure_relative(file_path).replace("\\", "/")
        validate_branch(branch)
        github = parse_github_url(repository_url)

        if github:
            return await self._fetch_raw_github(github[0], github[1], relative_path, branch)

        spec = CheckoutSpec.create(
            repository_url,
            [relative_path],
            branch=branch,
            allow_local=self.settings.allow_local_repositories,
        )
        async with self.workspaces.allocate() as workspace:
            await self.checkout(spec, workspace, token=token)
            try:
                with open(safe_join(workspace, relative_path), "r", encoding="utf-8", errors="replace") as handle:
                    return handle.read()
            except OSError as exc:
                raise RecordNotFoundError(f"File not found in repository: {relative_path}") from exc

    async def _fetch_raw_github(self, owner: str, repo: str, file_path: str, branch: str) -> str:
        branches = [branch] + [b for b in FALLBACK_BRANCHES if b != branch]
        last_error = None

        async with httpx.AsyncClient(timeout=self.settings.raw_fetch_timeout) as client:
            for candidate in branches:
                url = f"{self.RAW_GITHUB_BASE}/{owner}/{repo}/{candidate}/{file_path}"
                try:
                    response = await client.get(url)
                except httpx.HTTPError as exc:
                    last_error = str(exc)
                    logger.warning(f"Error fetching {file_path} from branch {candidate}: {exc}")
                    continue
                if response.status_code == 200:
                    logger.info(f"Fetched {file_path} from {owner}/{repo}@{candidate}")
                    return response.text
                last_error = f"HTTP {response.status_code}"
                logger.info(f"Branch {candidate} returned {response.status_code} for {file_path}")

        raise RecordNotFoundError(
            f"File not found in repository: {file_path} ({last_error or 'no branch matched'})"
        )
