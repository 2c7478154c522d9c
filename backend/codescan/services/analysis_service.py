"""Analysis orchestration: checkout, analyze, standardize, attach."""

import logging
import time
from contextlib import contextmanager
from typing import Iterator

from codescan.analyzers import get_adapter
from codescan.analyzers.base import AnalysisOptions, AnalysisResult, ToolAdapter
from codescan.config import Settings, get_settings
from codescan.errors import AnalysisError
from codescan.services.checkout_service import CheckoutSpec, SparseCheckoutService
from codescan.services.content_service import attach_file_contents
from codescan.services.process_runner import run_command
from codescan.services.standardizer import ResultStandardizer
from codescan.services.validators import validate_file_extensions
from codescan.services.workspace_service import WorkspaceManager

logger = logging.getLogger(__name__)

PHASE_VALIDATION = "validation"
PHASE_CHECKOUT = "checkout"
PHASE_ANALYSIS = "analysis"
PHASE_STANDARDIZE = "standardize"
PHASE_ATTACH = "attach"


class AnalysisService:
    """Runs one analysis end to end in a private workspace.

    Every caller-supplied value is validated before any external process
    starts. The workspace is allocated per run and removed on every exit path,
    and errors leave here tagged with the phase that raised them.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        checkout_service: SparseCheckoutService | None = None,
        workspaces: WorkspaceManager | None = None,
        adapter_factory=get_adapter,
        standardizer: ResultStandardizer | None = None,
        runner=run_command,
    ):
        self.settings = settings or get_settings()
        self.runner = runner
        self.workspaces = workspaces or WorkspaceManager(self.settings.workspace_root)
        self.checkout_service = checkout_service or SparseCheckoutService(
            self.settings, runner=runner, workspaces=self.workspaces
        )
        self.adapter_factory = adapter_factory
        self.standardizer = standardizer or ResultStandardizer(self.settings)

    @contextmanager
    def _phase(self, phase: str) -> Iterator[None]:
        try:
            yield
        except AnalysisError as e:
            if e.phase is None:
                e.phase = phase
            logger.error(f"Analysis failed during {phase}: {e.kind}: {e.message}")
            raise
        except Exception as e:
            logger.exception(f"Unexpected error during {phase}")
            raise AnalysisError(f"Unexpected error during {phase}: {e}", phase=phase) from e

    def prepare(
        self, repository_url: str, language: str, options: AnalysisOptions
    ) -> tuple[CheckoutSpec, ToolAdapter]:
        """Validate the request and pick the adapter without touching disk."""
        options.file_extensions = validate_file_extensions(options.file_extensions)
        adapter = self.adapter_factory(
            language, engine=options.engine, settings=self.settings, runner=self.runner
        )
        spec = self.checkout_service.build_spec(
            repository_url,
            language,
            branch=options.branch or "main",
            specific_files=options.specific_files,
        )
        adapter.validate_options(language, options)
        return spec, adapter

    def validate_request(
        self, repository_url: str, language: str, options: AnalysisOptions
    ) -> tuple[CheckoutSpec, ToolAdapter]:
        with self._phase(PHASE_VALIDATION):
            return self.prepare(repository_url, (language or "").strip().lower(), options)

    async def run_analysis(
        self,
        repository_url: str,
        language: str,
        options: AnalysisOptions | None = None,
    ) -> AnalysisResult:
        options = options or AnalysisOptions()
        language = (language or "").strip().lower()

        spec, adapter = self.validate_request(repository_url, language, options)

        logger.info(f"Starting {adapter.tool} analysis ({language}) of branch {spec.branch}")

        async with self.workspaces.allocate() as workspace:
            with self._phase(PHASE_CHECKOUT):
                started = time.monotonic()
                branch = await self.checkout_service.checkout(spec, workspace, token=options.token)
                logger.info(f"Checkout phase finished in {time.monotonic() - started:.1f}s")

            with self._phase(PHASE_ANALYSIS):
                payload = await adapter.run(workspace, language, options)

            with self._phase(PHASE_STANDARDIZE):
                result = self.standardizer.standardize(
                    adapter.name, adapter.tool, payload, language, workspace
                )

            with self._phase(PHASE_ATTACH):
                await attach_file_contents(result, workspace)

        result.branch = branch
        logger.info(
            f"{adapter.tool} analysis complete: {result.summary.error_count} errors, "
            f"{result.summary.warning_count} warnings across {result.summary.file_count} files"
        )
        return result
