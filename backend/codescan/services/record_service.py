"""Persisted analysis records on top of a document store."""

import hashlib
import logging
import uuid
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any

from codescan.analyzers.base import AnalysisOptions
from codescan.errors import AnalysisError, RecordNotFoundError
from codescan.services.analysis_service import AnalysisService
from codescan.services.path_safety import ensure_relative
from codescan.services.validators import parse_github_url
from codescan.stores.document_store import DocumentStore

logger = logging.getLogger(__name__)

ANALYSIS_COLLECTION = "analysis"
WARNINGS_COLLECTION = "analysis_warnings"

STATUS_PENDING = "pending"
STATUS_COMPLETED = "completed"
STATUS_FAILED = "failed"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def default_repository_id(repository_url: str) -> str:
    return hashlib.sha256(repository_url.strip().encode("utf-8")).hexdigest()[:16]


def default_repository_name(repository_url: str) -> str:
    github = parse_github_url(repository_url)
    if github:
        return f"{github[0]}/{github[1]}"
    name = repository_url.rstrip("/").rsplit("/", 1)[-1].rsplit(":", 1)[-1]
    return name[:-4] if name.endswith(".git") else name


def _stored_options(options: AnalysisOptions) -> dict[str, Any]:
    data = asdict(options)
    data.pop("token", None)
    return data


class AnalysisRecordService:
    """Creates, completes and reads analysis records.

    An analysis record lives in ``analysis`` and points at one
    ``analysis_warnings`` record holding the issues and file contents.
    """

    def __init__(self, store: DocumentStore, analysis_service: AnalysisService):
        self.store = store
        self.analysis_service = analysis_service

    async def create_pending(
        self,
        repository_url: str,
        language: str,
        options: AnalysisOptions,
        repository_id: str | None = None,
        repository_name: str | None = None,
    ) -> dict[str, Any]:
        """Validate the request and store a pending record for it."""
        self.analysis_service.validate_request(repository_url, language, options)

        now = _now()
        record = {
            "id": uuid.uuid4().hex,
            "repository_id": repository_id or default_repository_id(repository_url),
            "repository_name": repository_name or default_repository_name(repository_url),
            "repository_url": repository_url,
            "language": (language or "").strip().lower(),
            "branch": options.branch,
            "options": _stored_options(options),
            "status": STATUS_PENDING,
            "tool": None,
            "summary": None,
            "warnings_ref": None,
            "error": None,
            "created_at": now,
            "updated_at": now,
        }
        await self.store.put(ANALYSIS_COLLECTION, record["id"], record)
        logger.info(f"Created pending analysis {record['id']} for {record['repository_name']}")
        return record

    async def complete(self, analysis_id: str, token: str | None = None) -> dict[str, Any]:
        """Run the analysis for a pending record and store the outcome.

        Analysis failures are recorded on the record rather than raised.
        """
        record = await self.get_analysis(analysis_id)
        options = AnalysisOptions(**(record.get("options") or {}))
        options.token = token

        try:
            result = await self.analysis_service.run_analysis(
                record["repository_url"], record["language"], options
            )
        except AnalysisError as e:
            logger.error(f"Analysis {analysis_id} failed: {e.kind}: {e.message}")
            record.update(status=STATUS_FAILED, error=e.to_dict(), updated_at=_now())
            await self.store.put(ANALYSIS_COLLECTION, analysis_id, record)
            return record

        warnings_id = uuid.uuid4().hex
        await self.store.put(
            WARNINGS_COLLECTION,
            warnings_id,
            {
                "id": warnings_id,
                "analysis_id": analysis_id,
                "repository_id": record["repository_id"],
                "warnings": [asdict(issue) for issue in result.issues],
                "file_contents": result.file_contents,
                "created_at": _now(),
            },
        )

        record.update(
            status=STATUS_COMPLETED,
            tool=result.tool,
            branch=result.branch,
            summary=asdict(result.summary),
            warnings_ref=warnings_id,
            error=None,
            updated_at=_now(),
        )
        await self.store.put(ANALYSIS_COLLECTION, analysis_id, record)
        logger.info(f"Analysis {analysis_id} completed with {len(result.issues)} issues")
        return record

    async def get_analysis(self, analysis_id: str) -> dict[str, Any]:
        record = await self.store.get(ANALYSIS_COLLECTION, analysis_id)
        if record is None:
            raise RecordNotFoundError(f"Analysis not found: {analysis_id}")
        return record

    async def list_analyses(self, repository_id: str) -> list[dict[str, Any]]:
        records = await self.store.query(ANALYSIS_COLLECTION, repository_id=repository_id)
        return sorted(records, key=lambda r: r.get("created_at") or "", reverse=True)

    async def _get_warnings_record(self, record: dict[str, Any]) -> dict[str, Any] | None:
        if not record.get("warnings_ref"):
            return None
        return await self.store.get(WARNINGS_COLLECTION, record["warnings_ref"])

    async def get_analysis_warnings(self, analysis_id: str) -> list[dict[str, Any]]:
        record = await self.get_analysis(analysis_id)
        if not record.get("warnings_ref"):
            raise RecordNotFoundError(f"No warnings recorded for analysis {analysis_id}")

        warnings = await self._get_warnings_record(record)
        if warnings is None:
            raise RecordNotFoundError(f"Warnings data not found for analysis {analysis_id}")
        return warnings.get("warnings") or []

    async def get_analysis_file_content(self, analysis_id: str, file_path: str) -> dict[str, str]:
        """Stored content for ``file_path``, falling back to the remote repository."""
        relative_path = ensure_relative(file_path)
        record = await self.get_analysis(analysis_id)

        warnings = await self._get_warnings_record(record)
        stored = (warnings or {}).get("file_contents") or {}
        if relative_path in stored:
            return {"path": relative_path, "content": stored[relative_path]}

        logger.info(f"{relative_path} not stored for analysis {analysis_id}; fetching from repository")
        try:
            content = await self.analysis_service.checkout_service.fetch_single_file(
                record["repository_url"], relative_path, branch=record.get("branch") or "main"
            )
        except (AnalysisError, RecordNotFoundError) as e:
            logger.error(f"Failed to fetch {relative_path} for analysis {analysis_id}: {e}")
            raise RecordNotFoundError(f"File not found in repository: {relative_path}") from e
        return {"path": relative_path, "content": content}
