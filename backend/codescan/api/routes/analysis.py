"""Analysis routes."""

from fastapi import APIRouter, HTTPException, Query, status

from codescan.analyzers import default_tools, supported_languages
from codescan.analyzers.pmd_adapter import default_rulesets, rules_docs_url
from codescan.api.deps import AnalysisServiceDep, RecordServiceDep
from codescan.errors import RecordNotFoundError
from codescan.schemas.analysis import (
    AnalysisListResponse,
    AnalysisRecordResponse,
    AnalysisRequest,
    AnalysisResultResponse,
    FileContentResponse,
    LanguagesResponse,
    RulesResponse,
    WarningsResponse,
)
from codescan.tasks.analyze_repo import analyze_repository

router = APIRouter()


@router.get("/languages", response_model=LanguagesResponse)
async def list_languages():
    """Languages that can be analyzed and the tool used for each."""
    return LanguagesResponse(languages=supported_languages(), default_tools=default_tools())


@router.get("/rules/{language}", response_model=RulesResponse)
async def get_rules(language: str):
    """Default rule engine rulesets for a language and their reference page."""
    normalized = language.lower()
    return RulesResponse(
        language=normalized,
        docs_url=rules_docs_url(normalized),
        rulesets=default_rulesets(normalized),
    )


@router.post("", response_model=AnalysisRecordResponse, status_code=status.HTTP_202_ACCEPTED)
async def start_analysis(request: AnalysisRequest, records: RecordServiceDep):
    """Validate the request, store a pending record and queue the run."""
    record = await records.create_pending(
        request.repository_url,
        request.language,
        request.to_options(),
        repository_id=request.repository_id,
        repository_name=request.repository_name,
    )
    # The token rides in the broker message only; the record never holds it
    analyze_repository.delay(record["id"], request.token)
    return AnalysisRecordResponse(**record)


@router.post("/run", response_model=AnalysisResultResponse)
async def run_analysis(request: AnalysisRequest, analysis_service: AnalysisServiceDep):
    """Run an analysis synchronously and return the standardized result."""
    result = await analysis_service.run_analysis(
        request.repository_url, request.language, request.to_options()
    )
    return AnalysisResultResponse(**result.to_dict())


@router.get("/repository/{repository_id}", response_model=AnalysisListResponse)
async def list_repository_analyses(repository_id: str, records: RecordServiceDep):
    """List analyses for a repository, newest first."""
    analyses = await records.list_analyses(repository_id)
    return AnalysisListResponse(
        analyses=[AnalysisRecordResponse(**a) for a in analyses],
        total=len(analyses),
    )


@router.get("/{analysis_id}", response_model=AnalysisRecordResponse)
async def get_analysis(analysis_id: str, records: RecordServiceDep):
    try:
        record = await records.get_analysis(analysis_id)
    except RecordNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return AnalysisRecordResponse(**record)


@router.get("/{analysis_id}/warnings", response_model=WarningsResponse)
async def get_analysis_warnings(analysis_id: str, records: RecordServiceDep):
    try:
        warnings = await records.get_analysis_warnings(analysis_id)
    except RecordNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return WarningsResponse(analysis_id=analysis_id, warnings=warnings, total=len(warnings))


@router.get("/{analysis_id}/file", response_model=FileContentResponse)
async def get_analysis_file(
    analysis_id: str,
    records: RecordServiceDep,
    path: str = Query(..., min_length=1, description="Workspace-relative file path"),
):
    """Content of one analyzed file, from the stored snapshot or the repository."""
    try:
        content = await records.get_analysis_file_content(analysis_id, path)
    except RecordNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return FileContentResponse(**content)
