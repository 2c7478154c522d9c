"""API dependencies for dependency injection."""

from typing import Annotated

from fastapi import Depends

from codescan.config import Settings, get_settings
from codescan.database import get_session_factory
from codescan.services.analysis_service import AnalysisService
from codescan.services.record_service import AnalysisRecordService
from codescan.stores.document_store import DocumentStore, SqlDocumentStore


def get_document_store() -> DocumentStore:
    return SqlDocumentStore(get_session_factory())


def get_analysis_service(settings: Annotated[Settings, Depends(get_settings)]) -> AnalysisService:
    return AnalysisService(settings)


def get_record_service(
    store: Annotated[DocumentStore, Depends(get_document_store)],
    analysis_service: Annotated[AnalysisService, Depends(get_analysis_service)],
) -> AnalysisRecordService:
    return AnalysisRecordService(store, analysis_service)


# Type aliases for cleaner signatures
AnalysisServiceDep = Annotated[AnalysisService, Depends(get_analysis_service)]
RecordServiceDep = Annotated[AnalysisRecordService, Depends(get_record_service)]
