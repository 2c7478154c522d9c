"""Background analysis task."""

import asyncio
import logging

from codescan.celery_app import celery_app
from codescan.config import get_settings
from codescan.database import create_engine_for, create_session_factory
from codescan.services.analysis_service import AnalysisService
from codescan.services.record_service import AnalysisRecordService
from codescan.stores.document_store import SqlDocumentStore

logger = logging.getLogger(__name__)


async def analyze_repository_async(analysis_id: str, token: str | None = None) -> dict:
    settings = get_settings()
    # asyncio.run gives each task its own loop, so the engine cannot be shared
    engine = create_engine_for(settings.database_url)
    try:
        records = AnalysisRecordService(
            SqlDocumentStore(create_session_factory(engine)),
            AnalysisService(settings),
        )
        return await records.complete(analysis_id, token=token)
    finally:
        await engine.dispose()


@celery_app.task(max_retries=0)
def analyze_repository(analysis_id: str, token: str | None = None) -> dict:
    """Celery task entrypoint for analyses."""
    record = asyncio.run(analyze_repository_async(analysis_id, token))
    logger.info("Analysis task %s finished with status %s", analysis_id, record["status"])
    return {"analysis_id": analysis_id, "status": record["status"]}
