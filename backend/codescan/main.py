"""FastAPI application entry point."""

import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from codescan.api.routes import analysis
from codescan.config import get_settings
from codescan.database import init_db
from codescan.errors import AnalysisError
from codescan.services.workspace_service import WorkspaceManager

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

ERROR_STATUS_CODES = {
    "validation_error": status.HTTP_400_BAD_REQUEST,
    "unsupported_language": status.HTTP_400_BAD_REQUEST,
    "path_traversal": status.HTTP_400_BAD_REQUEST,
    "invalid_ruleset_path": status.HTTP_400_BAD_REQUEST,
    "no_suitable_branch": status.HTTP_404_NOT_FOUND,
    "configuration_error": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "executable_not_found": status.HTTP_500_INTERNAL_SERVER_ERROR,
    "checkout_failed": status.HTTP_502_BAD_GATEWAY,
    "execution_failed": status.HTTP_502_BAD_GATEWAY,
    "timeout": status.HTTP_504_GATEWAY_TIMEOUT,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    await init_db()
    removed = WorkspaceManager(settings.workspace_root).cleanup_old()
    if removed:
        logger.info(f"Removed {removed} stale workspaces")
    yield
    # Shutdown


app = FastAPI(
    title="CodeScan API",
    description="Sparse-checkout static analysis with standardized results",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs" if not settings.is_production else None,
    redoc_url="/redoc" if not settings.is_production else None,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AnalysisError)
async def analysis_error_handler(request: Request, exc: AnalysisError):
    """Map analysis failures onto HTTP status codes."""
    status_code = ERROR_STATUS_CODES.get(exc.kind, status.HTTP_500_INTERNAL_SERVER_ERROR)
    body = exc.to_dict()
    if get_settings().app_debug:
        body["traceback"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    logger.warning(f"{request.method} {request.url.path} failed: {exc.kind} ({status_code})")
    return JSONResponse(status_code=status_code, content=body)


# Include routers
app.include_router(analysis.router, prefix="/api/analysis", tags=["Analysis"])


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": "0.1.0"}
