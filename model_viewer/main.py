from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

import httpx
import structlog
import taskiq_fastapi
from fastapi import FastAPI, File, Form, Request, UploadFile
from fastapi.responses import HTMLResponse, JSONResponse

# Internal Imports
from model_viewer.connections.html_viewer_widget import HtmlViewerWidget
from model_viewer.core.config import settings
from model_viewer.core.dependencies import create_viewer_session, get_http_client, get_translator
from model_viewer.core.exceptions import (
    AccessTokenError,
    DocumentLoadError,
    DocumentNotLoadedError,
    FileNotProvidedError,
    JobNotFoundError,
    NoViewablesError,
    TranslationTimeoutError,
    ViewerContainerError,
    ViewerError,
)
from model_viewer.core.logging import configure_logging
from model_viewer.core.taskiq import broker
from model_viewer.core.telemetry import setup_telemetry
from model_viewer.domain.models import SourceFile
from model_viewer.services.job_service import TranslationJobService

logger = structlog.get_logger()


# 1. Lifespan (Startup/Shutdown)
@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(json_logs=(settings.ENV == "production"), log_level=settings.LOG_LEVEL)
    setup_telemetry()
    logger.info("startup_initiated", env=settings.ENV)

    # Initialize global services
    app.state.job_service = TranslationJobService()
    app.state.session_factory = create_viewer_session
    app.state.translator = get_translator()

    yield

    logger.info("shutdown_initiated")
    await get_http_client().aclose()


# 2. Create Main App
app = FastAPI(title=settings.APP_NAME, lifespan=lifespan, version="1.0.0")

taskiq_fastapi.init(broker, app)  # Taskiq-FastAPI Integration


# 3. Exception Handlers
def _error(status_code: int, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": str(exc)})


@app.exception_handler(FileNotProvidedError)
async def file_not_provided_handler(request: Request, exc: FileNotProvidedError):
    return _error(400, exc)


@app.exception_handler(ViewerContainerError)
async def container_error_handler(request: Request, exc: ViewerContainerError):
    return _error(400, exc)


@app.exception_handler(JobNotFoundError)
async def job_not_found_handler(request: Request, exc: JobNotFoundError):
    return _error(404, exc)


@app.exception_handler(DocumentNotLoadedError)
async def document_not_loaded_handler(request: Request, exc: DocumentNotLoadedError):
    return _error(409, exc)


@app.exception_handler(NoViewablesError)
async def no_viewables_handler(request: Request, exc: NoViewablesError):
    return _error(422, exc)


@app.exception_handler(TranslationTimeoutError)
async def translation_timeout_handler(request: Request, exc: TranslationTimeoutError):
    return _error(504, exc)


@app.exception_handler(AccessTokenError)
async def access_token_handler(request: Request, exc: AccessTokenError):
    return _error(502, exc)


@app.exception_handler(DocumentLoadError)
async def document_load_handler(request: Request, exc: DocumentLoadError):
    return _error(502, exc)


@app.exception_handler(ViewerError)
async def viewer_error_handler(request: Request, exc: ViewerError):
    # Remaining vendor-side failures (bucket, upload, translation)
    logger.error("viewer_error", error=str(exc), path=request.url.path)
    return _error(502, exc)


@app.exception_handler(httpx.HTTPStatusError)
async def vendor_http_error_handler(request: Request, exc: httpx.HTTPStatusError):
    logger.error("vendor_request_failed", status=exc.response.status_code, url=str(exc.request.url))
    return _error(502, exc)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error("unhandled_exception", error=str(exc), path=request.url.path)
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal Server Error",
            "message": "An unexpected error occurred.",
        },
    )


# 4. REST Endpoints
@app.post("/api/v1/models")
async def load_model_endpoint(
    request: Request,
    document_id: Optional[str] = Form(default=None),
    bucket_key: Optional[str] = Form(default=None),
    file: Optional[UploadFile] = File(default=None),
) -> Dict[str, Any]:
    """
    Load a known document, or upload a file and submit its translation.
    """
    if document_id:
        session = request.app.state.session_factory()
        document = await session.load_model(document_id=document_id)
        return {
            "success": True,
            "document_id": document.document_id,
            "viewables": [node.to_dict() for node in session.viewables],
            "viewer_url": f"/viewer/{document.document_id}",
        }

    if file is None or not file.filename:
        raise FileNotProvidedError("File not provided")

    source = SourceFile(name=file.filename, content=await file.read())
    urn = await request.app.state.translator.upload(source, bucket_key)
    job_id = await request.app.state.job_service.submit_job(urn, source.extension)

    return {
        "success": True,
        "job_id": job_id,
        "status_url": f"/api/v1/jobs/{job_id}",
        "polling_interval": settings.POLLING_INTERVAL,
    }


@app.get("/api/v1/jobs/{job_id}")
async def job_status_endpoint(request: Request, job_id: str) -> Dict[str, Any]:
    """
    Check if the translation is done.
    """
    job_service: TranslationJobService = request.app.state.job_service
    status = await job_service.get_job_status(job_id)

    # If the service returns "unknown", we raise 404
    if status.status == "unknown":
        raise JobNotFoundError(f"Job {job_id} not found")

    return status.model_dump()


@app.get("/api/v1/documents/{document_id}/viewables")
async def viewables_endpoint(request: Request, document_id: str) -> Dict[str, Any]:
    session = request.app.state.session_factory()
    await session.load_model(document_id=document_id)
    return {"document_id": document_id, "viewables": [node.to_dict() for node in session.viewables]}


@app.get("/viewer/{document_id}", response_class=HTMLResponse)
async def viewer_page(request: Request, document_id: str, viewable: Optional[str] = None) -> HTMLResponse:
    """
    Page hosting the viewer widget, with the chosen (or default) viewable loaded.
    """
    session = request.app.state.session_factory()
    document = await session.load_model(document_id=document_id)

    if viewable:
        node = document.get_root().find_by_guid(viewable)
        if node is None:
            raise NoViewablesError(f"Viewable {viewable} not found in {document_id}")
        # Show only the requested viewable
        await session.load_viewable(node, keep_current_models=False)

    widget = session.widget
    if not isinstance(widget, HtmlViewerWidget):
        raise ViewerError("Viewer widget cannot be rendered as HTML")

    return HTMLResponse(widget.render())


# 5. Health Check
@app.get("/health")
def health_check():
    return {"status": "ok", "env": settings.ENV}
