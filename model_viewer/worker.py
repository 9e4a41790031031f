import structlog
from taskiq import TaskiqDepends

from model_viewer.core.dependencies import get_translator
from model_viewer.core.taskiq import broker
from model_viewer.domain.document import ViewerDocument, urn_to_document_id
from model_viewer.services.model_translator import ModelTranslator

logger = structlog.get_logger()


@broker.task(task_name="translate_model")
async def translate_model_task(
    urn: str,
    file_extension: str,
    job_id: str,
    translator: ModelTranslator = TaskiqDepends(get_translator),
) -> dict:
    """
    Starts the translation of an uploaded object and waits for it.
    Runs the same way on the in-memory (local) and Redis (production) brokers.
    """
    logger.info("worker_task_started", job_id=job_id, urn=urn)

    try:
        manifest = await translator.translate(urn, file_extension)
    except Exception as e:
        logger.error("worker_task_crashed", job_id=job_id, error=str(e))
        # Re-raising lets Taskiq store the error in the result backend
        raise e

    document = ViewerDocument(urn_to_document_id(urn), manifest)
    viewables = [node.to_dict() for node in document.get_root().search(type="geometry")]

    logger.info("worker_task_success", job_id=job_id, document_id=document.document_id, viewables=len(viewables))
    return {"status": "success", "document_id": document.document_id, "viewables": viewables}
