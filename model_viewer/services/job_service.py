from uuid import uuid4

import structlog
from taskiq import TaskiqResult

from model_viewer.core.taskiq import broker
from model_viewer.domain.models import JobStatus

# Import the task definition directly
from model_viewer.worker import translate_model_task

logger = structlog.get_logger()


class TranslationJobService:
    """
    Dispatches translation jobs and reports their status.
    Works the same for Local (Memory) and Production (Redis) modes
    because the 'broker' handles the infrastructure abstraction.
    """

    async def submit_job(self, urn: str, file_extension: str) -> str:
        """
        Dispatches the translation of an uploaded object to the broker.
        """
        job_id = str(uuid4())

        # task_id=job_id so the status endpoint can look it up directly
        task = (
            await translate_model_task.kicker()
            .with_task_id(job_id)
            .kiq(urn=urn, file_extension=file_extension, job_id=job_id)
        )

        logger.info(
            "job_dispatched",
            job_id=job_id,
            task_id=task.task_id,
            provider=broker.__class__.__name__,  # Logs "InMemoryBroker" or "ListQueueBroker"
        )

        return job_id

    async def get_job_status(self, job_id: str) -> JobStatus:
        """
        Checks the status of a job using the Taskiq Result Backend.
        """
        try:
            if not await broker.result_backend.is_result_ready(job_id):
                return JobStatus(job_id=job_id, status="processing")

            result: TaskiqResult = await broker.result_backend.get_result(job_id)
        except Exception as e:
            logger.error("status_check_failed", job_id=job_id, error=str(e))
            return JobStatus(job_id=job_id, status="unknown")

        if result.is_err:
            return JobStatus(job_id=job_id, status="failed", error=str(result.error))

        value = result.return_value or {}
        return JobStatus(
            job_id=job_id,
            status="completed",
            document_id=value.get("document_id"),
            viewables=value.get("viewables", []),
        )
