import asyncio
import base64
from typing import Optional

import structlog

from model_viewer.core.exceptions import (
    BucketCreationError,
    FileNotProvidedError,
    TranslationJobError,
    UploadError,
)
from model_viewer.core.telemetry import tracer
from model_viewer.domain.document import urn_to_document_id
from model_viewer.domain.interfaces import DerivativeService, ObjectStorage
from model_viewer.domain.models import BucketOutcome, Manifest, SourceFile
from model_viewer.services.translation_poller import PollPolicy, await_translate_job

logger = structlog.get_logger()

# "created" for a new job, "success" when the service reports it as done
ACCEPTED_JOB_RESULTS = {"success", "created"}


def object_id_to_urn(object_id: str) -> str:
    """The translation input URN is the URL-safe base64 of the OSS object id."""
    return base64.urlsafe_b64encode(object_id.encode()).decode().rstrip("=")


class ModelTranslator:
    """
    Gets a source file from disk bytes to a viewable document id:
    bucket -> signed upload -> translation job -> poll.
    """

    def __init__(
        self,
        storage: ObjectStorage,
        derivative: DerivativeService,
        default_bucket_key: str,
        poll_policy: Optional[PollPolicy] = None,
    ):
        self.storage = storage
        self.derivative = derivative
        self.default_bucket_key = default_bucket_key
        self.poll_policy = poll_policy or PollPolicy()

    async def create_bucket(self) -> str:
        result = await self.storage.create_bucket(self.default_bucket_key)

        if result.outcome is BucketOutcome.ALREADY_EXISTS:
            return self.default_bucket_key

        if not result.bucket_key:
            raise BucketCreationError("Could not create bucket")

        return result.bucket_key

    async def upload(self, file: SourceFile, bucket_key: Optional[str] = None) -> str:
        """Uploads the file and returns its translation URN."""
        if not file:
            raise FileNotProvidedError("File not provided")

        with tracer.start_as_current_span("upload_source"):
            if not bucket_key:
                # No bucket yet for this caller, so create the default one
                bucket_key = await self.create_bucket()

            signed = await self.storage.get_upload_signed_data(bucket_key, file.name)
            if not signed.signed_url:
                raise UploadError(f"No signed URL returned for {file.name}")

            uploaded = await self.storage.upload_file(signed.signed_url, bucket_key, signed.upload_key, file)

        urn = object_id_to_urn(uploaded.object_id)
        logger.info("source_uploaded", bucket_key=bucket_key, object_id=uploaded.object_id, urn=urn)
        return urn

    async def start_translation(self, urn: str, file_extension: str) -> None:
        job = await self.derivative.start_translate_job(urn, file_extension)

        if job.result not in ACCEPTED_JOB_RESULTS:
            raise TranslationJobError(f"Could not start translate job (result: {job.result!r})")

    async def translate(
        self, urn: str, file_extension: str, cancel_event: Optional[asyncio.Event] = None
    ) -> Manifest:
        """Starts the job and waits for it to finish."""
        with tracer.start_as_current_span("translate", attributes={"urn": urn, "extension": file_extension}):
            await self.start_translation(urn, file_extension)
            return await await_translate_job(self.derivative, urn, self.poll_policy, cancel_event)

    async def translate_document(
        self,
        file: SourceFile,
        bucket_key: Optional[str] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> str:
        """Full pipeline. Returns the document id ("urn:<urn>") for the viewer."""
        urn = await self.upload(file, bucket_key)
        await self.translate(urn, file.extension, cancel_event)
        return urn_to_document_id(urn)
