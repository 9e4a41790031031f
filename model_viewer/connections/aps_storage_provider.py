from urllib.parse import quote

import httpx
import structlog

from model_viewer.connections.aps_connection import APSConnection
from model_viewer.core.config import Settings
from model_viewer.core.exceptions import UploadError
from model_viewer.domain.interfaces import ObjectStorage, TokenProvider
from model_viewer.domain.models import (
    BucketOutcome,
    BucketResult,
    SourceFile,
    UploadedObject,
    UploadSignedData,
)

logger = structlog.get_logger()


class APSObjectStorage(APSConnection, ObjectStorage):
    """
    APS Object Storage Service (OSS v2): buckets and signed S3 uploads.
    """

    def __init__(self, client: httpx.AsyncClient, token_provider: TokenProvider, settings: Settings):
        super().__init__(client, token_provider)
        self.region = settings.APS_REGION
        self.policy_key = settings.BUCKET_POLICY_KEY
        self.signed_url_minutes = settings.SIGNED_URL_MINUTES

    @staticmethod
    def _object_path(bucket_key: str, file_name: str) -> str:
        return f"/oss/v2/buckets/{quote(bucket_key, safe='')}/objects/{quote(file_name, safe='')}/signeds3upload"

    async def create_bucket(self, bucket_key: str) -> BucketResult:
        headers = await self._auth_headers()
        headers["x-ads-region"] = self.region

        resp = await self.client.post(
            "/oss/v2/buckets",
            json={"bucketKey": bucket_key, "policyKey": self.policy_key, "access": "full"},
            headers=headers,
        )

        # 409 Conflict: "Bucket already exists". The caller owns it, so reuse it.
        if resp.status_code == httpx.codes.CONFLICT:
            logger.info("bucket_already_exists", bucket_key=bucket_key)
            return BucketResult(bucket_key=bucket_key, outcome=BucketOutcome.ALREADY_EXISTS)

        resp.raise_for_status()

        result = BucketResult.model_validate(resp.json())
        logger.info("bucket_created", bucket_key=result.bucket_key)
        return result

    async def get_upload_signed_data(self, bucket_key: str, file_name: str) -> UploadSignedData:
        resp = await self.client.get(
            self._object_path(bucket_key, file_name),
            params={"minutesExpiration": self.signed_url_minutes},
            headers=await self._auth_headers(),
        )
        resp.raise_for_status()

        return UploadSignedData.model_validate(resp.json())

    async def upload_file(
        self, signed_url: str, bucket_key: str, upload_key: str, file: SourceFile
    ) -> UploadedObject:
        # 1. Raw bytes go straight to S3; the signed URL carries its own auth
        logger.info("uploading_to_signed_url", bucket_key=bucket_key, file_name=file.name, size_bytes=len(file.content))

        put = await self.client.put(
            signed_url,
            content=file.content,
            headers={"Content-Type": "application/octet-stream"},
        )
        put.raise_for_status()

        # 2. Tell OSS the upload is done, which creates the object
        resp = await self.client.post(
            self._object_path(bucket_key, file.name),
            json={
                "ossbucketKey": bucket_key,
                "ossSourceFileObjectKey": file.name,
                "access": "full",
                "uploadKey": upload_key,
            },
            headers=await self._auth_headers(),
        )
        resp.raise_for_status()

        uploaded = UploadedObject.model_validate(resp.json())
        if not uploaded.object_id:
            raise UploadError(f"Upload of {file.name} was not finalized: no objectId returned")

        return uploaded
