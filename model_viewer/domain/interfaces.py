from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, Optional

from model_viewer.domain.document import BubbleNode, ViewerDocument
from model_viewer.domain.models import (
    AccessToken,
    BucketResult,
    Manifest,
    SourceFile,
    TranslateJobResult,
    UploadedObject,
    UploadSignedData,
)

# Resolves to a bearer token, e.g. TokenService.get_token
TokenProvider = Callable[[], Awaitable[str]]


class Authenticator(ABC):
    @abstractmethod
    async def get_access_token(self) -> AccessToken:
        """Exchanges client credentials for a fresh two-legged token"""
        pass


class KeyValueStore(ABC):
    """Client-side string storage (the localStorage of this service)."""

    @abstractmethod
    async def get_item(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    async def set_item(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    async def remove_item(self, key: str) -> None:
        pass


class ObjectStorage(ABC):
    @abstractmethod
    async def create_bucket(self, bucket_key: str) -> BucketResult:
        """Creates a bucket. An existing bucket is reported as BucketOutcome.ALREADY_EXISTS"""
        pass

    @abstractmethod
    async def get_upload_signed_data(self, bucket_key: str, file_name: str) -> UploadSignedData:
        """Returns a single-use signed URL and upload key for one file"""
        pass

    @abstractmethod
    async def upload_file(
        self, signed_url: str, bucket_key: str, upload_key: str, file: SourceFile
    ) -> UploadedObject:
        """PUTs the bytes to the signed URL and finalizes the upload"""
        pass


class DerivativeService(ABC):
    @abstractmethod
    async def start_translate_job(self, urn: str, file_extension: str) -> TranslateJobResult:
        pass

    @abstractmethod
    async def get_manifest(self, urn: str) -> Manifest:
        """Returns job status/progress and the derivative tree"""
        pass


class ViewerWidget(ABC):
    """
    The vendor viewer, seen from the session.
    start() returns 0 on success; any positive code means the
    viewer could not be created (WebGL not supported).
    """

    @abstractmethod
    def start(self) -> int:
        pass

    @abstractmethod
    def load_document_node(
        self, document: ViewerDocument, node: BubbleNode, keep_current_models: bool = True
    ) -> None:
        pass

    @abstractmethod
    def set_access_token(self, access_token: str, expires_in: int) -> None:
        """Replaces the token the viewer streams derivatives with"""
        pass

    @abstractmethod
    def finish(self) -> None:
        pass


# container id, options -> widget
WidgetFactory = Callable[[str, Dict[str, Any]], ViewerWidget]
