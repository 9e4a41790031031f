import asyncio
from typing import Optional

import httpx
import structlog

from model_viewer.core.config import Settings
from model_viewer.core.exceptions import (
    DocumentLoadError,
    DocumentNotLoadedError,
    FileNotProvidedError,
    NoViewablesError,
    ViewerContainerError,
    ViewerNotInitializedError,
    WebGLUnavailableError,
)
from model_viewer.core.telemetry import tracer
from model_viewer.domain.document import BubbleNode, ViewerDocument, document_id_to_urn
from model_viewer.domain.interfaces import DerivativeService, ViewerWidget, WidgetFactory
from model_viewer.domain.models import SourceFile
from model_viewer.domain.viewables import ViewableCollection
from model_viewer.services.model_translator import ModelTranslator
from model_viewer.services.token_service import TokenService

logger = structlog.get_logger()


class ViewerSession:
    """
    One viewer instance and the document loaded into it.
    Owned by the caller; create one per page/container.
    """

    def __init__(
        self,
        container_id: str,
        tokens: TokenService,
        translator: ModelTranslator,
        derivative: DerivativeService,
        widget_factory: WidgetFactory,
        settings: Settings,
    ):
        self.container_id = container_id
        self.tokens = tokens
        self.translator = translator
        self.derivative = derivative
        self.widget_factory = widget_factory
        self.settings = settings

        self.widget: Optional[ViewerWidget] = None
        self.document: Optional[ViewerDocument] = None
        self.viewables = ViewableCollection()

    async def init_viewer(self) -> ViewerWidget:
        if not self.container_id:
            raise ViewerContainerError("Could not find container element")

        with tracer.start_as_current_span("init_viewer"):
            token = await self.tokens.get_access_token()

            # Options documented for SVF2 streaming
            options = {
                "env": self.settings.VIEWER_ENV,
                "api": self.settings.VIEWER_API,
                "accessToken": token.access_token,
                "expiresIn": token.expires_in,
            }

            widget = self.widget_factory(self.container_id, options)
            started_code = widget.start()

            if started_code > 0:
                logger.error("viewer_start_failed", code=started_code, container_id=self.container_id)
                widget.finish()
                raise WebGLUnavailableError("Failed to create a Viewer: WebGL not supported.")

        self.widget = widget
        logger.info("viewer_initialized", container_id=self.container_id)
        return widget

    async def refresh_access(self) -> None:
        """Hands the running viewer a current token."""
        if self.widget is None:
            raise ViewerNotInitializedError("Viewer not initialized")

        token = await self.tokens.get_access_token()
        self.widget.set_access_token(token.access_token, token.expires_in)

    async def load_model(
        self,
        document_id: Optional[str] = None,
        file: Optional[SourceFile] = None,
        bucket_key: Optional[str] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> ViewerDocument:
        """
        Loads a model from a known document id, or uploads and translates
        the file first when no document id is given.
        """
        if not document_id and not file:
            raise FileNotProvidedError("File not provided")

        if self.widget is None:
            await self.init_viewer()
        else:
            await self.refresh_access()

        if not document_id:
            document_id = await self.translator.translate_document(file, bucket_key, cancel_event)  # type: ignore[arg-type]

        return await self.load_document(document_id)

    async def load_document(self, document_id: str) -> ViewerDocument:
        with tracer.start_as_current_span("load_document", attributes={"document_id": document_id}):
            try:
                manifest = await self.derivative.get_manifest(document_id_to_urn(document_id))
            except httpx.HTTPError as e:
                logger.error("manifest_fetch_failed", document_id=document_id, error=str(e))
                raise DocumentLoadError(f"Failed fetching manifest for {document_id}", original_error=e)

        document = ViewerDocument(document_id, manifest)
        root = document.get_root()

        geometries = root.search(type="geometry")
        if not geometries:
            raise NoViewablesError("Document has no viewables")

        self.document = document
        self.viewables.replace(geometries)

        default_model = root.get_default_geometry()
        await self.load_viewable(default_model)  # type: ignore[arg-type]
        return document

    async def load_viewable(self, viewable: BubbleNode, keep_current_models: bool = True) -> None:
        if self.widget is None:
            await self.init_viewer()

        if self.document is None:
            raise DocumentNotLoadedError("Document not loaded")

        if self.widget is None:
            raise ViewerNotInitializedError("Viewer not initialized")

        logger.debug("loading_viewable", guid=viewable.guid, name=viewable.name)
        self.widget.load_document_node(self.document, viewable, keep_current_models=keep_current_models)

    def close(self) -> None:
        if self.widget is not None:
            self.widget.finish()
            self.widget = None
        self.document = None
        self.viewables.clear()
