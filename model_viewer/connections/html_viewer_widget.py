import json
import re
from importlib import resources
from string import Template
from typing import Any, Dict, List, Optional

import structlog

from model_viewer.core.exceptions import ViewerContainerError, ViewerNotInitializedError
from model_viewer.domain.document import BubbleNode, ViewerDocument
from model_viewer.domain.interfaces import ViewerWidget

logger = structlog.get_logger()

CONTAINER_ID_PATTERN = re.compile(r"^[A-Za-z][\w-]*$")


def _script_json(value: Any) -> str:
    # Safe to inline inside <script>
    return json.dumps(value).replace("</", "<\\/")


class HtmlViewerWidget(ViewerWidget):
    """
    Server-side stand-in for Autodesk.Viewing.GuiViewer3D.
    Records which document nodes are loaded and renders the page that
    boots the real viewer in the browser. WebGL support can only be
    detected there, so start() succeeds once the container id is usable.
    """

    def __init__(
        self,
        container_id: str,
        options: Dict[str, Any],
        script_url: str,
        style_url: str,
        title: str = "Model Viewer",
    ):
        if not container_id or not CONTAINER_ID_PATTERN.match(container_id):
            raise ViewerContainerError(f"Could not find container element '{container_id}'")

        self.container_id = container_id
        self.options = options
        self.script_url = script_url
        self.style_url = style_url
        self.title = title

        self.started = False
        self.document: Optional[ViewerDocument] = None
        self.loaded_nodes: List[BubbleNode] = []

    def start(self) -> int:
        self.started = True
        return 0

    def load_document_node(
        self, document: ViewerDocument, node: BubbleNode, keep_current_models: bool = True
    ) -> None:
        if not self.started:
            raise ViewerNotInitializedError("Viewer not initialized")

        if self.document is not None and self.document.document_id != document.document_id:
            # Models from another document cannot share the page
            self.loaded_nodes = []

        if not keep_current_models:
            self.loaded_nodes = []

        self.document = document
        self.loaded_nodes.append(node)
        logger.info("viewable_loaded", document_id=document.document_id, guid=node.guid, role=node.role)

    def set_access_token(self, access_token: str, expires_in: int) -> None:
        self.options = {**self.options, "accessToken": access_token, "expiresIn": expires_in}

    def finish(self) -> None:
        self.started = False
        self.document = None
        self.loaded_nodes = []

    def render(self) -> str:
        template = Template(resources.files("model_viewer").joinpath("templates/viewer.html").read_text())

        return template.safe_substitute(
            title=self.title,
            style_url=self.style_url,
            script_url=self.script_url,
            container_id=self.container_id,
            container_id_json=_script_json(self.container_id),
            options=_script_json(self.options),
            document_id=_script_json(self.document.document_id if self.document else None),
            node_guids=_script_json([node.guid for node in self.loaded_nodes]),
        )
