from typing import Any, Dict, Iterator, List, Optional

from model_viewer.domain.models import Manifest

URN_PREFIX = "urn:"


def document_id_to_urn(document_id: str) -> str:
    """'urn:<base64>' -> '<base64>'"""
    if document_id.startswith(URN_PREFIX):
        return document_id[len(URN_PREFIX) :]
    return document_id


def urn_to_document_id(urn: str) -> str:
    return urn if urn.startswith(URN_PREFIX) else URN_PREFIX + urn


class BubbleNode:
    """
    One node of the manifest derivative tree ("bubble").
    Geometry nodes are the viewables handed to the widget.
    """

    def __init__(self, data: Dict[str, Any], parent: Optional["BubbleNode"] = None):
        self.data = data
        self.parent = parent
        self.children = [BubbleNode(child, self) for child in data.get("children", [])]

    @property
    def guid(self) -> Optional[str]:
        return self.data.get("guid")

    @property
    def type(self) -> Optional[str]:
        return self.data.get("type")

    @property
    def role(self) -> Optional[str]:
        return self.data.get("role")

    @property
    def name(self) -> Optional[str]:
        return self.data.get("name")

    @property
    def is_geometry(self) -> bool:
        return self.type == "geometry"

    def walk(self) -> Iterator["BubbleNode"]:
        """Depth-first, self included."""
        yield self
        for child in self.children:
            yield from child.walk()

    def search(self, type: Optional[str] = None, role: Optional[str] = None) -> List["BubbleNode"]:
        return [
            node
            for node in self.walk()
            if (type is None or node.type == type) and (role is None or node.role == role)
        ]

    def find_by_guid(self, guid: str) -> Optional["BubbleNode"]:
        for node in self.walk():
            if node.guid == guid:
                return node
        return None

    def get_default_geometry(self) -> Optional["BubbleNode"]:
        """
        Picks the node flagged useAsDefault, else the first 3D geometry,
        else the first geometry of any role.
        """
        geometries = self.search(type="geometry")
        if not geometries:
            return None

        for node in geometries:
            if node.data.get("useAsDefault"):
                return node

        for node in geometries:
            if node.role == "3d":
                return node

        return geometries[0]

    def to_dict(self) -> Dict[str, Any]:
        return {"guid": self.guid, "name": self.name, "role": self.role, "type": self.type}

    def __repr__(self) -> str:
        return f"BubbleNode(type={self.type!r}, role={self.role!r}, guid={self.guid!r})"


class ViewerDocument:
    """
    Document behind a document id, built from its manifest.
    """

    def __init__(self, document_id: str, manifest: Manifest):
        self.document_id = urn_to_document_id(document_id)
        self.urn = document_id_to_urn(document_id)
        self.manifest = manifest
        self._root = BubbleNode({"type": "folder", "role": "viewable", "children": manifest.derivatives})

    def get_root(self) -> BubbleNode:
        return self._root
