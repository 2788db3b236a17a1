"""
Canvas document models
======================

pydantic models for the nodes and edges of a ``.canvas`` document, plus the
small records the converter passes around (positions, diagnostics and the
conversion result).
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import ParseError

DEFAULT_NODE_WIDTH = 300
DEFAULT_NODE_HEIGHT = 150

Side = Literal["top", "bottom", "left", "right"]
EdgeEnd = Literal["none", "arrow"]


class _CanvasModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class NodeStyle(_CanvasModel):
    backgroundColor: Optional[str] = None
    fill: Optional[str] = None
    borderColor: Optional[str] = None
    stroke: Optional[str] = None


class CanvasNode(_CanvasModel):
    id: str
    type: str
    x: float = 0
    y: float = 0
    width: float = DEFAULT_NODE_WIDTH
    height: float = DEFAULT_NODE_HEIGHT


class TextNode(CanvasNode):
    type: Literal["text"] = "text"
    text: str = ""
    style: Optional[NodeStyle] = None


class FileNode(CanvasNode):
    type: Literal["file"] = "file"
    file: str = Field(description="Vault-relative path of the embedded file")


class GroupNode(CanvasNode):
    type: Literal["group"] = "group"
    label: Optional[str] = None


SourceNode = Union[TextNode, FileNode, GroupNode]

NODE_MODELS = {
    "text": TextNode,
    "file": FileNode,
    "group": GroupNode,
}


class CanvasEdge(_CanvasModel):
    id: str
    fromNode: str
    toNode: str
    fromSide: Optional[Side] = None
    toSide: Optional[Side] = None
    fromEnd: EdgeEnd = "none"
    toEnd: EdgeEnd = "arrow"
    label: Optional[str] = None


class _RawCanvas(_CanvasModel):
    nodes: List[Dict[str, Any]]
    edges: List[Dict[str, Any]]


@dataclass
class Diagnostic:
    """A non-fatal problem met while converting one node or edge."""

    kind: str
    item_id: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"kind": self.kind, "item_id": self.item_id, "message": self.message}


@dataclass
class Canvas:
    """A parsed canvas: typed nodes and edges, plus the items left out."""

    nodes: List[SourceNode]
    edges: List[CanvasEdge]
    unsupported: List[Dict[str, Any]] = field(default_factory=list)
    rejected: List[Diagnostic] = field(default_factory=list)


@dataclass
class PositionRecord:
    x: float
    y: float
    width: float
    height: float

    @property
    def center(self) -> Tuple[float, float]:
        return self.x + self.width / 2, self.y + self.height / 2


@dataclass
class ConversionResult:
    document: Dict[str, Any]
    diagnostics: List[Diagnostic] = field(default_factory=list)


def _describe(error: ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first["loc"])
    return f"{location}: {first['msg']}" if location else first["msg"]


def _item_id(raw: Dict[str, Any]) -> str:
    return str(raw.get("id", "<unknown>"))


def parse_canvas(content: str) -> Canvas:
    """Parse canvas JSON text.

    Raises ParseError for invalid JSON and for missing ``nodes``/``edges``
    lists. A node or edge with malformed fields is left out and recorded in
    ``rejected``; nodes of a type the converter does not handle are kept
    aside in ``unsupported``.
    """
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise ParseError(f"Invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ParseError("Canvas document must be a JSON object")

    try:
        raw = _RawCanvas.model_validate(data)
    except ValidationError as e:
        raise ParseError(f"Invalid canvas document: {_describe(e)}") from e

    nodes: List[SourceNode] = []
    unsupported = []
    rejected = []
    for raw_node in raw.nodes:
        model = NODE_MODELS.get(raw_node.get("type"))
        if model is None:
            unsupported.append(raw_node)
            continue
        try:
            nodes.append(model.model_validate(raw_node))
        except ValidationError as e:
            rejected.append(Diagnostic("invalid_node", _item_id(raw_node), f"Skipped node: {_describe(e)}"))

    edges = []
    for raw_edge in raw.edges:
        try:
            edges.append(CanvasEdge.model_validate(raw_edge))
        except ValidationError as e:
            rejected.append(Diagnostic("invalid_edge", _item_id(raw_edge), f"Skipped edge: {_describe(e)}"))

    return Canvas(nodes=nodes, edges=edges, unsupported=unsupported, rejected=rejected)
