"""
Canvas to Excalidraw Conversion
===============================

Turns a parsed canvas into an Excalidraw scene in three passes:

1. nodes: text, file and group nodes become elements; each node's box is
   recorded for edge anchoring
2. edges: arrows anchored on node sides, bound in both directions
3. frames: elements fully inside a group frame are assigned to it

File nodes are the only ones needing I/O; their binaries are read
concurrently before pass 1 builds elements in document order.
"""

import asyncio
import json
import logging
import random
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .errors import StorageError
from .logger import get_logger
from .mime import sniff_mime_type, to_data_url
from .models import (
    Canvas,
    CanvasEdge,
    ConversionResult,
    Diagnostic,
    FileNode,
    GroupNode,
    NodeStyle,
    PositionRecord,
    SourceNode,
    TextNode,
    parse_canvas,
)
from .text_wrap import estimate_width, wrap_text

LOGGER = get_logger(__name__)

# Text layout
PADDING = 30
FONT_SIZE = 16
LINE_HEIGHT = 20

DEFAULT_BACKGROUND = "transparent"
DEFAULT_STROKE = "#000000"

BORDER_SUFFIX = "-border"
LABEL_SUFFIX = "-label"

CANVAS_SUFFIX = ".canvas"
EXCALIDRAW_SUFFIX = ".excalidraw"

EXCALIDRAW_VERSION = 2
SOURCE_TAG = "mcp-canvas-tools"

APP_STATE = {
    "gridSize": None,
    "viewBackgroundColor": "#ffffff",
    "currentItemStrokeColor": "#000000",
    "currentItemBackgroundColor": "#ffffff",
}

# Fraction of the box width/height at which each side is anchored
FIXED_POINTS = {
    "top": (0.5, 0.0),
    "bottom": (0.5, 1.0),
    "left": (0.0, 0.5),
    "right": (1.0, 0.5),
}


@dataclass
class ConversionContext:
    """Mutable state of a single conversion call."""

    rng: random.Random
    timestamp: int
    elements: List[dict] = field(default_factory=list)
    element_index: Dict[str, dict] = field(default_factory=dict)
    files: Dict[str, dict] = field(default_factory=dict)
    positions: Dict[str, PositionRecord] = field(default_factory=dict)
    diagnostics: List[Diagnostic] = field(default_factory=list)

    @classmethod
    def create(cls, rng: Optional[random.Random] = None, timestamp: Optional[int] = None) -> "ConversionContext":
        return cls(
            rng=rng if rng is not None else random.Random(),
            timestamp=timestamp if timestamp is not None else int(time.time() * 1000),
        )

    def add(self, element: dict) -> dict:
        self.elements.append(element)
        self.element_index[element["id"]] = element
        return element

    def report(self, kind: str, item_id: str, message: str, level: int = logging.WARNING) -> None:
        LOGGER.log(level, "%s (%s): %s", kind, item_id, message)
        self.diagnostics.append(Diagnostic(kind=kind, item_id=item_id, message=message))


def _base_element(
    context: ConversionContext,
    element_type: str,
    element_id: str,
    x: float,
    y: float,
    width: float,
    height: float,
    **properties: Any,
) -> dict:
    element = {
        "id": element_id,
        "type": element_type,
        "x": x,
        "y": y,
        "width": width,
        "height": height,
        "strokeColor": DEFAULT_STROKE,
        "backgroundColor": DEFAULT_BACKGROUND,
        "fillStyle": "solid",
        "strokeWidth": 1,
        "strokeStyle": "solid",
        "roughness": 1,
        "opacity": 100,
        "angle": 0,
        "seed": context.rng.randint(1, 999999999),
        "version": 1,
        "versionNonce": context.rng.randint(1, 999999999),
        "isDeleted": False,
        "groupIds": [],
        "frameId": None,
        "roundness": None,
        "boundElements": [],
        "updated": context.timestamp,
        "link": None,
        "locked": False,
    }
    element.update(properties)
    return element


# ============================================================================
# Nodes
# ============================================================================

def _convert_text_node(context: ConversionContext, node: TextNode) -> Tuple[List[dict], PositionRecord]:
    max_line_width = node.width - PADDING * 2
    lines = wrap_text(node.text, max_line_width, FONT_SIZE)
    text_height = len(lines) * LINE_HEIGHT

    # Height follows the wrapped text, not the canvas box
    box = PositionRecord(x=node.x, y=node.y, width=node.width, height=text_height + PADDING * 2)

    style = node.style or NodeStyle()
    border_id = f"{node.id}{BORDER_SUFFIX}"

    border = _base_element(
        context, "rectangle", border_id,
        box.x, box.y, box.width, box.height,
        strokeColor=style.borderColor or style.stroke or DEFAULT_STROKE,
        backgroundColor=style.backgroundColor or style.fill or DEFAULT_BACKGROUND,
        strokeWidth=2,
        boundElements=[{"id": node.id, "type": "text"}],
    )
    text = _base_element(
        context, "text", node.id,
        node.x + PADDING, node.y + PADDING, node.width - PADDING * 2, text_height,
        text="\n".join(lines),
        originalText=node.text,
        fontSize=FONT_SIZE,
        fontFamily=1,
        textAlign="center",
        verticalAlign="middle",
        containerId=border_id,
        autoResize=True,
        lineHeight=LINE_HEIGHT / FONT_SIZE,
    )
    return [border, text], box


def _convert_file_node(context: ConversionContext, node: FileNode, data: bytes) -> Tuple[List[dict], PositionRecord]:
    mime_type = sniff_mime_type(data)
    if mime_type is None:
        context.report(
            "unknown_mime_type", node.id,
            f"Unrecognised signature in {node.file}; embedded without a MIME type",
            level=logging.INFO,
        )

    context.files[node.id] = {
        "mimeType": mime_type,
        "id": node.id,
        "dataURL": to_data_url(data, mime_type),
        "created": context.timestamp,
        "lastRetrieved": context.timestamp,
    }

    box = PositionRecord(x=node.x, y=node.y, width=node.width, height=node.height)
    image = _base_element(
        context, "image", node.id,
        box.x, box.y, box.width, box.height,
        strokeColor="transparent",
        fileId=node.id,
        status="saved",
        scale=[1, 1],
    )
    return [image], box


def _convert_group_node(context: ConversionContext, node: GroupNode) -> Tuple[List[dict], PositionRecord]:
    box = PositionRecord(x=node.x, y=node.y, width=node.width, height=node.height)
    frame = _base_element(
        context, "frame", node.id,
        box.x, box.y, box.width, box.height,
        strokeWidth=2,
        roughness=0,
        name=node.label,
    )
    return [frame], box


def convert_node(
    context: ConversionContext, node: SourceNode, data: Optional[bytes] = None
) -> Tuple[List[dict], PositionRecord]:
    """Convert one canvas node, appending its elements and recording its box.

    ``data`` is the already-read binary content of a file node.
    """
    if isinstance(node, TextNode):
        elements, box = _convert_text_node(context, node)
    elif isinstance(node, FileNode):
        if data is None:
            raise ValueError(f"File node {node.id!r} converted without its content")
        elements, box = _convert_file_node(context, node, data)
    elif isinstance(node, GroupNode):
        elements, box = _convert_group_node(context, node)
    else:
        raise TypeError(f"Unsupported node model: {type(node).__name__}")

    for element in elements:
        context.add(element)
    context.positions[node.id] = box
    return elements, box


async def _read_assets(context: ConversionContext, storage, nodes: List[FileNode]) -> Dict[str, bytes]:
    results = await asyncio.gather(
        *(storage.read_binary(node.file) for node in nodes),
        return_exceptions=True,
    )

    payloads = {}
    for node, result in zip(nodes, results):
        if isinstance(result, (StorageError, ValueError)):
            context.report("asset_unreadable", node.id, f"Skipped file node: {result}")
            continue
        if isinstance(result, BaseException):
            raise result
        payloads[node.id] = result
    return payloads


# ============================================================================
# Edges
# ============================================================================

def anchor(box: PositionRecord, side: str) -> Tuple[Tuple[float, float], Tuple[float, float]]:
    """Return the absolute point on a box side and its relative fixed point."""
    rel_x, rel_y = FIXED_POINTS[side]
    point = (box.x + box.width * rel_x, box.y + box.height * rel_y)
    return point, (rel_x, rel_y)


def _auto_sides(source: PositionRecord, target: PositionRecord) -> Tuple[str, str]:
    """Pick attachment sides from the direction between box centers."""
    src_cx, src_cy = source.center
    tgt_cx, tgt_cy = target.center
    dx = tgt_cx - src_cx
    dy = tgt_cy - src_cy

    if abs(dx) > abs(dy):
        return ("right", "left") if dx > 0 else ("left", "right")
    return ("bottom", "top") if dy > 0 else ("top", "bottom")


def binding_id(context: ConversionContext, node_id: str) -> str:
    """Arrows bind to the border of a text node, otherwise to the element itself."""
    element = context.element_index.get(node_id)
    if element is not None and element["type"] == "text":
        return f"{node_id}{BORDER_SUFFIX}"
    return node_id


def _edge_label(context: ConversionContext, edge: CanvasEdge, arrow: dict) -> dict:
    end_dx, end_dy = arrow["points"][-1]
    mid_x = arrow["x"] + end_dx / 2
    mid_y = arrow["y"] + end_dy / 2

    lines = edge.label.split("\n")
    width = max(estimate_width(line, FONT_SIZE) for line in lines)
    height = len(lines) * LINE_HEIGHT

    return _base_element(
        context, "text", f"{edge.id}{LABEL_SUFFIX}",
        mid_x - width / 2, mid_y - height / 2, width, height,
        text=edge.label,
        originalText=edge.label,
        fontSize=FONT_SIZE,
        fontFamily=1,
        textAlign="center",
        verticalAlign="middle",
        containerId=edge.id,
        autoResize=True,
        lineHeight=LINE_HEIGHT / FONT_SIZE,
    )


def convert_edge(context: ConversionContext, edge: CanvasEdge) -> Optional[dict]:
    """Convert one canvas edge into an arrow bound to both endpoint elements.

    Returns None, recording a diagnostic, when either endpoint has no
    recorded position.
    """
    source = context.positions.get(edge.fromNode)
    target = context.positions.get(edge.toNode)
    if source is None or target is None:
        missing = edge.fromNode if source is None else edge.toNode
        context.report("unresolved_reference", edge.id, f"Edge endpoint {missing!r} has no converted node")
        return None

    auto_start, auto_end = _auto_sides(source, target)
    (start_x, start_y), start_fixed = anchor(source, edge.fromSide or auto_start)
    (end_x, end_y), end_fixed = anchor(target, edge.toSide or auto_end)

    start_id = binding_id(context, edge.fromNode)
    end_id = binding_id(context, edge.toNode)

    end_dx = end_x - start_x
    end_dy = end_y - start_y

    arrow = _base_element(
        context, "arrow", edge.id,
        start_x, start_y, abs(end_dx), abs(end_dy),
        strokeWidth=2,
        points=[[0, 0], [end_dx, end_dy]],
        startBinding={"elementId": start_id, "mode": "inside", "fixedPoint": list(start_fixed)},
        endBinding={"elementId": end_id, "mode": "inside", "fixedPoint": list(end_fixed)},
        startArrowhead="arrow" if edge.fromEnd == "arrow" else None,
        endArrowhead="arrow" if edge.toEnd == "arrow" else None,
        elbowed=False,
    )
    context.add(arrow)

    for bound_id in {start_id, end_id}:
        bound = context.element_index[bound_id]
        if bound.get("boundElements") is None:
            bound["boundElements"] = []
        bound["boundElements"].append({"id": edge.id, "type": "arrow"})

    if edge.label:
        label = context.add(_edge_label(context, edge, arrow))
        arrow["boundElements"].append({"id": label["id"], "type": "text"})

    return arrow


# ============================================================================
# Frames
# ============================================================================

def _bounds(element: dict) -> Tuple[float, float, float, float]:
    x = element["x"]
    y = element["y"]
    points = element.get("points")
    if points:
        xs = [x + px for px, _ in points]
        ys = [y + py for _, py in points]
        return min(xs), min(ys), max(xs), max(ys)
    return x, y, x + element["width"], y + element["height"]


def contains(outer: dict, inner: dict) -> bool:
    """True when inner lies fully inside outer; touching edges count as inside."""
    outer_left, outer_top, outer_right, outer_bottom = _bounds(outer)
    inner_left, inner_top, inner_right, inner_bottom = _bounds(inner)
    return (
        inner_left >= outer_left
        and inner_top >= outer_top
        and inner_right <= outer_right
        and inner_bottom <= outer_bottom
    )


def resolve_frames(elements: List[dict]) -> None:
    """Assign every non-frame element to the frames that contain it.

    When frames overlap, the frame processed last wins.
    """
    frames = [element for element in elements if element["type"] == "frame"]
    for frame in frames:
        for element in elements:
            if element["type"] == "frame":
                continue
            if contains(frame, element):
                element["frameId"] = frame["id"]


# ============================================================================
# Assembly
# ============================================================================

def assemble(elements: List[dict], files: Dict[str, dict]) -> dict:
    """Wrap elements and embedded files into an Excalidraw document."""
    return {
        "type": "excalidraw",
        "version": EXCALIDRAW_VERSION,
        "source": SOURCE_TAG,
        "elements": elements,
        "appState": dict(APP_STATE),
        "files": files,
    }


async def convert_canvas(
    canvas: Canvas,
    storage,
    *,
    rng: Optional[random.Random] = None,
    timestamp: Optional[int] = None,
) -> ConversionResult:
    """Convert a parsed canvas into an Excalidraw document.

    ``storage`` provides ``async read_binary(path)`` for file nodes. Pass a
    seeded ``rng`` and a fixed ``timestamp`` for reproducible output.
    """
    context = ConversionContext.create(rng=rng, timestamp=timestamp)

    for diagnostic in canvas.rejected:
        context.report(diagnostic.kind, diagnostic.item_id, diagnostic.message)

    for raw_node in canvas.unsupported:
        context.report(
            "unsupported_node", str(raw_node.get("id", "<unknown>")),
            f"Node type {raw_node.get('type')!r} is not converted",
        )

    file_nodes = [node for node in canvas.nodes if isinstance(node, FileNode)]
    payloads = await _read_assets(context, storage, file_nodes) if file_nodes else {}

    for node in canvas.nodes:
        if isinstance(node, FileNode) and node.id not in payloads:
            continue
        convert_node(context, node, payloads.get(node.id))

    for edge in canvas.edges:
        convert_edge(context, edge)

    resolve_frames(context.elements)

    LOGGER.debug(
        "Converted %d nodes and %d edges into %d elements",
        len(canvas.nodes), len(canvas.edges), len(context.elements),
    )
    return ConversionResult(
        document=assemble(context.elements, context.files),
        diagnostics=context.diagnostics,
    )


def excalidraw_path_for(source_path: str) -> str:
    """Output path for a canvas file: same location, Excalidraw suffix."""
    return Path(source_path).with_suffix(EXCALIDRAW_SUFFIX).as_posix()


async def convert_canvas_file(
    storage,
    source_path: str,
    output_path: Optional[str] = None,
    *,
    rng: Optional[random.Random] = None,
    timestamp: Optional[int] = None,
) -> Tuple[str, ConversionResult]:
    """Read a .canvas file, convert it and write the .excalidraw document.

    Reading, parsing and writing failures propagate; nothing is written
    unless the whole document converted.
    """
    if Path(source_path).suffix.lower() != CANVAS_SUFFIX:
        raise ValueError(f"Not a canvas file: {source_path}")

    target_path = output_path or excalidraw_path_for(source_path)

    canvas = parse_canvas(await storage.read_text(source_path))
    result = await convert_canvas(canvas, storage, rng=rng, timestamp=timestamp)

    await storage.write_text(target_path, json.dumps(result.document, indent=2))
    LOGGER.info(
        "Converted %s -> %s (%d elements, %d diagnostics)",
        source_path, target_path, len(result.document["elements"]), len(result.diagnostics),
    )
    return target_path, result
