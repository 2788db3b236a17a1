#!/usr/bin/env python3
"""
MCP Canvas Tools - Server Implementation
========================================

Provides tools to inspect canvas documents and convert them to Excalidraw.

Supported formats:
- Canvas (.canvas) - JSON node/edge documents (text, file and group nodes)
- Excalidraw (.excalidraw) - JSON-based drawings (output)

Tools:
- canvas_read: Parse canvas structure (nodes, edges, text)
- canvas_convert: Convert a canvas to an Excalidraw document
"""

import json
import os
from collections import Counter
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Annotated, Optional

from mcp.server.fastmcp import FastMCP
from pydantic import Field

from .converter import convert_canvas_file
from .errors import ParseError, StorageError
from .logger import get_logger
from .models import FileNode, GroupNode, TextNode, parse_canvas
from .storage import ProjectStorage

LOGGER = get_logger(__name__)

# Configuration from environment
PROJECT_DIR = Path(os.environ.get("MCP_PROJECT_DIR", os.getcwd())).resolve()


def get_storage() -> ProjectStorage:
    """Storage rooted at the configured project directory."""
    return ProjectStorage(PROJECT_DIR)


@asynccontextmanager
async def server_lifespan(server: FastMCP):
    """Initialize on startup, cleanup on shutdown."""
    # Ensure project directory exists
    PROJECT_DIR.mkdir(parents=True, exist_ok=True)
    LOGGER.info("Serving canvas tools from %s", PROJECT_DIR)
    yield


# Initialize the MCP server
mcp = FastMCP("mcp-canvas-tools", lifespan=server_lifespan)


# ============================================================================
# Canvas Reading Tool
# ============================================================================

@mcp.tool()
async def canvas_read(
    path: Annotated[str, Field(description="Path to .canvas file relative to project directory")],
) -> str:
    """Read and parse a canvas file to extract its structure.

    Returns JSON with:
    - nodes: List of nodes (id, type, box, and text/file/label)
    - edges: List of connections
    - text_content: All text found in text nodes and group labels
    - metadata: Counts per node type

    Args:
        path: Path to the canvas file (relative to project directory)

    Returns:
        JSON string with canvas structure and metadata
    """
    try:
        canvas = parse_canvas(await get_storage().read_text(path))

        nodes = []
        text_content = []
        for node in canvas.nodes:
            entry = {
                "id": node.id,
                "type": node.type,
                "x": node.x,
                "y": node.y,
                "width": node.width,
                "height": node.height,
            }
            if isinstance(node, TextNode):
                entry["text"] = node.text
                if node.text:
                    text_content.append(node.text)
            elif isinstance(node, FileNode):
                entry["file"] = node.file
            elif isinstance(node, GroupNode):
                entry["label"] = node.label
                if node.label:
                    text_content.append(node.label)
            nodes.append(entry)

        edges = [
            {
                "id": edge.id,
                "source": edge.fromNode,
                "target": edge.toNode,
                "fromSide": edge.fromSide,
                "toSide": edge.toSide,
                "label": edge.label,
            }
            for edge in canvas.edges
        ]

        return json.dumps({
            "format": "canvas",
            "path": path,
            "nodes": nodes,
            "edges": edges,
            "text_content": text_content,
            "metadata": {
                "node_count": len(nodes),
                "edge_count": len(edges),
                "node_types": dict(Counter(node.type for node in canvas.nodes)),
                "unsupported_nodes": [raw.get("id") for raw in canvas.unsupported],
                "invalid_items": [diagnostic.to_dict() for diagnostic in canvas.rejected],
            }
        }, indent=2)

    except (StorageError, ValueError) as e:
        return json.dumps({"error": str(e)})


# ============================================================================
# Canvas Conversion Tool
# ============================================================================

@mcp.tool()
async def canvas_convert(
    path: Annotated[str, Field(description="Path to the .canvas file relative to project directory")],
    output_path: Annotated[Optional[str], Field(description="Output .excalidraw path (defaults to the canvas path with an .excalidraw suffix)")] = None,
) -> str:
    """Convert a canvas document into an Excalidraw drawing.

    Conversion:
    - text nodes -> bordered rectangle with wrapped, bound text
    - file nodes -> image elements with the binary embedded as a data URL
    - group nodes -> frames; enclosed elements join the frame
    - edges -> arrows bound to both endpoints

    Problems with single items (malformed nodes or edges, unreadable images,
    edges to unknown nodes, unrecognised image formats) do not abort the
    conversion; they are listed under "diagnostics".

    Args:
        path: Canvas file path (relative to project directory)
        output_path: Optional output path

    Returns:
        JSON string with success status, output path and diagnostics
    """
    try:
        target, result = await convert_canvas_file(get_storage(), path, output_path)

        return json.dumps({
            "success": True,
            "source": path,
            "path": target,
            "format": "excalidraw",
            "element_count": len(result.document["elements"]),
            "file_count": len(result.document["files"]),
            "diagnostics": [diagnostic.to_dict() for diagnostic in result.diagnostics],
        }, indent=2)

    except ParseError as e:
        LOGGER.error("Cannot parse %s: %s", path, e)
        return json.dumps({"error": f"Invalid canvas: {e}"})
    except StorageError as e:
        LOGGER.error("Conversion of %s failed: %s", path, e)
        return json.dumps({"error": str(e)})
    except ValueError as e:
        return json.dumps({"error": str(e)})
