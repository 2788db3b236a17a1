"""
MCP Canvas Tools
================

Converts canvas documents (.canvas node/edge JSON) into Excalidraw drawings,
served as MCP tools or run once from the command line.

Conversion:
- text nodes: bordered rectangles with word-wrapped bound text
- file nodes: embedded images (MIME type detected from magic bytes)
- group nodes: frames, with enclosed elements assigned to them
- edges: arrows bound to both endpoint elements

Transport modes:
- STDIO (default): For Claude Desktop and other MCP clients
- SSE: Server-Sent Events over HTTP
- HTTP: Streamable HTTP transport
"""

__version__ = "0.1.0"

from .converter import assemble, convert_canvas, convert_canvas_file, convert_edge, convert_node, resolve_frames
from .models import ConversionResult, Diagnostic, parse_canvas

__all__ = [
    "assemble",
    "convert_canvas",
    "convert_canvas_file",
    "convert_edge",
    "convert_node",
    "resolve_frames",
    "parse_canvas",
    "ConversionResult",
    "Diagnostic",
    "__version__",
]
