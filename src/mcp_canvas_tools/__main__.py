#!/usr/bin/env python3
"""
MCP Canvas Tools - Entry Point

Supports multiple transport modes:
- stdio: Standard I/O (default, for Claude Desktop)
- sse: Server-Sent Events over HTTP
- http: Streamable HTTP transport

With --convert, converts one canvas file and exits instead of serving.
"""

import argparse
import asyncio
import json
import os
import sys

TRANSPORTS = {
    "stdio": "stdio",
    "sse": "sse",
    "http": "streamable-http",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mcp-canvas-tools",
        description="MCP server converting canvas documents to Excalidraw",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run with STDIO transport (default, for Claude Desktop)
  mcp-canvas-tools

  # Run with SSE transport on port 8080
  mcp-canvas-tools --transport sse --port 8080

  # Specify the vault/project directory for file operations
  mcp-canvas-tools --project-dir /path/to/vault

  # Convert a single canvas without starting a server
  mcp-canvas-tools --project-dir /path/to/vault --convert boards/plan.canvas
"""
    )
    parser.add_argument(
        "--transport",
        choices=sorted(TRANSPORTS),
        default="stdio",
        help="Transport mode (default: stdio)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8080,
        help="Port for SSE/HTTP transport (default: 8080)"
    )
    parser.add_argument(
        "--host",
        type=str,
        default="0.0.0.0",
        help="Host to bind for SSE/HTTP transport (default: 0.0.0.0)"
    )
    parser.add_argument(
        "--project-dir",
        type=str,
        default=os.getcwd(),
        help="Project directory for file operations (default: current directory)"
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=os.environ.get("MCP_LOG_LEVEL", "INFO").upper(),
        help="Logging level (default: $MCP_LOG_LEVEL or INFO)"
    )
    parser.add_argument(
        "--convert",
        metavar="PATH",
        help="Convert this .canvas file (relative to the project directory) and exit"
    )
    parser.add_argument(
        "--output",
        metavar="PATH",
        help="Output path for --convert (default: same name with .excalidraw)"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__import__('mcp_canvas_tools').__version__}"
    )
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    # Set configuration before the server module reads it
    os.environ["MCP_PROJECT_DIR"] = os.path.abspath(args.project_dir)
    os.environ["MCP_LOG_LEVEL"] = args.log_level

    from .logger import configure_logging
    configure_logging(args.log_level)

    if args.convert:
        from .converter import convert_canvas_file
        from .errors import StorageError
        from .storage import ProjectStorage

        storage = ProjectStorage(args.project_dir)
        try:
            target, result = asyncio.run(convert_canvas_file(storage, args.convert, args.output))
        except (ValueError, StorageError) as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)

        print(json.dumps({
            "source": args.convert,
            "path": target,
            "element_count": len(result.document["elements"]),
            "file_count": len(result.document["files"]),
            "diagnostics": [diagnostic.to_dict() for diagnostic in result.diagnostics],
        }, indent=2))
        return

    # Import server after setting environment
    from .server import mcp

    if args.transport != "stdio":
        mcp.settings.host = args.host
        mcp.settings.port = args.port
        print(f"Starting {args.transport.upper()} server on {args.host}:{args.port}", file=sys.stderr)
        print(f"Project directory: {args.project_dir}", file=sys.stderr)

    mcp.run(transport=TRANSPORTS[args.transport])


if __name__ == "__main__":
    main()
