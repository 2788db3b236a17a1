"""Test cases for the MCP tools and the command-line entry point."""

import io
import json
import logging
import tempfile
import unittest
from contextlib import redirect_stdout
from pathlib import Path
from unittest import mock

from mcp_canvas_tools import server
from mcp_canvas_tools.__main__ import main
from mcp_canvas_tools.logger import configure_logging, get_logger

PNG_BYTES = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01"

CANVAS = {
    "nodes": [
        {"id": "g", "type": "group", "x": -40, "y": -40, "width": 1000, "height": 400, "label": "Sprint"},
        {"id": "a", "type": "text", "x": 0, "y": 0, "width": 300, "height": 150, "text": "hello world"},
        {"id": "b", "type": "text", "x": 500, "y": 0, "width": 300, "height": 150, "text": "goodbye"},
        {"id": "pic", "type": "file", "file": "assets/logo.png", "x": 0, "y": 500, "width": 64, "height": 64},
        {"id": "lost", "type": "file", "file": "assets/missing.png", "x": 200, "y": 500},
        {"id": "site", "type": "link", "url": "https://example.com", "x": 400, "y": 500},
    ],
    "edges": [
        {"id": "e1", "fromNode": "a", "fromSide": "right", "toNode": "b", "toSide": "left"},
        {"id": "e2", "fromNode": "b", "toNode": "lost"},
    ],
}


class ServerToolsTest(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name).resolve()
        (self.root / "boards").mkdir()
        (self.root / "assets").mkdir()
        (self.root / "boards" / "plan.canvas").write_text(json.dumps(CANVAS), encoding="utf-8")
        (self.root / "assets" / "logo.png").write_bytes(PNG_BYTES)

        patcher = mock.patch.object(server, "PROJECT_DIR", self.root)
        patcher.start()
        self.addCleanup(patcher.stop)
        self.addCleanup(self._tmp.cleanup)

    async def test_canvas_convert(self):
        result = json.loads(await server.canvas_convert("boards/plan.canvas"))

        self.assertTrue(result["success"])
        self.assertEqual(result["path"], "boards/plan.excalidraw")
        self.assertEqual(result["file_count"], 1)
        # g, a-border, a, b-border, b, pic, e1
        self.assertEqual(result["element_count"], 7)
        self.assertEqual(
            [(d["kind"], d["item_id"]) for d in result["diagnostics"]],
            [("unsupported_node", "site"), ("asset_unreadable", "lost"), ("unresolved_reference", "e2")],
        )

        document = json.loads((self.root / "boards" / "plan.excalidraw").read_text(encoding="utf-8"))
        elements = {element["id"]: element for element in document["elements"]}
        self.assertEqual(document["type"], "excalidraw")
        self.assertEqual(elements["a"]["frameId"], "g")
        self.assertEqual(document["files"]["pic"]["mimeType"], "image/png")

    async def test_canvas_convert_output_path(self):
        result = json.loads(await server.canvas_convert("boards/plan.canvas", "export/plan.excalidraw"))
        self.assertTrue(result["success"])
        self.assertTrue((self.root / "export" / "plan.excalidraw").exists())

    async def test_canvas_convert_errors(self):
        (self.root / "broken.canvas").write_text("{", encoding="utf-8")

        missing = json.loads(await server.canvas_convert("nope.canvas"))
        self.assertIn("File not found", missing["error"])

        invalid = json.loads(await server.canvas_convert("broken.canvas"))
        self.assertTrue(invalid["error"].startswith("Invalid canvas"))
        self.assertFalse((self.root / "broken.excalidraw").exists())

        wrong_type = json.loads(await server.canvas_convert("assets/logo.png"))
        self.assertIn("Not a canvas file", wrong_type["error"])

        escaped = json.loads(await server.canvas_convert("../outside.canvas"))
        self.assertIn("escapes the project directory", escaped["error"])

    async def test_canvas_read(self):
        result = json.loads(await server.canvas_read("boards/plan.canvas"))

        self.assertEqual(result["format"], "canvas")
        self.assertEqual(result["metadata"]["node_count"], 5)
        self.assertEqual(result["metadata"]["edge_count"], 2)
        self.assertEqual(result["metadata"]["node_types"], {"group": 1, "text": 2, "file": 2})
        self.assertEqual(result["metadata"]["unsupported_nodes"], ["site"])
        self.assertEqual(result["metadata"]["invalid_items"], [])
        self.assertEqual(result["text_content"], ["Sprint", "hello world", "goodbye"])
        self.assertEqual(result["edges"][0]["source"], "a")

    async def test_canvas_read_lists_invalid_items(self):
        (self.root / "mixed.canvas").write_text(json.dumps({
            "nodes": CANVAS["nodes"][1:3] + [{"id": "f", "type": "file", "x": 0, "y": 0}],
            "edges": [{"id": "e1", "fromNode": "a", "fromSide": "center", "toNode": "b"}],
        }), encoding="utf-8")

        result = json.loads(await server.canvas_read("mixed.canvas"))

        self.assertEqual(result["metadata"]["node_count"], 2)
        self.assertEqual(result["metadata"]["edge_count"], 0)
        self.assertEqual(
            [(item["kind"], item["item_id"]) for item in result["metadata"]["invalid_items"]],
            [("invalid_node", "f"), ("invalid_edge", "e1")],
        )

    async def test_canvas_read_missing(self):
        result = json.loads(await server.canvas_read("missing.canvas"))
        self.assertIn("error", result)


class CommandLineTest(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.root = Path(self._tmp.name)
        (self.root / "plan.canvas").write_text(json.dumps({
            "nodes": [{"id": "a", "type": "text", "x": 0, "y": 0, "width": 300, "height": 150, "text": "solo"}],
            "edges": [],
        }), encoding="utf-8")

    def test_convert_flag(self):
        output = io.StringIO()
        with redirect_stdout(output):
            main(["--project-dir", str(self.root), "--convert", "plan.canvas"])

        summary = json.loads(output.getvalue())
        self.assertEqual(summary["path"], "plan.excalidraw")
        self.assertEqual(summary["element_count"], 2)
        self.assertTrue((self.root / "plan.excalidraw").exists())

    def test_convert_flag_failure_exits_nonzero(self):
        with mock.patch("sys.stderr", new_callable=io.StringIO) as stderr:
            with self.assertRaises(SystemExit) as ctx:
                main(["--project-dir", str(self.root), "--convert", "missing.canvas"])
        self.assertEqual(ctx.exception.code, 1)
        self.assertIn("File not found", stderr.getvalue())


class LoggingTest(unittest.TestCase):

    def setUp(self):
        root = logging.getLogger()
        self.addCleanup(root.setLevel, root.level)

    def test_get_logger_leaves_root_unconfigured(self):
        with mock.patch("logging.basicConfig") as basic_config:
            logger = get_logger("mcp_canvas_tools.example")
        basic_config.assert_not_called()
        self.assertEqual(logger.name, "mcp_canvas_tools.example")

    def test_configure_logging_sets_level(self):
        with mock.patch("logging.basicConfig"):
            configure_logging("debug")
        self.assertEqual(logging.getLogger().level, logging.DEBUG)


if __name__ == "__main__":
    unittest.main()
