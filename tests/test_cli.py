"""
CLI and MCP tool tests — argument errors, written documents, the summary
line, and the assistant-facing tools over the mock project.
"""

import io
import os
import sys
import json
import shutil
import tempfile
import unittest
from contextlib import redirect_stdout

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, PROJECT_ROOT)

MOCK_PROJECT = os.path.join(PROJECT_ROOT, "tests", "mock_project")
TARGET = "x86_64-pc-linux-gnu"

from decomp_layout.cli import main
import fastmcp_server


def _main(*argv):
    out = io.StringIO()
    with redirect_stdout(out):
        code = main(list(argv))
    return code, out.getvalue()


class TestCliErrors(unittest.TestCase):

    def test_no_directory(self):
        code, out = _main()
        self.assertEqual(code, 1)
        self.assertIn("Please specify a directory", out)

    def test_missing_directory(self):
        missing = os.path.join(MOCK_PROJECT, "nope")
        code, out = _main(missing)
        self.assertEqual(code, 1)
        self.assertIn(f"Directory '{missing}' not found", out)


class TestCliRun(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.mkdtemp()
        self.root = os.path.join(self.tmp, "decomp")
        shutil.copytree(MOCK_PROJECT, self.root)
        self.out_dir = os.path.join(self.root, "ClangParsed")

    def tearDown(self):
        shutil.rmtree(self.tmp, ignore_errors=True)

    def _read_outputs(self):
        docs = {}
        for name in sorted(os.listdir(self.out_dir)):
            with open(os.path.join(self.out_dir, name), "rb") as f:
                docs[name] = f.read()
        return docs

    def test_writes_documents(self):
        code, out = _main(self.root, "--target", TARGET)
        self.assertEqual(code, 0)
        self.assertEqual(out.strip().splitlines()[-1], "Parsed 3 libraries, 6 structs, 8 vars")

        docs = self._read_outputs()
        self.assertEqual(
            sorted(docs), ["actor.json", "audio.json", "items.json", "structs.json"]
        )

        structs = json.loads(docs["structs.json"])
        self.assertEqual(
            list(structs), ["ItemSlot", "Inventory", "SoundBank", "SampleValue", "Vec3", "Actor"]
        )
        actor = structs["Actor"]
        self.assertEqual(actor["Size"], 72)
        self.assertEqual(actor["Fields"]["grid"]["ArrayDims"], [3, 4])
        self.assertEqual(actor["Fields"]["flags"]["FieldBits"], 3)
        self.assertEqual(actor["Fields"]["__anon_3"]["Fields"]["value"]["Offset"], 64)

        variables = json.loads(docs["actor.json"])
        self.assertEqual(variables["g_player"]["Offset"], 0x80200000)
        self.assertEqual(variables["g_camera_targets"]["IsPointer"], False)
        self.assertEqual(variables["g_camera_targets"]["Type"], "struct Vec3 *")

    def test_output_is_deterministic(self):
        self.assertEqual(_main(self.root, "--target", TARGET)[0], 0)
        first = self._read_outputs()
        self.assertEqual(_main(self.root, "--target", TARGET)[0], 0)
        self.assertEqual(first, self._read_outputs())

    def test_custom_output_dir(self):
        code, _ = _main(self.root, "--target", TARGET, "--output-dir", "Layouts")
        self.assertEqual(code, 0)
        self.assertTrue(os.path.isfile(os.path.join(self.root, "Layouts", "structs.json")))
        self.assertFalse(os.path.exists(self.out_dir))


class TestMcpTools(unittest.TestCase):

    def setUp(self):
        fastmcp_server.session = None
        fastmcp_server.result = None

    def test_tools_require_loaded_headers(self):
        expected = "Error: No headers loaded. Call load_headers first."
        self.assertEqual(fastmcp_server.list_libraries(), expected)
        self.assertEqual(fastmcp_server.get_struct_layout("Actor"), expected)
        self.assertEqual(fastmcp_server.find_variable("g_player"), expected)

    def test_load_missing_directory(self):
        out = fastmcp_server.load_headers(os.path.join(MOCK_PROJECT, "nope"))
        self.assertTrue(out.startswith("Error: Directory"))
        self.assertIsNone(fastmcp_server.result)

    def test_load_and_query(self):
        out = fastmcp_server.load_headers(MOCK_PROJECT, target=TARGET)
        self.assertIn("Parsed 3 libraries, 6 structs, 8 vars", out)
        self.assertIn("4 symbols", out)

        libraries = fastmcp_server.list_libraries()
        self.assertIn("| actor | 2 | 4 |", libraries)
        self.assertIn("| items | 2 | 1 |", libraries)

        layout = fastmcp_server.get_struct_layout("Actor")
        self.assertIn("72 bytes", layout)
        self.assertIn("`grid[3][4]`", layout)
        self.assertIn("`flags:3`", layout)
        self.assertIn("`raw`", layout)
        self.assertIn("Struct `Missing` not found.", fastmcp_server.get_struct_layout("Missing"))

        variables = fastmcp_server.get_library_variables("audio")
        self.assertIn("`g_sound_banks[2][3]`", variables)
        self.assertIn("Library `world` not found.", fastmcp_server.get_library_variables("world"))

        found = fastmcp_server.find_variable("g_world_seed")
        self.assertIn("**audio**", found)
        self.assertIn("0x80200088", found)
        self.assertIn("Address: unknown", fastmcp_server.find_variable("g_actor_count"))


if __name__ == "__main__":
    unittest.main()
