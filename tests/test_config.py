"""
LayoutConfig tests — root validation, ini file, overrides and the clang
argument list.
"""

import os
import sys
import tempfile
import unittest

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, PROJECT_ROOT)

from decomp_layout.config import CONFIG_FILENAME, LayoutConfig, LayoutConfigError

MOCK_PROJECT = os.path.join(PROJECT_ROOT, "tests", "mock_project")


class TestLoad(unittest.TestCase):

    def test_missing_root(self):
        with self.assertRaises(LayoutConfigError) as ctx:
            LayoutConfig.load(None)
        self.assertEqual(str(ctx.exception), "Please specify a directory")

    def test_nonexistent_root(self):
        missing = os.path.join(MOCK_PROJECT, "does_not_exist")
        with self.assertRaises(LayoutConfigError) as ctx:
            LayoutConfig.load(missing)
        self.assertEqual(str(ctx.exception), f"Directory '{missing}' not found")

    def test_defaults(self):
        config = LayoutConfig.load(MOCK_PROJECT)
        self.assertEqual(config.root, os.path.abspath(MOCK_PROJECT))
        self.assertEqual(config.output_path, os.path.join(config.root, "ClangParsed"))
        self.assertEqual(config.global_header_path, os.path.join(config.root, "include", "global.h"))
        self.assertEqual(config.c_standard, "c11")
        self.assertIsNone(config.target)
        self.assertEqual(config.defines, [])

    def test_none_overrides_ignored(self):
        config = LayoutConfig.load(MOCK_PROJECT, target=None, output_dir="out")
        self.assertIsNone(config.target)
        self.assertEqual(config.output_path, os.path.join(config.root, "out"))


class TestIniFile(unittest.TestCase):

    def _root_with_ini(self, tmp, body):
        with open(os.path.join(tmp, CONFIG_FILENAME), "w", encoding="utf-8") as f:
            f.write(body)
        return tmp

    def test_ini_values(self):
        with tempfile.TemporaryDirectory() as tmp:
            root = self._root_with_ini(tmp, (
                "[layout]\n"
                "target = x86_64-pc-windows-msvc\n"
                "defines = NON_MATCHING, VERSION=2\n"
                "output_dir = Layouts\n"
            ))
            config = LayoutConfig.load(root)
            self.assertEqual(config.target, "x86_64-pc-windows-msvc")
            self.assertEqual(config.defines, ["NON_MATCHING", "VERSION=2"])
            self.assertEqual(os.path.basename(config.output_path), "Layouts")

    def test_override_beats_ini(self):
        with tempfile.TemporaryDirectory() as tmp:
            root = self._root_with_ini(tmp, "[layout]\ntarget = i686-pc-windows-msvc\n")
            config = LayoutConfig.load(root, target="x86_64-pc-linux-gnu")
            self.assertEqual(config.target, "x86_64-pc-linux-gnu")

    def test_unknown_option(self):
        with tempfile.TemporaryDirectory() as tmp:
            root = self._root_with_ini(tmp, "[layout]\nbogus = 1\n")
            with self.assertRaises(LayoutConfigError):
                LayoutConfig.load(root)

    def test_missing_section_ignored(self):
        with tempfile.TemporaryDirectory() as tmp:
            root = self._root_with_ini(tmp, "[other]\ntarget = x\n")
            self.assertIsNone(LayoutConfig.load(root).target)


class TestClangArgs(unittest.TestCase):

    def test_mock_project_args(self):
        config = LayoutConfig.load(MOCK_PROJECT, target="x86_64-pc-linux-gnu", defines=["DEBUG"])
        args = config.clang_args()
        self.assertEqual(args[:3], ["-x", "c", "-std=c11"])
        self.assertIn("--target=x86_64-pc-linux-gnu", args)
        i = args.index("-include")
        self.assertEqual(args[i + 1], config.global_header_path)
        self.assertIn("-DDEBUG", args)
        # No Clang-Include directory in the mock project
        self.assertFalse(any(a.startswith("-I") for a in args))

    def test_include_dir_when_present(self):
        with tempfile.TemporaryDirectory() as tmp:
            os.makedirs(os.path.join(tmp, "Clang-Include"))
            args = LayoutConfig.load(tmp).clang_args()
            self.assertIn(f"-I{os.path.join(os.path.abspath(tmp), 'Clang-Include')}", args)
            self.assertNotIn("-include", args)


if __name__ == "__main__":
    unittest.main()
