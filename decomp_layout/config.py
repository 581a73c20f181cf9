"""
Run configuration.

Values come from, in increasing precedence:
  1. built-in defaults
  2. ``decomp_layout.ini`` in the root directory (section ``[layout]``)
  3. explicit overrides (CLI flags, MCP tool arguments)

Example ``decomp_layout.ini``::

    [layout]
    global_header = include/global.h
    include_dir   = Clang-Include
    output_dir    = ClangParsed
    c_standard    = c11
    target        = x86_64-pc-windows-msvc
    defines       = NON_MATCHING, VERSION=2
"""

import os
import configparser
import logging
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, ValidationError

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "decomp_layout.ini"
CONFIG_SECTION = "layout"

DEFAULT_GLOBAL_HEADER = os.path.join("include", "global.h")
DEFAULT_INCLUDE_DIR = "Clang-Include"
DEFAULT_OUTPUT_DIR = "ClangParsed"
DEFAULT_C_STANDARD = "c11"


class LayoutConfigError(Exception):
    """Raised for an unusable configuration (e.g. a missing root directory)."""


def _split_list(value: str) -> List[str]:
    return [v.strip() for v in value.split(",") if v.strip()]


class LayoutConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    root: str
    global_header: str = DEFAULT_GLOBAL_HEADER
    include_dir: str = DEFAULT_INCLUDE_DIR
    output_dir: str = DEFAULT_OUTPUT_DIR
    c_standard: str = DEFAULT_C_STANDARD
    target: Optional[str] = None
    defines: List[str] = []
    extra_args: List[str] = []

    # ────────────────────────────────────────────────────────────────
    #  Construction
    # ────────────────────────────────────────────────────────────────

    @classmethod
    def load(cls, root: Optional[str], **overrides) -> "LayoutConfig":
        """Validate ``root``, apply the optional ini file, then ``overrides``.

        Overrides whose value is None are ignored.
        """
        if not root:
            raise LayoutConfigError("Please specify a directory")
        if not os.path.isdir(root):
            raise LayoutConfigError(f"Directory '{root}' not found")

        root = os.path.abspath(root)
        values = cls._read_ini(root)
        values.update({k: v for k, v in overrides.items() if v is not None})
        if "root" in values:
            raise LayoutConfigError("Unknown configuration option 'root'")

        try:
            return cls(root=root, **values)
        except ValidationError as e:
            raise LayoutConfigError(f"Invalid configuration: {e}") from e

    @staticmethod
    def _read_ini(root: str) -> Dict[str, object]:
        path = os.path.join(root, CONFIG_FILENAME)
        if not os.path.isfile(path):
            return {}

        parser = configparser.ConfigParser()
        try:
            parser.read(path, encoding="utf-8")
        except configparser.Error as e:
            raise LayoutConfigError(f"Cannot read {path}: {e}") from e
        if not parser.has_section(CONFIG_SECTION):
            logger.warning("%s has no [%s] section, ignoring it", path, CONFIG_SECTION)
            return {}

        values: Dict[str, object] = {}
        for key, raw in parser.items(CONFIG_SECTION):
            if key in ("defines", "extra_args"):
                values[key] = _split_list(raw)
            else:
                values[key] = raw.strip()
        logger.debug("Loaded configuration from %s", path)
        return values

    # ────────────────────────────────────────────────────────────────
    #  Resolved paths
    # ────────────────────────────────────────────────────────────────

    def _resolve(self, path: str) -> str:
        if os.path.isabs(path):
            return os.path.normpath(path)
        return os.path.normpath(os.path.join(self.root, path))

    @property
    def global_header_path(self) -> str:
        return self._resolve(self.global_header)

    @property
    def include_path(self) -> str:
        return self._resolve(self.include_dir)

    @property
    def output_path(self) -> str:
        return self._resolve(self.output_dir)

    def clang_args(self) -> List[str]:
        """Command-line arguments handed to libclang for every header."""
        args = ["-x", "c", f"-std={self.c_standard}"]
        if self.target:
            args.append(f"--target={self.target}")
        if os.path.isfile(self.global_header_path):
            args += ["-include", self.global_header_path]
        else:
            logger.debug("Global header %s not found, no forced include", self.global_header_path)
        if os.path.isdir(self.include_path):
            args.append(f"-I{self.include_path}")
        args += [f"-D{d}" for d in self.defines]
        args += list(self.extra_args)
        return args
