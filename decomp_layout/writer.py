"""
Layout Writer — emits the JSON layout documents.

  <output>/<library>.json   variables of one module (only when it has any)
  <output>/structs.json     every struct, in module order
"""

import os
import json
import logging
from typing import Dict, List

from .models import LibraryRecord

logger = logging.getLogger(__name__)

STRUCTS_FILENAME = "structs.json"


def render(document: Dict) -> str:
    return json.dumps(document, indent=2, ensure_ascii=False) + "\n"


def struct_document(libs: Dict[str, LibraryRecord]) -> Dict:
    structs: Dict[str, Dict] = {}
    for lib in libs.values():
        for name, record in lib.structs.items():
            structs[name] = record.to_dict()
    return structs


def variable_document(lib: LibraryRecord) -> Dict:
    return {name: record.to_dict() for name, record in lib.variables.items()}


class LayoutWriter:

    def __init__(self, output_dir: str):
        self.output_dir = output_dir

    def _write(self, filename: str, document: Dict) -> str:
        path = os.path.join(self.output_dir, filename)
        with open(path, "w", encoding="utf-8", newline="\n") as f:
            f.write(render(document))
        return path

    def write(self, libs: Dict[str, LibraryRecord]) -> List[str]:
        """Write all documents; returns the paths written."""
        os.makedirs(self.output_dir, exist_ok=True)

        written = []
        for lib in libs.values():
            if lib.variables:
                written.append(self._write(f"{lib.name}.json", variable_document(lib)))
        written.append(self._write(STRUCTS_FILENAME, struct_document(libs)))

        logger.info("Wrote %d layout documents to %s", len(written), self.output_dir)
        return written
