"""
Layout Session — one end-to-end run over a header tree.

Owns every piece of mutable state for the run (Registry, OffsetMap,
classifier) so separate sessions never share results.

Usage:
    session = LayoutSession(LayoutConfig.load("/path/to/decomp"))
    result = session.run()
    session.write(result)
    print(result.summary_line())
"""

import os
import logging
from typing import Dict, List, Optional
from dataclasses import dataclass, field

from .attributor import LibraryAttributor
from .classifier import DeclarationClassifier
from .config import LayoutConfig
from .header_source import HeaderSource, discover_headers
from .models import LibraryRecord
from .offset_map import OffsetMap
from .registry import Registry
from .writer import LayoutWriter

logger = logging.getLogger(__name__)


@dataclass
class LayoutResult:
    libraries: Dict[str, LibraryRecord] = field(default_factory=dict)
    headers: List[str] = field(default_factory=list)
    failed_headers: List[str] = field(default_factory=list)

    @property
    def struct_count(self) -> int:
        return sum(len(lib.structs) for lib in self.libraries.values())

    @property
    def variable_count(self) -> int:
        return sum(len(lib.variables) for lib in self.libraries.values())

    def summary_line(self) -> str:
        return (
            f"Parsed {len(self.libraries)} libraries, "
            f"{self.struct_count} structs, {self.variable_count} vars"
        )


class LayoutSession:

    def __init__(
        self,
        config: LayoutConfig,
        offsets: Optional[OffsetMap] = None,
        source: Optional[HeaderSource] = None,
    ):
        self.config = config
        self.registry = Registry()
        # Built once, before any header is read
        self.offsets = offsets if offsets is not None else OffsetMap.discover(config.root)
        self.source = source or HeaderSource(config)
        self.classifier = DeclarationClassifier(self.registry, self.offsets)

    def discover(self) -> List[str]:
        return discover_headers(self.config.root, exclude=[self.config.output_path])

    def process_header(self, path: str) -> bool:
        """Classify every declaration of one header; False if the header could not be parsed."""
        logger.info("%s", os.path.basename(path))
        try:
            accepted = self.classifier.classify_all(self.source.declarations(path))
        except Exception as e:
            logger.error("Failed to process %s: %s", path, e)
            return False
        logger.debug("%s: %d records accepted", path, accepted)
        return True

    def run(self) -> LayoutResult:
        # Fail fast if libclang itself is unusable
        self.source.index

        result = LayoutResult()
        result.headers = self.discover()
        logger.info("Found %d headers under %s", len(result.headers), self.config.root)

        for path in result.headers:
            if not self.process_header(path):
                result.failed_headers.append(path)

        logger.debug("Registry: %s", self.registry.get_summary())
        result.libraries = LibraryAttributor(self.registry).build()
        return result

    def write(self, result: LayoutResult) -> List[str]:
        return LayoutWriter(self.config.output_path).write(result.libraries)
