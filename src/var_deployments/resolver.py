"""Import resolution for Solidity sources."""

import logging
from pathlib import Path
from typing import Optional, Sequence, Union

from . import paths
from .constants import (
    LIBRARY_PREFIX,
    UNSUPPORTED_IMPORT_PREFIXES,
    UPGRADEABLE_LIBRARY_PREFIX,
)
from .exceptions import ImportNotFoundError

logger = logging.getLogger(__name__)


class ImportResolver:
    """
    Maps import identifiers to source file contents.

    Identifiers are classified by prefix, in priority order:

    1. upgradeable library prefix: single fixed root
    2. plain library prefix: several candidate roots, first existing file wins
    3. unsupported prefixes: never resolved, filesystem is not touched
    4. anything else: relative to the project source root

    Nothing is cached; every call reads the filesystem again.
    """

    def __init__(
        self,
        source_root: Path,
        upgradeable_root: Path,
        library_roots: Sequence[Path],
        unsupported_prefixes: Sequence[str] = UNSUPPORTED_IMPORT_PREFIXES,
    ):
        self.source_root = Path(source_root)
        self.upgradeable_root = Path(upgradeable_root)
        self.library_roots = [Path(p) for p in library_roots]
        self.unsupported_prefixes = tuple(unsupported_prefixes)

    @classmethod
    def for_project(cls, project_root: Optional[Union[Path, str]] = None) -> "ImportResolver":
        """Build a resolver for the standard project layout."""
        return cls(
            source_root=paths.get_source_root(project_root),
            upgradeable_root=paths.get_upgradeable_library_root(project_root),
            library_roots=paths.get_library_roots(project_root),
        )

    def candidates(self, import_path: str) -> list[Path]:
        """
        Filesystem locations for an import identifier, in lookup order.

        Returns an empty list for unsupported prefixes.
        """
        if import_path.startswith(UPGRADEABLE_LIBRARY_PREFIX):
            relative = import_path[len(UPGRADEABLE_LIBRARY_PREFIX):]
            return [self.upgradeable_root / relative]
        if import_path.startswith(LIBRARY_PREFIX):
            relative = import_path[len(LIBRARY_PREFIX):]
            return [root / relative for root in self.library_roots]
        if import_path.startswith(self.unsupported_prefixes):
            return []
        return [self.source_root / import_path]

    def resolve(self, import_path: str) -> str:
        """
        Return the contents of the file an import identifier refers to.

        Args:
            import_path: Identifier as written in the import statement
                         (after relative-path normalisation)

        Returns:
            File contents

        Raises:
            ImportNotFoundError: If no candidate exists. The first candidate is
                                 reported so the message is deterministic.
        """
        candidates = self.candidates(import_path)
        if not candidates:
            raise ImportNotFoundError(import_path)

        for candidate in candidates:
            if candidate.is_file():
                logger.debug("Resolved %s -> %s", import_path, candidate)
                return candidate.read_text(encoding="utf-8")

        raise ImportNotFoundError(import_path, [str(c) for c in candidates])
