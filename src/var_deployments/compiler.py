"""Solidity compilation pipeline built on py-solc-x."""

import logging
import posixpath
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

import solcx
from solcx.exceptions import SolcError

from .constants import DEFAULT_SOLC_VERSION, OPTIMIZER_RUNS
from .exceptions import CompilationError, ImportNotFoundError
from .resolver import ImportResolver
from .types import CompiledArtifact, Diagnostic, SourceReference

logger = logging.getLogger(__name__)

_COMMENT_RE = re.compile(r"//[^\n]*|/\*.*?\*/", re.DOTALL)
_IMPORT_RE = re.compile(r"""\bimport\s+(?:[^;"']*?\bfrom\s+)?["']([^"']+)["']""")


def find_imports(source: str) -> List[str]:
    """Return import identifiers declared in a source unit, in order."""
    return _IMPORT_RE.findall(_COMMENT_RE.sub("", source))


def normalize_import(importer: str, import_path: str) -> str:
    """
    Turn an import identifier into a source unit name.

    Relative identifiers ("./", "../") are joined to the importing unit's
    directory; direct identifiers are returned unchanged.
    """
    if import_path.startswith(("./", "../")):
        return posixpath.normpath(posixpath.join(posixpath.dirname(importer), import_path))
    return import_path


def collect_sources(
    unit_name: str, source: str, resolver: ImportResolver
) -> Dict[str, Dict[str, str]]:
    """
    Build the standard-JSON `sources` map for a file and its transitive imports.

    Unresolvable imports are left out; the compiler reports them as errors.
    """
    sources = {unit_name: {"content": source}}
    pending = [(unit_name, source)]
    missing = set()

    while pending:
        importer, content = pending.pop()
        for import_path in find_imports(content):
            unit = normalize_import(importer, import_path)
            if unit in sources or unit in missing:
                continue
            try:
                resolved = resolver.resolve(unit)
            except ImportNotFoundError as e:
                logger.warning("Unresolved import %s in %s: %s", unit, importer, e)
                missing.add(unit)
                continue
            sources[unit] = {"content": resolved}
            pending.append((unit, resolved))

    return sources


def build_input(sources: Dict[str, Dict[str, str]]) -> Dict[str, Any]:
    """Standard-JSON compiler input with the fixed optimizer profile."""
    return {
        "language": "Solidity",
        "sources": sources,
        "settings": {
            "optimizer": {"enabled": True, "runs": OPTIMIZER_RUNS},
            "outputSelection": {"*": {"*": ["abi", "evm.bytecode"]}},
        },
    }


def parse_diagnostics(errors: Optional[List[Dict[str, Any]]]) -> List[Diagnostic]:
    """Convert compiler `errors` entries (any severity) into diagnostics."""
    return [
        Diagnostic(
            severity=entry.get("severity", "error"),
            message=entry.get("message", ""),
            formatted_message=entry.get("formattedMessage") or entry.get("message", ""),
        )
        for entry in errors or []
    ]


def ensure_solc(version: str = DEFAULT_SOLC_VERSION) -> str:
    """Install the requested solc release if it is not available yet."""
    installed = {str(v) for v in solcx.get_installed_solc_versions()}
    if version not in installed:
        logger.info("Installing solc %s...", version)
        solcx.install_solc(version)
    return version


def compile_contract(
    source: SourceReference,
    resolver: Optional[ImportResolver] = None,
    solc_version: str = DEFAULT_SOLC_VERSION,
) -> CompiledArtifact:
    """
    Compile a source file and return the artifact of one contract in it.

    Every call compiles from the current source; nothing is cached.

    Args:
        source: Source file and contract name
        resolver: Import resolver (defaults to the layout around the source file's project)
        solc_version: Compiler release to use

    Returns:
        CompiledArtifact with ABI, 0x-prefixed bytecode and non-fatal diagnostics

    Raises:
        CompilationError: If the compiler reports any error-severity diagnostic
                          or the source file does not exist
    """
    if resolver is None:
        resolver = ImportResolver.for_project()

    try:
        content = Path(source.path).read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise CompilationError(f"Source file not found: {source.path}") from e
    unit_name = source.unit_name
    compiler_input = build_input(collect_sources(unit_name, content, resolver))

    ensure_solc(solc_version)
    try:
        output = solcx.compile_standard(compiler_input, solc_version=solc_version)
    except SolcError as e:
        diagnostics = parse_diagnostics(e.error_dict)
        for diagnostic in diagnostics:
            level = logging.ERROR if diagnostic.is_error else logging.WARNING
            logger.log(level, diagnostic.formatted_message)
        if not diagnostics:
            # Compiler failed without structured output
            diagnostics = [Diagnostic("error", e.message, str(e))]
            logger.error(str(e))
        errors = [d for d in diagnostics if d.is_error]
        details = "\n".join(d.formatted_message for d in errors)
        raise CompilationError(
            f"Compilation of {unit_name} failed with {len(errors)} error(s):\n{details}",
            diagnostics,
        ) from e

    diagnostics = parse_diagnostics(output.get("errors"))
    for diagnostic in diagnostics:
        logger.warning(diagnostic.formatted_message)
    # compile_standard raises on errors, but a backend may still return them
    if any(d.is_error for d in diagnostics):
        details = "\n".join(d.formatted_message for d in diagnostics if d.is_error)
        raise CompilationError(f"Compilation of {unit_name} failed:\n{details}", diagnostics)

    try:
        contract = output["contracts"][unit_name][source.contract_name]
    except KeyError as e:
        raise CompilationError(
            f"Contract '{source.contract_name}' not found in compiler output for {unit_name}",
            diagnostics,
        ) from e

    bytecode = contract["evm"]["bytecode"]["object"]
    return CompiledArtifact(
        contract_name=source.contract_name,
        abi=contract["abi"],
        bytecode=bytecode if bytecode.startswith("0x") else f"0x{bytecode}",
        diagnostics=diagnostics,
    )
