"""Path management utilities for var-deployments library."""

from pathlib import Path
from typing import List, Optional, Union

IMPLEMENTATION_DIR = "VAR (implementation)"
PROXY_DIR = "VARProxy"


def get_default_project_root() -> Path:
    """
    Get default project root (current working directory).

    Returns:
        Path to the directory holding contract sources and state files
    """
    return Path.cwd()


def _root(project_root: Optional[Union[Path, str]]) -> Path:
    if project_root is None:
        return get_default_project_root()
    return Path(project_root).absolute()


def get_state_paths(project_root: Optional[Union[Path, str]] = None) -> tuple[Path, Path]:
    """
    Get state file paths.

    Args:
        project_root: Custom project directory (defaults to the working directory)

    Returns:
        Tuple of (registry_path, activity_log_path)
    """
    root = _root(project_root)
    return (root / "deployed_contracts.json", root / "var_manager.log")


def get_source_root(project_root: Optional[Union[Path, str]] = None) -> Path:
    """Directory that local and project-relative imports resolve against."""
    return _root(project_root) / IMPLEMENTATION_DIR / "src"


def get_upgradeable_library_root(project_root: Optional[Union[Path, str]] = None) -> Path:
    """Vendored OpenZeppelin upgradeable contracts."""
    return (
        _root(project_root)
        / IMPLEMENTATION_DIR
        / "lib"
        / "openzeppelin-contracts-upgradeable"
        / "contracts"
    )


def get_library_roots(project_root: Optional[Union[Path, str]] = None) -> List[Path]:
    """
    Candidate roots for plain OpenZeppelin imports, in priority order.

    Returns:
        Vendored copy (contracts/ and repository root), the proxy project's
        vendored copy, then the npm-installed package
    """
    root = _root(project_root)
    vendored = root / IMPLEMENTATION_DIR / "lib" / "openzeppelin-contracts"
    return [
        vendored / "contracts",
        vendored,
        root / PROXY_DIR / "lib" / "openzeppelin-contracts" / "contracts",
        root / "node_modules" / "@openzeppelin" / "contracts",
    ]
