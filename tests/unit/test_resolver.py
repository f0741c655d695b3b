"""Unit tests for Solidity import resolution."""

from pathlib import Path

import pytest

from var_deployments.exceptions import ImportNotFoundError
from var_deployments.resolver import ImportResolver


@pytest.fixture
def resolver(project_root: Path) -> ImportResolver:
    return ImportResolver.for_project(project_root)


def write(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


class TestCandidates:
    """Test candidate location ordering."""

    def test_upgradeable_prefix_has_single_root(self, resolver: ImportResolver):
        """Test that upgradeable imports map to exactly one location."""
        candidates = resolver.candidates(
            "@openzeppelin/contracts-upgradeable/proxy/utils/Initializable.sol"
        )

        assert candidates == [resolver.upgradeable_root / "proxy/utils/Initializable.sol"]

    def test_library_prefix_lists_every_root(self, resolver: ImportResolver):
        """Test that plain library imports try each library root in order."""
        candidates = resolver.candidates("@openzeppelin/contracts/token/ERC20/IERC20.sol")

        assert candidates == [root / "token/ERC20/IERC20.sol" for root in resolver.library_roots]

    def test_upgradeable_prefix_is_not_a_library_import(self, resolver: ImportResolver):
        """Test that the longer upgradeable prefix wins over the library prefix."""
        candidates = resolver.candidates("@openzeppelin/contracts-upgradeable/access/OwnableUpgradeable.sol")
        assert len(candidates) == 1

    def test_unsupported_prefix_has_no_candidates(self, resolver: ImportResolver):
        """Test that test-framework imports are never looked up."""
        assert resolver.candidates("forge-std/Test.sol") == []

    def test_plain_identifier_is_relative_to_source_root(self, resolver: ImportResolver):
        """Test that other identifiers resolve against the source root."""
        assert resolver.candidates("interfaces/IVAR.sol") == [
            resolver.source_root / "interfaces/IVAR.sol"
        ]


class TestResolve:
    """Test reading resolved imports."""

    def test_resolves_local_file(self, resolver: ImportResolver):
        """Test that a file under the source root is returned."""
        write(resolver.source_root / "Lib.sol", "library Lib {}")
        assert resolver.resolve("Lib.sol") == "library Lib {}"

    def test_resolves_upgradeable_file(self, resolver: ImportResolver):
        """Test that an upgradeable library file is returned."""
        write(resolver.upgradeable_root / "proxy/utils/Initializable.sol", "// init")
        assert (
            resolver.resolve("@openzeppelin/contracts-upgradeable/proxy/utils/Initializable.sol")
            == "// init"
        )

    def test_first_existing_library_root_wins(self, resolver: ImportResolver):
        """Test that earlier library roots take priority over later ones."""
        write(resolver.library_roots[3] / "utils/Address.sol", "// npm")
        write(resolver.library_roots[2] / "utils/Address.sol", "// proxy vendored")

        assert resolver.resolve("@openzeppelin/contracts/utils/Address.sol") == "// proxy vendored"

        write(resolver.library_roots[0] / "utils/Address.sol", "// vendored")
        assert resolver.resolve("@openzeppelin/contracts/utils/Address.sol") == "// vendored"

    def test_falls_back_to_npm_package(self, resolver: ImportResolver):
        """Test that the npm package is used when no vendored copy exists."""
        write(resolver.library_roots[-1] / "utils/Context.sol", "// npm")
        assert resolver.resolve("@openzeppelin/contracts/utils/Context.sol") == "// npm"

    def test_directory_is_not_a_match(self, resolver: ImportResolver):
        """Test that only regular files resolve."""
        (resolver.library_roots[0] / "utils" / "Strings.sol").mkdir(parents=True)
        write(resolver.library_roots[1] / "utils/Strings.sol", "// second")

        assert resolver.resolve("@openzeppelin/contracts/utils/Strings.sol") == "// second"

    def test_missing_library_reports_first_candidate(self, resolver: ImportResolver):
        """Test that the error names the first attempted location."""
        with pytest.raises(ImportNotFoundError) as exc_info:
            resolver.resolve("@openzeppelin/contracts/utils/Missing.sol")

        expected = resolver.library_roots[0] / "utils/Missing.sol"
        assert str(exc_info.value) == f"File not found: {expected}"
        assert len(exc_info.value.attempted) == len(resolver.library_roots)

    def test_missing_local_file(self, resolver: ImportResolver):
        """Test that a missing local file raises ImportNotFoundError."""
        with pytest.raises(ImportNotFoundError, match="File not found"):
            resolver.resolve("Nowhere.sol")

    def test_unsupported_prefix_does_not_touch_filesystem(
        self, resolver: ImportResolver, monkeypatch
    ):
        """Test that unsupported imports fail without any filesystem access."""

        def no_access(self):
            raise AssertionError(f"filesystem accessed for {self}")

        monkeypatch.setattr(Path, "is_file", no_access)
        monkeypatch.setattr(Path, "exists", no_access)

        with pytest.raises(ImportNotFoundError, match="forge-std/Test.sol"):
            resolver.resolve("forge-std/Test.sol")

    def test_reads_current_contents_every_time(self, resolver: ImportResolver):
        """Test that nothing is cached between calls."""
        path = write(resolver.source_root / "Lib.sol", "v1")
        assert resolver.resolve("Lib.sol") == "v1"

        path.write_text("v2")
        assert resolver.resolve("Lib.sol") == "v2"
