"""
Tests for the Pisi index parser and the pisi command transport.

No real pisi binary is used; subprocesses are mocked.
"""

import asyncio
import pytest
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

from common.exceptions import CommandError, IndexParseError, UnknownCommandError
from pkgstore.filters import filter_packages
from pkgstore.models import CatalogState, FilterCriteria, Package
from pkgstore.pisi_index import derive_components, load_index, parse_index
from pkgstore.transport import PisiTransport


SAMPLE_INDEX = """
<PISI>
  <Package>
    <Name>firefox</Name>
    <Summary xml:lang="en">Mozilla Firefox web browser</Summary>
    <Description xml:lang="en">Fast and private browser</Description>
    <License>MPL-2.0</License>
    <PartOf>desktop.web</PartOf>
    <PackageSize>97000000</PackageSize>
    <InstalledSize>250000000</InstalledSize>
    <Source>
      <Name>firefox</Name>
      <Homepage>https://www.mozilla.org</Homepage>
    </Source>
    <RuntimeDependencies>
      <Dependency>gtk3</Dependency>
      <Dependency>nss</Dependency>
    </RuntimeDependencies>
    <History>
      <Update release="42">
        <Date>2023-07-04</Date>
        <Version>115.0</Version>
      </Update>
      <Update release="41">
        <Version>114.0</Version>
      </Update>
    </History>
  </Package>
  <Package>
    <Name>mystery</Name>
    <Summary>No component</Summary>
  </Package>
  <Package partOf="desktop.web">
    <Name>lynx</Name>
    <Summary>Text browser</Summary>
  </Package>
</PISI>
"""


def run(coro):
    return asyncio.run(coro)


def make_process(stdout=b"", stderr=b"", returncode=0):
    proc = MagicMock()
    proc.communicate = AsyncMock(return_value=(stdout, stderr))
    proc.returncode = returncode
    return proc


@pytest.fixture
def index_file(tmp_path: Path) -> Path:
    path = tmp_path / "pisi-index.xml"
    path.write_text(SAMPLE_INDEX, encoding="utf-8")
    return path


@pytest.mark.unit
class TestIndexParser:
    """Tests for pisi-index.xml parsing."""

    def test_parse_fields(self):
        packages = parse_index(SAMPLE_INDEX)
        firefox = packages[0]

        assert firefox["name"] == "firefox"
        assert firefox["version"] == "115.0"
        assert firefox["release"] == 42
        assert firefox["part_of"] == "desktop.web"
        assert firefox["package_size"] == 97000000
        assert firefox["installed_size"] == 250000000
        assert firefox["homepage"] == "https://www.mozilla.org"
        assert firefox["dependencies"] == ["gtk3", "nss"]
        assert firefox["license"] == "MPL-2.0"

    def test_missing_fields_default(self):
        mystery = parse_index(SAMPLE_INDEX)[1]
        assert mystery["version"] is None
        assert mystery["part_of"] == "other"
        assert mystery["package_size"] == 0

    def test_part_of_attribute(self):
        lynx = parse_index(SAMPLE_INDEX)[2]
        assert lynx["part_of"] == "desktop.web"

    def test_malformed_xml(self):
        with pytest.raises(IndexParseError):
            parse_index("<PISI><Package>")

    def test_missing_file(self, tmp_path):
        with pytest.raises(IndexParseError) as exc_info:
            load_index(tmp_path / "nope.xml")
        assert "nope.xml" in exc_info.value.details["path"]

    def test_derive_components(self):
        components = derive_components(parse_index(SAMPLE_INDEX))

        assert components == [
            {"name": "All", "package_count": 3},
            {"name": "desktop.web", "package_count": 2},
            {"name": "other", "package_count": 1},
        ]

    def test_component_counts_match_filter(self):
        """Choosing a derived component shows exactly package_count packages."""
        records = parse_index(SAMPLE_INDEX)
        state = CatalogState.build(Package.from_dict(r) for r in records)

        for component in derive_components(records):
            if component["name"] == "All":
                continue
            shown = filter_packages(state, FilterCriteria(component_id=component["name"]))
            assert len(shown) == component["package_count"], component["name"]


@pytest.mark.unit
class TestPisiTransport:
    """Tests for PisiTransport command handling."""

    def test_locate_requires_binary_and_index(self, index_file):
        with patch("pkgstore.transport.shutil.which", return_value=None):
            assert PisiTransport.locate("pisi", index_file) is None

        with patch("pkgstore.transport.shutil.which", return_value="/usr/bin/pisi"):
            transport = PisiTransport.locate("pisi", index_file)
            assert transport.binary == "/usr/bin/pisi"
            assert PisiTransport.locate("pisi", index_file.parent / "missing.xml") is None

    def test_packages_from_index(self, index_file):
        transport = PisiTransport("pisi", index_file)
        packages = run(transport.call("get_packages", {}))
        assert [p["name"] for p in packages] == ["firefox", "mystery", "lynx"]

    def test_search(self, index_file):
        transport = PisiTransport("pisi", index_file)
        result = run(transport.call("search_packages", {"query": "BROWSER"}))
        assert [p["name"] for p in result] == ["firefox", "lynx"]

    def test_installed_takes_first_column(self, index_file):
        proc = make_process(stdout=b"firefox  - Mozilla Firefox\nlynx - Text browser\n\n")
        transport = PisiTransport("pisi", index_file)

        with patch("pkgstore.transport.asyncio.create_subprocess_exec",
                   new=AsyncMock(return_value=proc)) as mock_exec:
            names = run(transport.call("get_installed_packages", {}))

        assert names == ["firefox", "lynx"]
        assert mock_exec.call_args.args[:2] == ("pisi", "li")

    def test_install_runs_pisi(self, index_file):
        transport = PisiTransport("pisi", index_file)

        with patch("pkgstore.transport.asyncio.create_subprocess_exec",
                   new=AsyncMock(return_value=make_process())) as mock_exec:
            result = run(transport.call("install_package", {"packageName": "lynx"}))

        assert result == "Package lynx installed successfully"
        assert mock_exec.call_args.args[:4] == ("pisi", "it", "lynx", "-y")

    def test_failed_command_raises_with_stderr(self, index_file):
        proc = make_process(stderr=b"lynx: package not found\n", returncode=1)
        transport = PisiTransport("pisi", index_file)

        with patch("pkgstore.transport.asyncio.create_subprocess_exec",
                   new=AsyncMock(return_value=proc)):
            with pytest.raises(CommandError) as exc_info:
                run(transport.call("remove_package", {"packageName": "lynx"}))

        assert "lynx: package not found" in exc_info.value.message

    def test_missing_package_name(self, index_file):
        transport = PisiTransport("pisi", index_file)
        with pytest.raises(CommandError):
            run(transport.call("update_package", {}))

    def test_unknown_command(self, index_file):
        transport = PisiTransport("pisi", index_file)
        with pytest.raises(UnknownCommandError):
            run(transport.call("format_disk", {}))

    def test_stats(self, index_file):
        transport = PisiTransport("pisi", index_file)
        transport._installed = AsyncMock(return_value=["firefox"])
        transport._upgradable = AsyncMock(return_value=[])

        stats = run(transport._package_stats({}))

        assert stats == {
            "total_count": 3,
            "installed_count": 1,
            "available_count": 2,
            "updates_count": 0,
        }
