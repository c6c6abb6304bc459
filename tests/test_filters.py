"""
Tests for the package filter engine.
"""

import pytest

from pkgstore.filters import filter_packages
from pkgstore.models import CatalogState, FilterCriteria, Package


def names(packages):
    return [p.name for p in packages]


@pytest.mark.unit
class TestQuery:
    """Search query handling."""

    def test_empty_query_hides_devel_packages(self, sample_state):
        """Devel packages are hidden by name or by component."""
        result = names(filter_packages(sample_state, FilterCriteria()))

        assert "python3-devel" not in result
        assert "glibc-headers" not in result
        assert result == ["firefox", "thunderbird", "vlc", "gimp"]

    def test_query_matches_name_substring(self, sample_state):
        result = names(filter_packages(sample_state, FilterCriteria(query="fire")))
        assert result == ["firefox"]

    def test_query_matches_summary_case_insensitive(self, sample_state):
        result = names(filter_packages(sample_state, FilterCriteria(query="IMAGE")))
        assert result == ["gimp"]

    def test_query_disables_devel_hiding(self, sample_state):
        """A non-empty query shows devel packages that match it."""
        result = names(filter_packages(sample_state, FilterCriteria(query="devel")))
        assert "python3-devel" in result

    def test_query_is_trimmed(self, sample_state):
        result = names(filter_packages(sample_state, FilterCriteria(query="  vlc  ")))
        assert result == ["vlc"]

    def test_whitespace_query_counts_as_empty(self, sample_state):
        result = names(filter_packages(sample_state, FilterCriteria(query="   ")))
        assert "python3-devel" not in result

    def test_no_match_returns_empty_list(self, sample_state):
        assert filter_packages(sample_state, FilterCriteria(query="zzz")) == []


@pytest.mark.unit
class TestComponent:
    """Component filtering."""

    def test_component_exact_match(self, sample_state):
        result = names(filter_packages(sample_state, FilterCriteria(component_id="desktop.web")))
        assert result == ["firefox"]

    def test_component_prefix_does_not_match(self, sample_state):
        """Component ids are compared exactly, not by prefix."""
        assert filter_packages(sample_state, FilterCriteria(component_id="desktop")) == []

    def test_all_component_imposes_nothing(self, sample_state):
        everything = filter_packages(sample_state, FilterCriteria())
        assert filter_packages(sample_state, FilterCriteria(component_id="all")) == everything


@pytest.mark.unit
class TestStatus:
    """Category and status filter handling."""

    def test_installed_category(self, sample_state):
        result = names(filter_packages(sample_state, FilterCriteria(category="installed")))
        assert result == ["firefox", "vlc"]

    def test_available_status(self, sample_state):
        result = names(filter_packages(sample_state, FilterCriteria(status_filter="available")))
        assert result == ["thunderbird", "gimp"]

    def test_updates_status(self, sample_state):
        result = names(filter_packages(sample_state, FilterCriteria(status_filter="updates")))
        assert result == ["vlc"]

    def test_category_and_component_combine(self, sample_state):
        """category=installed AND component=desktop.web."""
        criteria = FilterCriteria(category="installed", component_id="desktop.web")
        assert names(filter_packages(sample_state, criteria)) == ["firefox"]

    def test_category_takes_precedence_over_status(self, sample_state):
        criteria = FilterCriteria(category="installed", status_filter="available")
        assert names(filter_packages(sample_state, criteria)) == ["firefox", "vlc"]

    def test_status_used_when_category_is_all(self, sample_state):
        criteria = FilterCriteria(category="all", status_filter="updates")
        assert names(filter_packages(sample_state, criteria)) == ["vlc"]

    def test_installed_name_without_package_is_ignored(self, sample_state):
        """Installed names missing from the catalog never show up."""
        result = names(filter_packages(sample_state, FilterCriteria(category="installed")))
        assert "ghost" not in result


@pytest.mark.unit
class TestInvariants:
    """Properties that hold for any criteria."""

    @pytest.mark.parametrize("criteria", [
        FilterCriteria(),
        FilterCriteria(query="e"),
        FilterCriteria(category="installed"),
        FilterCriteria(status_filter="updates", component_id="multimedia.video"),
    ])
    def test_result_is_ordered_subset(self, sample_state, criteria):
        result = filter_packages(sample_state, criteria)
        positions = [sample_state.packages.index(p) for p in result]
        assert positions == sorted(positions)

    def test_empty_catalog(self):
        assert filter_packages(CatalogState(), FilterCriteria(query="x")) == []

    def test_pure(self, sample_state):
        """Calling twice gives the same answer and leaves state untouched."""
        before = sample_state
        first = filter_packages(sample_state, FilterCriteria(query="i"))
        second = filter_packages(sample_state, FilterCriteria(query="i"))
        assert first == second
        assert sample_state is before

    def test_devel_component_hidden_until_searched(self):
        package = Package(name="libfoo-devel", part_of="desktop.devel")
        state = CatalogState.build([package])

        assert filter_packages(state, FilterCriteria()) == []
        assert filter_packages(state, FilterCriteria(query="devel")) == [package]
