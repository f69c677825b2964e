"""Tests for the type-ahead size picker."""

import pytest

from shopadmin.size_selector import SizeSelector, filter_sizes, size_row_choices


class TestFilterSizes:
    def test_empty_query_returns_whole_catalog(self, catalog):
        assert filter_sizes(catalog, "") == catalog
        assert filter_sizes(catalog, "   ") == catalog

    def test_matches_label_case_insensitively(self, catalog):
        assert [s.id for s in filter_sizes(catalog, "eu 42")] == ["s42"]

    def test_matches_us_sizes_in_catalog_order(self, catalog):
        assert [s.id for s in filter_sizes(catalog, "us 8")] == ["s41", "s42"]

    def test_no_match(self, catalog):
        assert filter_sizes(catalog, "EU 50") == []


class TestSizeSelector:
    """Test open/typing/commit/blur behaviour."""

    def test_initial_selection(self, catalog):
        selector = SizeSelector(catalog, "s41")
        assert selector.selected == catalog[1]
        assert selector.display_text == "EU 41 / US 8"
        assert not selector.is_open

    def test_unknown_initial_selection_raises(self, catalog):
        with pytest.raises(KeyError):
            SizeSelector(catalog, "missing")

    def test_typing_opens_and_filters(self, catalog):
        selector = SizeSelector(catalog)
        selector.type_text("8.5")
        assert selector.is_open
        assert selector.display_text == "8.5"
        assert [s.id for s in selector.filtered_options()] == ["s42"]

    def test_select_commits_and_closes(self, catalog):
        selector = SizeSelector(catalog)
        selector.type_text("40")
        size = selector.select("s40")
        assert size == catalog[0]
        assert selector.selected_id == "s40"
        assert not selector.is_open
        assert selector.query == ""
        assert selector.display_text == "EU 40 / US 7"

    def test_select_unknown_id_keeps_previous_selection(self, catalog):
        selector = SizeSelector(catalog, "s40")
        with pytest.raises(KeyError):
            selector.select("nope")
        assert selector.selected_id == "s40"

    def test_blur_discards_pending_text(self, catalog):
        selector = SizeSelector(catalog, "s42")
        selector.open()
        selector.type_text("zzz")
        selector.blur()
        assert not selector.is_open
        assert selector.selected_id == "s42"
        assert selector.display_text == "EU 42 / US 8.5"

    def test_blur_without_selection_shows_nothing(self, catalog):
        selector = SizeSelector(catalog)
        selector.type_text("41")
        selector.blur()
        assert selector.display_text == ""
        assert selector.selected is None

    def test_clear_empties_selection(self, catalog):
        selector = SizeSelector(catalog, "s41")
        selector.clear()
        assert selector.selected is None
        assert selector.selected_id == ""

    def test_open_shows_all_options(self, catalog):
        selector = SizeSelector(catalog)
        selector.open()
        assert selector.is_open
        assert selector.filtered_options() == catalog


class TestSizeRowChoices:
    """Test the options offered to one size row of the product form."""

    def test_unfiltered_row_shows_committed_label(self, catalog):
        choices = size_row_choices(catalog, "s41")
        assert choices.query == "EU 41 / US 8"
        assert choices.selected_id == "s41"
        assert [value for value, _ in choices.options] == ["s40", "s41", "s42"]

    def test_search_narrows_but_keeps_selection(self, catalog):
        choices = size_row_choices(catalog, "s40", "8.5")
        assert choices.query == "8.5"
        assert choices.options == [("s40", "EU 40 / US 7"), ("s42", "EU 42 / US 8.5")]

    def test_unchanged_label_is_not_a_search(self, catalog):
        choices = size_row_choices(catalog, "s41", "EU 41 / US 8")
        assert len(choices.options) == 3

    def test_unlisted_size_stays_selectable(self, catalog):
        choices = size_row_choices(catalog, "unlisted:47/12")
        assert choices.options[0] == ("unlisted:47/12", "EU 47 / US 12 (not in catalog)")
        assert choices.selected_id == "unlisted:47/12"
        assert choices.query == ""

    def test_blank_row(self, catalog):
        choices = size_row_choices(catalog, "", "us 8")
        assert [value for value, _ in choices.options] == ["s41", "s42"]
        assert choices.selected_id == ""
