"""Unit tests for matching extracted events to stored carnivals."""
import asyncio
import datetime as dt

from conftest import InMemoryCarnivalStore, make_event
from mysideline_sync.matcher import find_existing_carnival, secondary_filters


class TestFindExistingCarnival:
    """Tests for find_existing_carnival."""

    def test_primary_match_on_mysideline_title(self):
        store = InMemoryCarnivalStore()
        stored = store.add(
            title="Renamed by admin", mysideline_title="NSW Masters Rugby League Carnival (15/09/2099)",
            date=dt.date(2099, 10, 1), is_manually_entered=False,
        )
        assert asyncio.run(find_existing_carnival(store, make_event())) == stored

    def test_manual_carnivals_are_never_matched(self):
        store = InMemoryCarnivalStore()
        store.add(
            title="NSW Masters Rugby League Carnival",
            mysideline_title="NSW Masters Rugby League Carnival (15/09/2099)",
            date=dt.date(2099, 9, 15), is_manually_entered=True,
        )
        assert asyncio.run(find_existing_carnival(store, make_event())) is None

    def test_tertiary_match_on_clean_title_and_date(self):
        store = InMemoryCarnivalStore()
        stored = store.add(
            title="NSW Masters Rugby League Carnival", mysideline_title="Old raw title",
            date=dt.date(2099, 9, 15), is_manually_entered=False,
        )
        assert asyncio.run(find_existing_carnival(store, make_event())) == stored

    def test_no_match(self):
        store = InMemoryCarnivalStore()
        store.add(title="QLD Masters", mysideline_title="QLD Masters (1/1/2099)",
                  date=dt.date(2099, 1, 1), is_manually_entered=False)
        assert asyncio.run(find_existing_carnival(store, make_event())) is None


class TestSecondaryFilters:
    """Tests for secondary_filters."""

    def test_only_present_fields(self):
        event = make_event(location_address="  ")
        assert set(secondary_filters(event)) == {"mysideline_title", "date"}

    def test_includes_address(self):
        assert set(secondary_filters(make_event())) == {"mysideline_title", "date", "location_address"}
