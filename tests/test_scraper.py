"""Unit tests for scraper mode selection and event validation."""
import asyncio

import pytest

from conftest import make_event
from mysideline_sync.config import MySidelineConfig, SyncConfig
from mysideline_sync.errors import EventValidationError, PageLoadError
from mysideline_sync.scraper import MySidelineScraper


def _scraper(tmp_path, environment="production", **mysideline):
    cfg = SyncConfig(mysideline=MySidelineConfig(**mysideline), environment=environment, temp_dir=tmp_path)
    return MySidelineScraper(cfg)


class TestScrapeEvents:
    """Tests for scrape_events."""

    def test_mock_mode(self, tmp_path):
        events = asyncio.run(_scraper(tmp_path, use_mock=True).scrape_events())
        assert len(events) == 6

    def test_scraping_disabled_returns_nothing(self, tmp_path, monkeypatch):
        scraper = _scraper(tmp_path, enable_scraping=False)

        async def must_not_run():
            raise AssertionError("browser launched")

        monkeypatch.setattr(scraper, "fetch_events_with_browser", must_not_run)
        assert asyncio.run(scraper.scrape_events()) == []

    def test_development_falls_back_to_mock(self, tmp_path, monkeypatch):
        scraper = _scraper(tmp_path, environment="development")

        async def broken():
            raise PageLoadError("no browser")

        monkeypatch.setattr(scraper, "fetch_events_with_browser", broken)
        assert len(asyncio.run(scraper.scrape_events())) == 6

    def test_production_failure_propagates(self, tmp_path, monkeypatch):
        scraper = _scraper(tmp_path)

        async def broken():
            raise PageLoadError("no browser")

        monkeypatch.setattr(scraper, "fetch_events_with_browser", broken)
        with pytest.raises(PageLoadError):
            asyncio.run(scraper.scrape_events())


class TestValidateAndClean:
    """Tests for validate_and_clean."""

    def test_trims_and_blanks(self):
        event = make_event(title="  NSW Masters Carnival  ", subtitle="   ", description=" Open to all ")
        cleaned = MySidelineScraper.validate_and_clean(event)
        assert cleaned.title == "NSW Masters Carnival"
        assert cleaned.subtitle is None
        assert cleaned.description == "Open to all"

    def test_email_is_lowercased(self):
        cleaned = MySidelineScraper.validate_and_clean(make_event(organiser_contact_email=" Jane@NSWMasters.com.AU "))
        assert cleaned.organiser_contact_email == "jane@nswmasters.com.au"

    def test_invalid_email_is_dropped(self):
        cleaned = MySidelineScraper.validate_and_clean(make_event(organiser_contact_email="not an email"))
        assert cleaned.organiser_contact_email is None

    def test_empty_title_is_rejected(self):
        with pytest.raises(EventValidationError):
            MySidelineScraper.validate_and_clean(make_event(title="   "))

    def test_process_events_drops_invalid(self, tmp_path):
        scraper = _scraper(tmp_path)
        events = scraper.process_events([make_event(), make_event(title="")])
        assert len(events) == 1


class TestSummaryAndConfiguration:
    """Tests for summarize_events and the configuration checks."""

    def test_summary_counts(self):
        events = [
            make_event(registration_link="https://example.org/reg/1"),
            make_event(location_address=None),
        ]
        summary = MySidelineScraper.summarize_events(events)
        assert summary.total_events == 2
        assert summary.valid_events == 2
        assert summary.events_with_location == 1
        assert summary.events_with_registration == 1
        assert "Event 2: Missing location information" in summary.issues

    def test_configuration_checks(self, tmp_path):
        scraper = _scraper(tmp_path)
        assert scraper.is_properly_configured() is True
        info = scraper.configuration_info()
        assert info["enable_scraping"] is True
        assert info["timeout_ms"] == 60000

    def test_missing_url_is_reported(self, tmp_path):
        assert _scraper(tmp_path, url="").is_properly_configured() is False
