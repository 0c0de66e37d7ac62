"""Page fetcher for Luma calendars and event pages."""
import logging
from typing import Any, Dict, List, Optional

import requests

from scraper.structured_data import extract_raw_events
from sync_config import SyncConfig

logger = logging.getLogger(__name__)


class FetchError(Exception):
    """Raised when a Luma page cannot be retrieved."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class LumaCalendarScraper:
    """Scraper for public Luma calendar pages."""

    def __init__(self, config: Optional[SyncConfig] = None):
        """
        Initialize the calendar scraper.

        Args:
            config: Sync configuration (base URLs, headers, optional timeout)
        """
        self.config = config or SyncConfig()

    @property
    def headers(self) -> Dict[str, str]:
        return {
            'User-Agent': self.config.user_agent,
            'Accept': self.config.accept
        }

    def fetch_events(self, calendar_id: str) -> List[Dict[str, Any]]:
        """
        Fetch a calendar page and extract its raw JSON-LD events.

        Args:
            calendar_id: Luma calendar identifier (e.g. "fruteroclub")

        Returns:
            List of raw event dicts

        Raises:
            FetchError: If the calendar page cannot be fetched
        """
        html_content = self.fetch_calendar_html(calendar_id)
        events = extract_raw_events(html_content)

        logger.info(f"Extracted {len(events)} raw events from calendar {calendar_id}")
        return events

    def fetch_calendar_html(self, calendar_id: str) -> str:
        """Fetch the HTML of a calendar page."""
        url = f"{self.config.calendar_base_url}/{calendar_id}"
        return self._fetch_html(url, label='calendar')

    def fetch_event_html(self, slug: str) -> str:
        """Fetch the HTML of a single event page."""
        url = self.event_url(slug)
        return self._fetch_html(url, label='event')

    def event_url(self, slug: str) -> str:
        return f"{self.config.event_base_url}/{slug}"

    def _fetch_html(self, url: str, label: str) -> str:
        """
        Fetch a page in a single attempt.

        Args:
            url: Page URL
            label: Page kind used in error messages

        Returns:
            HTML content as string

        Raises:
            FetchError: On a transport failure or a non-2xx status
        """
        logger.info(f"Fetching {label} page: {url}")

        try:
            response = requests.get(
                url,
                headers=self.headers,
                allow_redirects=True,
                timeout=self.config.timeout
            )
        except requests.RequestException as e:
            logger.error(f"Request for {url} failed: {e}")
            raise FetchError(f"Failed to fetch {label}: {e}") from e

        if not 200 <= response.status_code < 300:
            logger.error(f"Failed to fetch {label}: {response.status_code}")
            raise FetchError(
                f"Failed to fetch {label}: {response.status_code}",
                status_code=response.status_code
            )

        return response.text
