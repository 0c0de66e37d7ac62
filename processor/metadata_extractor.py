"""Single-URL metadata extraction for pre-filling the admin event form."""
import logging
from datetime import datetime, timezone
from typing import Optional

from processor.event_normalizer import extract_slug, resolve_coordinates, resolve_location
from processor.models import EventMetadata
from scraper import html_patterns
from scraper.luma_calendar import FetchError, LumaCalendarScraper
from scraper.structured_data import extract_raw_events
from sync_config import SyncConfig

logger = logging.getLogger(__name__)

INVALID_LUMA_URL = 'INVALID_LUMA_URL'
LUMA_FETCH_FAILED = 'LUMA_FETCH_FAILED'
FETCH_ERROR = 'FETCH_ERROR'


class MetadataExtractionError(Exception):
    """Failure that the admin form can report with a specific code."""

    def __init__(self, message: str, code: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code


class EventMetadataExtractor:
    """Fetches one Luma event page and derives its metadata. Nothing is stored."""

    def __init__(
        self,
        scraper: Optional[LumaCalendarScraper] = None,
        config: Optional[SyncConfig] = None
    ):
        self.config = config or SyncConfig()
        self.scraper = scraper or LumaCalendarScraper(self.config)

    def extract(self, url: str) -> EventMetadata:
        """
        Fetch and parse metadata for a Luma event URL.

        Args:
            url: Event URL as pasted by an admin (lu.ma/xyz or luma.com/xyz)

        Returns:
            EventMetadata for review in the admin form

        Raises:
            MetadataExtractionError: INVALID_LUMA_URL or LUMA_FETCH_FAILED
        """
        slug = extract_slug(url)
        if not slug:
            raise MetadataExtractionError(
                'Invalid lu.ma URL. Expected format: lu.ma/xyz or luma.com/xyz',
                code=INVALID_LUMA_URL
            )

        try:
            html_content = self.scraper.fetch_event_html(slug)
        except FetchError as e:
            raise MetadataExtractionError(
                f"Failed to fetch event from lu.ma: {e.status_code or e.__cause__ or e}",
                code=LUMA_FETCH_FAILED
            ) from e

        return self.parse(html_content, slug)

    def parse(self, html_content: str, slug: str) -> EventMetadata:
        """
        Apply the heuristic chain to an event page.

        Args:
            html_content: Raw event page HTML
            slug: Event slug

        Returns:
            EventMetadata
        """
        title = (
            html_patterns.extract_og_title(html_content)
            or html_patterns.extract_page_title(html_content)
            or self.config.fallback_title
        )

        cover_image = (
            html_patterns.extract_cdn_cover_image(html_content)
            or html_patterns.extract_og_image(html_content)
            or html_patterns.extract_twitter_image(html_content)
        )

        start_date = end_date = location = coordinates = None
        raw_events = extract_raw_events(html_content)
        if raw_events:
            raw_event = raw_events[0]
            start_date = raw_event.get('startDate') or None
            end_date = raw_event.get('endDate') or None
            location = resolve_location(raw_event)
            coordinates = resolve_coordinates(raw_event)

        if not start_date:
            start_date = html_patterns.extract_datetime_attribute(html_content)
        if not start_date:
            logger.info(f"No start date found for {slug}, defaulting to now")
            start_date = datetime.now(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')

        return EventMetadata(
            title=title,
            description=html_patterns.extract_og_description(html_content),
            cover_image=cover_image,
            luma_event_id=html_patterns.extract_luma_event_id(html_content),
            slug=slug,
            event_type=html_patterns.infer_event_type(location),
            start_date=start_date,
            end_date=end_date,
            timezone=html_patterns.extract_timezone(html_content) or self.config.default_timezone,
            location=location,
            coordinates=coordinates,
            hosts=html_patterns.extract_hosts(html_content),
            calendar=html_patterns.extract_calendar_name(html_content),
            registration_type=self.config.default_registration_type,
            source_url=self.scraper.event_url(slug)
        )
