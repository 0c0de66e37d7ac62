"""Normalizer for raw JSON-LD event objects."""
import logging
import math
import re
from typing import Any, Dict, List, Optional

from processor.models import Coordinates, NormalizedEvent
from sync_config import SyncConfig

logger = logging.getLogger(__name__)

# Matches lu.ma/<slug> and luma.com/<slug>, with or without scheme and www.
# The slug must be the whole path: nested paths such as /event/manage/... do not match.
SLUG_PATTERN = re.compile(
    r'(?:^|[/.])(?:lu\.ma|luma\.com)/([A-Za-z0-9_-]+)/?(?:[?#]|$)'
)


def extract_slug(url: str) -> Optional[str]:
    """
    Extract the Luma slug from an event URL.

    Args:
        url: Event URL (e.g. "https://lu.ma/talk-1")

    Returns:
        Slug or None if the URL is not a Luma event URL
    """
    if not isinstance(url, str):
        return None

    match = SLUG_PATTERN.search(url.strip())
    return match.group(1) if match else None


def resolve_url(raw_event: Dict[str, Any]) -> Optional[str]:
    """Prefer the @id identifier, falling back to url."""
    for key in ('@id', 'url'):
        value = raw_event.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def resolve_location(raw_event: Dict[str, Any]) -> Optional[str]:
    """Street address from location.address.streetAddress."""
    location = raw_event.get('location')
    if not isinstance(location, dict):
        return None

    address = location.get('address')
    if not isinstance(address, dict):
        return None

    street = address.get('streetAddress')
    return street if isinstance(street, str) and street else None


def _to_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None

    # NaN and Infinity parse as floats but are not positions.
    return number if math.isfinite(number) else None


def resolve_coordinates(raw_event: Dict[str, Any]) -> Optional[Coordinates]:
    """
    Coordinates from location.geo.

    Latitude and longitude may be numbers or numeric strings. Both axes must
    resolve to finite values, otherwise no coordinates are returned.
    """
    location = raw_event.get('location')
    if not isinstance(location, dict):
        return None

    geo = location.get('geo')
    if not isinstance(geo, dict):
        return None

    lat = _to_float(geo.get('latitude'))
    lng = _to_float(geo.get('longitude'))
    if lat is None or lng is None:
        return None

    return Coordinates(lat=lat, lng=lng)


def resolve_cover_image(raw_event: Dict[str, Any]) -> Optional[str]:
    """First entry of an image list, or the image string itself."""
    image = raw_event.get('image')

    if isinstance(image, list):
        if image and isinstance(image[0], str):
            return image[0]
        return None
    if isinstance(image, str) and image:
        return image

    return None


class EventNormalizer:
    """Maps raw JSON-LD event objects to NormalizedEvent records."""

    def __init__(self, config: Optional[SyncConfig] = None):
        self.config = config or SyncConfig()

    def process_events(self, raw_events: List[Dict[str, Any]]) -> List[NormalizedEvent]:
        """
        Normalize raw events, dropping those without a resolvable slug.

        Args:
            raw_events: Raw JSON-LD event dicts from the extractor

        Returns:
            List of NormalizedEvent objects
        """
        normalized_events = []

        for raw_event in raw_events:
            event = self.normalize_event(raw_event)
            if event:
                normalized_events.append(event)

        logger.info(
            f"Normalized {len(normalized_events)} events out of "
            f"{len(raw_events)} raw events"
        )
        return normalized_events

    def normalize_event(self, raw_event: Dict[str, Any]) -> Optional[NormalizedEvent]:
        """
        Normalize a single raw event.

        Args:
            raw_event: Raw JSON-LD event dict

        Returns:
            NormalizedEvent or None if no URL or slug can be resolved
        """
        url = resolve_url(raw_event)
        if not url:
            logger.debug(f"Dropping event without @id or url: {raw_event.get('name')!r}")
            return None

        slug = extract_slug(url)
        if not slug:
            logger.debug(f"Dropping event with unrecognized URL: {url}")
            return None

        name = raw_event.get('name')
        title = name if isinstance(name, str) and name else self.config.fallback_title

        end_date = raw_event.get('endDate') or None

        return NormalizedEvent(
            slug=slug,
            url=url,
            title=title,
            start_date=raw_event.get('startDate'),
            end_date=end_date,
            location=resolve_location(raw_event),
            coordinates=resolve_coordinates(raw_event),
            cover_image=resolve_cover_image(raw_event)
        )
