"""Regex heuristics for pulling event metadata out of a Luma event page.

Each function takes the raw HTML and returns a single value or None, so the
chain in the metadata extractor can try them in order of preference.
"""
import html
import re
from typing import Dict, List, Optional

META_TAG_PATTERN = re.compile(r'<meta\b[^>]*>', re.IGNORECASE)
CONTENT_ATTR_PATTERN = re.compile(
    r'\bcontent\s*=\s*(?:"([^"]*)"|\'([^\']*)\')',
    re.IGNORECASE
)
TITLE_PATTERN = re.compile(r'<title[^>]*>([^<]*)</title>', re.IGNORECASE)
CDN_COVER_PATTERN = re.compile(
    r'https://images\.lumacdn\.com/[^"\'\s]*event-covers[^"\'\s]*',
    re.IGNORECASE
)
CDN_SIZE_PATTERN = re.compile(r'width=\d+,height=\d+')
DATETIME_ATTR_PATTERN = re.compile(
    r'datetime="([^"]+)"|data-start-time="([^"]+)"',
    re.IGNORECASE
)
TIMEZONE_PATTERN = re.compile(
    r'timezone["\'\s:=]+([A-Za-z]+/[A-Za-z_/+-]+|UTC)',
    re.IGNORECASE
)
HOSTED_BY_PATTERN = re.compile(r'hosted by[^<]*<[^>]*>([^<]+)', re.IGNORECASE)
EVENT_ID_PATTERN = re.compile(r'evt-[A-Za-z0-9]+')
CALENDAR_PATTERN = re.compile(
    r'data-calendar="([^"]+)"|calendar["\s:]+["\']([^"\']+)["\']',
    re.IGNORECASE
)

COVER_SIZE = 'width=800,height=450'
VIRTUAL_KEYWORDS = ('online', 'virtual', 'zoom')


def meta_content(html_content: str, key: str) -> Optional[str]:
    """
    Content of the first <meta> tag whose property or name equals key.

    Attribute order inside the tag does not matter.
    """
    key_pattern = re.compile(
        r'\b(?:property|name)\s*=\s*["\']' + re.escape(key) + r'["\']',
        re.IGNORECASE
    )

    for match in META_TAG_PATTERN.finditer(html_content):
        tag = match.group(0)
        if not key_pattern.search(tag):
            continue
        content = CONTENT_ATTR_PATTERN.search(tag)
        if content:
            value = content.group(1) if content.group(1) is not None else content.group(2)
            return html.unescape(value) or None

    return None


def extract_og_title(html_content: str) -> Optional[str]:
    return meta_content(html_content, 'og:title')


def extract_page_title(html_content: str) -> Optional[str]:
    match = TITLE_PATTERN.search(html_content)
    if not match:
        return None
    return html.unescape(match.group(1)).strip() or None


def extract_og_description(html_content: str) -> Optional[str]:
    return meta_content(html_content, 'og:description')


def extract_og_image(html_content: str) -> Optional[str]:
    return meta_content(html_content, 'og:image')


def extract_twitter_image(html_content: str) -> Optional[str]:
    return meta_content(html_content, 'twitter:image')


def extract_cdn_cover_image(html_content: str) -> Optional[str]:
    """
    First Luma CDN event-cover URL in the markup.

    Resized CDN URLs (cdn-cgi/image/...) are rewritten to the 800x450 variant.
    """
    match = CDN_COVER_PATTERN.search(html_content)
    if not match:
        return None

    cover_url = html.unescape(match.group(0))
    if 'cdn-cgi/image/' in cover_url:
        cover_url = CDN_SIZE_PATTERN.sub(COVER_SIZE, cover_url, count=1)

    return cover_url


def extract_datetime_attribute(html_content: str) -> Optional[str]:
    """Value of the first datetime= or data-start-time= attribute."""
    match = DATETIME_ATTR_PATTERN.search(html_content)
    if not match:
        return None
    return match.group(1) or match.group(2)


def extract_timezone(html_content: str) -> Optional[str]:
    """IANA zone from a timezone key or attribute."""
    match = TIMEZONE_PATTERN.search(html_content)
    return match.group(1) if match else None


def infer_event_type(location: Optional[str]) -> str:
    """Classify as virtual when the location names an online venue."""
    if location:
        lowered = location.lower()
        if any(keyword in lowered for keyword in VIRTUAL_KEYWORDS):
            return 'virtual'
    return 'in-person'


def extract_hosts(html_content: str) -> List[Dict[str, str]]:
    """Host named in the element following a "Hosted by" label."""
    match = HOSTED_BY_PATTERN.search(html_content)
    if not match:
        return []

    name = html.unescape(match.group(1)).strip()
    return [{'name': name}] if name else []


def extract_luma_event_id(html_content: str) -> Optional[str]:
    match = EVENT_ID_PATTERN.search(html_content)
    return match.group(0) if match else None


def extract_calendar_name(html_content: str) -> Optional[str]:
    match = CALENDAR_PATTERN.search(html_content)
    if not match:
        return None
    return match.group(1) or match.group(2)
