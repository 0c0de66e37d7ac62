"""JSON-LD extraction from raw calendar HTML."""
import json
import logging
import re
from enum import Enum
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

# Text scan instead of a DOM parse so broken markup elsewhere on the page
# cannot hide the blocks.
JSON_LD_PATTERN = re.compile(
    r'<script[^>]*type=["\']application/ld\+json["\'][^>]*>(.*?)</script>',
    re.IGNORECASE | re.DOTALL
)


class BlockShape(Enum):
    """Shapes a JSON-LD block can take on a calendar page."""
    ORGANIZATION = 'organization'
    SINGLE_EVENT = 'single_event'
    EVENT_ARRAY = 'event_array'
    GRAPH = 'graph'


def find_json_ld_blocks(html_content: str) -> List[str]:
    """
    Find the text of every JSON-LD script block in the page.

    Args:
        html_content: Raw HTML

    Returns:
        Block bodies in document order
    """
    return [match.group(1) for match in JSON_LD_PATTERN.finditer(html_content)]


def classify_block(data: Any) -> Optional[BlockShape]:
    """
    Classify a parsed JSON-LD value by its discriminant fields.

    Args:
        data: Parsed JSON value

    Returns:
        BlockShape or None if the block carries no events
    """
    if isinstance(data, list):
        return BlockShape.EVENT_ARRAY

    if not isinstance(data, dict):
        return None

    if data.get('@type') == 'Organization' and isinstance(data.get('events'), list):
        return BlockShape.ORGANIZATION
    if data.get('@type') == 'Event':
        return BlockShape.SINGLE_EVENT
    if isinstance(data.get('@graph'), list):
        return BlockShape.GRAPH

    return None


def _is_event(item: Any) -> bool:
    return isinstance(item, dict) and item.get('@type') == 'Event'


def _events_from_organization(data: Dict[str, Any]) -> List[Dict[str, Any]]:
    return [item for item in data['events'] if _is_event(item)]


def _events_from_single(data: Dict[str, Any]) -> List[Dict[str, Any]]:
    return [data]


def _events_from_array(data: List[Any]) -> List[Dict[str, Any]]:
    return [item for item in data if _is_event(item)]


def _events_from_graph(data: Dict[str, Any]) -> List[Dict[str, Any]]:
    return [item for item in data['@graph'] if _is_event(item)]


EXTRACTORS = {
    BlockShape.ORGANIZATION: _events_from_organization,
    BlockShape.SINGLE_EVENT: _events_from_single,
    BlockShape.EVENT_ARRAY: _events_from_array,
    BlockShape.GRAPH: _events_from_graph,
}


def extract_raw_events(html_content: str) -> List[Dict[str, Any]]:
    """
    Extract raw event objects from all JSON-LD blocks in the page.

    Blocks that are not valid JSON are skipped. Events are returned in the
    order their blocks appear; the same event appearing in two blocks is
    returned twice.

    Args:
        html_content: Raw HTML

    Returns:
        List of raw JSON-LD event dicts
    """
    raw_events = []

    for index, block in enumerate(find_json_ld_blocks(html_content)):
        try:
            data = json.loads(block)
        except json.JSONDecodeError as e:
            logger.debug(f"Skipping JSON-LD block {index}: {e}")
            continue

        shape = classify_block(data)
        if shape is None:
            continue

        events = EXTRACTORS[shape](data)
        logger.debug(f"JSON-LD block {index} ({shape.value}) yielded {len(events)} events")
        raw_events.extend(events)

    return raw_events
