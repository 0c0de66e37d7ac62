"""AWS Lambda handler for the admin "fetch event from Luma" endpoint."""
import json
import logging
from typing import Dict, Any

from log_config import setup_logging
from processor.metadata_extractor import (
    FETCH_ERROR,
    EventMetadataExtractor,
    MetadataExtractionError,
)
from sync_config import SyncConfig


def _response(status_code: int, body: Dict[str, Any]) -> Dict[str, Any]:
    return {
        'statusCode': status_code,
        'headers': {'Content-Type': 'application/json'},
        'body': json.dumps(body)
    }


def _error(message: str, code: str, status_code: int) -> Dict[str, Any]:
    return _response(status_code, {'error': {'message': message, 'code': code}})


def _parse_url(event: Dict[str, Any]) -> str:
    """
    Read and validate the url field of the request body.

    Raises:
        ValueError: If the body is not JSON or has no http(s) url
    """
    body = event.get('body') or '{}'
    payload = json.loads(body) if isinstance(body, str) else body
    if not isinstance(payload, dict):
        raise ValueError('Request body must be a JSON object')

    url = payload.get('url')
    if not isinstance(url, str) or not url.strip():
        raise ValueError('url is required')

    url = url.strip()
    if not url.lower().startswith(('http://', 'https://')):
        raise ValueError('Invalid URL format')

    return url


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Handle POST {"url": ...} from API Gateway (proxy integration).

    Args:
        event: API Gateway proxy event
        context: Lambda context object

    Returns:
        200 with the event metadata, or an error envelope
        {"error": {"message", "code"}}
    """
    config = SyncConfig.from_env()
    setup_logging(config.log_level)
    logger = logging.getLogger(__name__)

    method = event.get('httpMethod') or event.get('requestContext', {}).get('http', {}).get('method')
    if method and method.upper() != 'POST':
        return _error(f"Method {method} not allowed", 'METHOD_NOT_ALLOWED', 405)

    try:
        url = _parse_url(event)
    except ValueError as e:
        return _error(str(e), 'VALIDATION_ERROR', 400)

    try:
        metadata = EventMetadataExtractor(config=config).extract(url)
    except MetadataExtractionError as e:
        logger.warning(f"Metadata extraction failed for {url}: {e.message}", extra={'code': e.code})
        return _error(e.message, e.code, e.status_code)
    except Exception as e:
        logger.error(f"Error fetching lu.ma event {url}: {e}", exc_info=True)
        return _error('Failed to fetch event metadata', FETCH_ERROR, 500)

    logger.info(f"Fetched metadata for {metadata.slug}")
    return _response(200, metadata.to_dict())
