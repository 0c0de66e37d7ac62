"""Runtime configuration for the Luma calendar sync."""
import os
from dataclasses import dataclass
from typing import Optional


@dataclass
class SyncConfig:
    """Settings and default values shared by the sync components."""
    table_name: str = 'luma-events'
    calendar_id: Optional[str] = None
    log_level: str = 'INFO'
    timeout: Optional[int] = None
    calendar_base_url: str = 'https://luma.com'
    event_base_url: str = 'https://lu.ma'
    user_agent: str = 'Mozilla/5.0 (compatible; Poktapok/1.0; +https://poktapok.com)'
    accept: str = 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8'
    default_timezone: str = 'America/Mexico_City'
    default_event_type: str = 'in-person'
    default_status: str = 'upcoming'
    default_registration_type: str = 'free'
    auto_publish: bool = True
    fallback_title: str = 'Untitled Event'

    @classmethod
    def from_env(cls) -> 'SyncConfig':
        """
        Build configuration from environment variables.

        Returns:
            SyncConfig with environment overrides applied
        """
        timeout = os.environ.get('TIMEOUT_SECONDS')
        return cls(
            table_name=os.environ.get('TABLE_NAME', 'luma-events'),
            calendar_id=os.environ.get('CALENDAR_ID') or None,
            log_level=os.environ.get('LOG_LEVEL', 'INFO'),
            timeout=int(timeout) if timeout else None,
            default_timezone=os.environ.get('DEFAULT_TIMEZONE', 'America/Mexico_City'),
            default_event_type=os.environ.get('DEFAULT_EVENT_TYPE', 'in-person'),
            auto_publish=os.environ.get('AUTO_PUBLISH', 'true').lower() not in ('0', 'false', 'no')
        )
