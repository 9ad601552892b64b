"""Configuration loaded from environment variables."""
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping

from processor.errors import ConfigurationError
from processor.models import Destination

logger = logging.getLogger(__name__)


@dataclass
class Settings:
    """Run configuration."""
    destinations: List[Destination] = field(default_factory=list)
    log_level: str = 'INFO'
    timeout_seconds: int = 30
    max_retries: int = 3

    @property
    def transform_names(self) -> Dict[str, str]:
        return {
            destination.calendar_id: destination.transform
            for destination in self.destinations
            if destination.transform
        }


def load_settings(environ: Mapping[str, str]) -> Settings:
    """
    Read settings from environment variables.

    SUBSCRIPTIONS holds a JSON list of {"calendar_id", "uri", "transform"}
    records. Without it, GOOGLE_CALENDAR_IDS and SUBSCRIPTION_URIS are read
    as comma-separated lists paired by position.

    Args:
        environ: Environment variables

    Returns:
        Settings instance

    Raises:
        ConfigurationError: If the configuration is missing or invalid
    """
    if environ.get('SUBSCRIPTIONS'):
        destinations = parse_subscriptions(environ['SUBSCRIPTIONS'])
    else:
        destinations = parse_paired_lists(
            environ.get('GOOGLE_CALENDAR_IDS', ''),
            environ.get('SUBSCRIPTION_URIS', '')
        )

    if not destinations:
        raise ConfigurationError("No subscriptions configured")

    seen = set()
    for destination in destinations:
        if destination.calendar_id in seen:
            raise ConfigurationError(
                f"Calendar {destination.calendar_id} is configured more than once"
            )
        seen.add(destination.calendar_id)

    return Settings(
        destinations=destinations,
        log_level=environ.get('LOG_LEVEL', 'INFO'),
        timeout_seconds=_int_setting(environ, 'TIMEOUT_SECONDS', 30),
        max_retries=_int_setting(environ, 'MAX_RETRIES', 3)
    )


def parse_subscriptions(raw: str) -> List[Destination]:
    """Parse the SUBSCRIPTIONS JSON list."""
    try:
        records = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"SUBSCRIPTIONS is not valid JSON: {e}") from e

    if not isinstance(records, list):
        raise ConfigurationError("SUBSCRIPTIONS must be a JSON list")

    return [_parse_record(index, record) for index, record in enumerate(records)]


def parse_paired_lists(calendar_ids: str, uris: str) -> List[Destination]:
    """Pair comma-separated calendar ids and feed URIs by position."""
    ids = [value.strip() for value in calendar_ids.split(',') if value.strip()]
    feeds = [value.strip() for value in uris.split(',') if value.strip()]

    if len(ids) != len(feeds):
        raise ConfigurationError(
            f"GOOGLE_CALENDAR_IDS has {len(ids)} entries but "
            f"SUBSCRIPTION_URIS has {len(feeds)}"
        )

    return [Destination(calendar_id=c, uri=u) for c, u in zip(ids, feeds)]


def _parse_record(index: int, record: Any) -> Destination:
    if not isinstance(record, dict):
        raise ConfigurationError(f"Subscription #{index} must be an object")

    for key in ('calendar_id', 'uri'):
        value = record.get(key)
        if not isinstance(value, str) or not value.strip():
            raise ConfigurationError(f"Subscription #{index} is missing '{key}'")

    transform = record.get('transform')
    if transform is not None and not isinstance(transform, str):
        raise ConfigurationError(f"Subscription #{index} has a non-string 'transform'")

    unknown = set(record) - {'calendar_id', 'uri', 'transform'}
    if unknown:
        logger.warning(f"Subscription #{index} has unknown keys: {sorted(unknown)}")

    return Destination(
        calendar_id=record['calendar_id'].strip(),
        uri=record['uri'].strip(),
        transform=transform or None
    )


def _int_setting(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(name)
    if raw is None or raw == '':
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from e
