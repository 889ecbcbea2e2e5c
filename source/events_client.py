"""Client for the geocoded events API."""
import logging
import time
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

import requests
from bs4 import BeautifulSoup

from calendar_events.models import Event, Location, ResolvedLocation, UnresolvedLocation
from geometry.bounds import is_valid_lat_lng

logger = logging.getLogger(__name__)


class EventsApiClient:
    """Fetches already geocoded events from the event pipeline API."""

    DEFAULT_BASE_URL = "http://localhost:3000"
    EVENTS_PATH = "/api/events"

    def __init__(self, base_url: Optional[str] = None, timeout: int = 30):
        """
        Initialize the events client.

        Args:
            base_url: Root URL of the events API
            timeout: HTTP request timeout in seconds (default: 30)
        """
        self.base_url = (base_url or self.DEFAULT_BASE_URL).rstrip('/')
        self.timeout = timeout

    def fetch_events(
        self,
        event_source_id: str,
        time_min: Optional[str] = None,
        time_max: Optional[str] = None
    ) -> List[Event]:
        """
        Fetch events for an event source.

        Args:
            event_source_id: Event source id, e.g. "gc:calendar@example.com"
            time_min: Optional ISO 8601 lower time bound
            time_max: Optional ISO 8601 upper time bound

        Returns:
            List of Event objects
        """
        logger.info(f"Fetching events for source {event_source_id}")

        payload = self._fetch_events_json(event_source_id, time_min, time_max)
        events = self._parse_events(payload)

        unknown = sum(1 for event in events if not event.has_resolved_location)
        logger.info(
            f"Successfully fetched {len(events)} events, "
            f"{unknown} with unknown locations"
        )
        return events

    def _fetch_events_json(
        self,
        event_source_id: str,
        time_min: Optional[str],
        time_max: Optional[str]
    ) -> Dict[str, Any]:
        """
        Fetch the events JSON with retry logic.

        Returns:
            Decoded JSON response

        Raises:
            requests.RequestException: If all retry attempts fail
        """
        params = {'id': event_source_id}
        if time_min:
            params['timeMin'] = time_min
        if time_max:
            params['timeMax'] = time_max

        url = f"{self.base_url}{self.EVENTS_PATH}"
        max_retries = 3
        base_delay = 1  # seconds

        for attempt in range(max_retries):
            try:
                logger.info(f"Fetching events JSON (attempt {attempt + 1}/{max_retries})")
                response = requests.get(url, params=params, timeout=self.timeout)
                response.raise_for_status()
                return response.json()

            except requests.RequestException as e:
                if attempt < max_retries - 1:
                    delay = base_delay * (2 ** attempt)
                    logger.warning(
                        f"Request failed (attempt {attempt + 1}/{max_retries}): {e}. "
                        f"Retrying in {delay} seconds..."
                    )
                    time.sleep(delay)
                else:
                    logger.error(
                        f"All {max_retries} retry attempts failed. Last error: {e}"
                    )
                    raise

    def _parse_events(self, payload: Dict[str, Any]) -> List[Event]:
        """
        Parse events from the API response.

        Args:
            payload: Decoded JSON with an "events" list

        Returns:
            List of Event objects, invalid items skipped
        """
        items = (payload.get('events') or []) if isinstance(payload, dict) else []
        events = []

        for item in items:
            try:
                event = self._parse_event(item)
                if event:
                    events.append(event)
            except (TypeError, ValueError, AttributeError) as e:
                logger.warning(f"Failed to parse event item: {e}")
                continue

        return events

    def _parse_event(self, item: Dict[str, Any]) -> Optional[Event]:
        """
        Parse a single event item.

        Args:
            item: Event JSON object

        Returns:
            Event object or None if required fields are missing
        """
        event_id = item.get('id')
        name = item.get('name')
        start = parse_timestamp(item.get('start'))
        if not event_id or not name or start is None:
            logger.warning(f"Skipping event missing id, name or start: {item.get('id')!r}")
            return None

        end = parse_timestamp(item.get('end')) or start

        description, links = clean_description(item.get('description') or '')
        description_urls = list(item.get('description_urls') or [])
        for link in links:
            if link not in description_urls:
                description_urls.append(link)

        return Event(
            id=str(event_id),
            name=str(name),
            start=start,
            end=end,
            location=item.get('location') or '',
            description=description,
            original_event_url=item.get('original_event_url'),
            description_urls=tuple(description_urls),
            resolved_location=parse_location(item.get('resolved_location'), item.get('location') or '')
        )


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO 8601 timestamp.

    Args:
        value: Timestamp text, "Z" suffix allowed

    Returns:
        datetime, naive if the text has no offset, or None if unparseable
    """
    if not value or not isinstance(value, str):
        return None

    text = value.strip()
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        logger.warning(f"Invalid timestamp: {value!r}")
        return None


def parse_location(raw: Optional[Dict[str, Any]], location_text: str = '') -> Optional[Location]:
    """
    Parse a resolved_location JSON object.

    Only a "resolved" status with valid coordinates gives a
    ResolvedLocation; anything else is unresolved.

    Args:
        raw: resolved_location JSON object, may be None
        location_text: The event's free-text location

    Returns:
        Location, or None when the event has no location record
    """
    if not raw:
        return None

    original = raw.get('original_location') or location_text
    if raw.get('status') != 'resolved':
        return UnresolvedLocation(original_location=original)

    try:
        lat = float(raw.get('lat'))
        lng = float(raw.get('lng'))
    except (TypeError, ValueError):
        return UnresolvedLocation(original_location=original)

    if not is_valid_lat_lng(lat, lng):
        return UnresolvedLocation(original_location=original)

    return ResolvedLocation(
        lat=lat,
        lng=lng,
        formatted_address=raw.get('formatted_address') or '',
        types=tuple(raw.get('types') or ()),
        original_location=original
    )


def clean_description(description: str) -> Tuple[str, List[str]]:
    """
    Reduce an HTML description to plain text.

    Args:
        description: Description, possibly containing HTML

    Returns:
        Tuple of (plain text, link targets found in anchors)
    """
    if '<' not in description:
        return description.strip(), []

    soup = BeautifulSoup(description, 'html.parser')
    links = [a.get('href') for a in soup.find_all('a') if a.get('href')]
    text = soup.get_text(separator=' ', strip=True)
    return text, links
