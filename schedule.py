import json
import logging
import re
import threading
import uuid
from dataclasses import dataclass, field
from datetime import time
from typing import Optional, Sequence, Tuple

import requests
import requests.exceptions
from bs4 import BeautifulSoup

import config

LOGGER = logging.getLogger(__name__)

# --- Parsing Configurations ---
TIME_PATTERN = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*$")
REQUIRED_FIELDS = ("startTime", "title", "type")

PROMPT_TEMPLATE = """Parse the following conference schedule text into a structured JSON array.
Infer start times and end times where possible. If an end time is not provided, assume it ends when the next item starts.
For the last item, assume a default duration of 60 minutes if not specified.
Categorize the event type.

Schedule Text:
{text}"""

RESPONSE_SCHEMA = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {
            "startTime": {"type": "STRING", "description": "24-hour format HH:MM"},
            "endTime": {"type": "STRING", "description": "24-hour format HH:MM"},
            "title": {"type": "STRING"},
            "description": {"type": "STRING"},
            "type": {"type": "STRING", "enum": list(config.ITEM_TYPES)},
        },
        "required": list(REQUIRED_FIELDS),
    },
}


class IngestionError(Exception):
    """The schedule could not be obtained or did not match the expected shape."""


@dataclass(frozen=True)
class ScheduleItem:
    id: str
    start_time: time
    title: str
    type: str = 'other'
    end_time: Optional[time] = None
    description: Optional[str] = None

    def to_dict(self):
        return {
            'id': self.id,
            'startTime': self.start_time.strftime('%H:%M'),
            'endTime': self.end_time.strftime('%H:%M') if self.end_time else None,
            'title': self.title,
            'description': self.description,
            'type': self.type,
        }


@dataclass
class ScheduleStore:
    """Holds the current schedule; only ever replaced as a whole."""

    _items: Tuple[ScheduleItem, ...] = ()
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    @property
    def items(self) -> Tuple[ScheduleItem, ...]:
        with self._lock:
            return self._items

    def replace(self, items: Sequence[ScheduleItem]) -> Tuple[ScheduleItem, ...]:
        snapshot = tuple(items)
        with self._lock:
            self._items = snapshot
        return snapshot

    def clear(self):
        self.replace(())

    def find(self, item_id) -> Optional[ScheduleItem]:
        return next((i for i in self.items if i.id == item_id), None)


# --- Helper Functions for Validation ---

def parse_time_of_day(value):
    """Parses 'HH:MM' (24h) into a datetime.time, raising ValueError otherwise."""
    if not isinstance(value, str):
        raise ValueError(f"time must be a string, got {value!r}")
    m = TIME_PATTERN.match(value)
    if not m:
        raise ValueError(f"time {value!r} is not in HH:MM format")
    return time(hour=int(m.group(1)), minute=int(m.group(2)))


def new_item_id(index):
    return f"event-{index}-{uuid.uuid4().hex[:12]}"


def build_schedule(entries):
    """
    Validates raw entries and turns them into ScheduleItems with fresh ids.
    All-or-nothing: the first bad entry raises IngestionError.
    """
    if not isinstance(entries, list):
        raise IngestionError(f"Schedule must be a list, got {type(entries).__name__}.")

    items = []
    for index, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise IngestionError(f"Entry {index} is not an object.")

        missing = [f for f in REQUIRED_FIELDS if entry.get(f) in (None, "")]
        if missing:
            raise IngestionError(f"Entry {index} is missing required field(s): {', '.join(missing)}.")

        item_type = entry['type']
        if item_type not in config.ITEM_TYPES:
            raise IngestionError(f"Entry {index} has unknown type {item_type!r}.")

        try:
            start = parse_time_of_day(entry['startTime'])
            end = parse_time_of_day(entry['endTime']) if entry.get('endTime') else None
        except ValueError as e:
            raise IngestionError(f"Entry {index}: {e}") from e

        items.append(ScheduleItem(
            id=new_item_id(index),
            start_time=start,
            end_time=end,
            title=str(entry['title']),
            description=entry.get('description') or None,
            type=item_type,
        ))
    return items


def parse_schedule_payload(raw_text):
    """Decodes the service's JSON text and builds the schedule from it."""
    try:
        data = json.loads(raw_text or "[]")
    except ValueError as e:
        raise IngestionError(f"Schedule service returned invalid JSON: {e}") from e
    return build_schedule(data)


# --- External Parsing Service ---

def request_schedule_json(text, session=None):
    """Asks the text-understanding service to structure the schedule; returns its JSON text."""
    if not config.GEMINI_API_KEY:
        raise IngestionError("GEMINI_API_KEY is not configured.")

    http = session or requests
    url = config.GEMINI_API_URL.format(model=config.GEMINI_MODEL)
    body = {
        "contents": [{"parts": [{"text": PROMPT_TEMPLATE.format(text=text)}]}],
        "generationConfig": {
            "responseMimeType": "application/json",
            "responseSchema": RESPONSE_SCHEMA,
        },
    }
    LOGGER.info("Requesting schedule parse from %s", config.GEMINI_MODEL)
    try:
        response = http.post(
            url,
            json=body,
            headers={'x-goog-api-key': config.GEMINI_API_KEY},
            timeout=config.REQUEST_TIMEOUT,
        )
        response.raise_for_status()
        payload = response.json()
    except requests.exceptions.RequestException as e:
        raise IngestionError(f"Schedule service request failed: {e}") from e
    except ValueError as e:
        raise IngestionError(f"Schedule service returned a non-JSON envelope: {e}") from e

    try:
        return payload['candidates'][0]['content']['parts'][0]['text']
    except (KeyError, IndexError, TypeError) as e:
        raise IngestionError("Schedule service response had no content.") from e


def parse_schedule_from_text(text, session=None):
    if not text or not text.strip():
        raise IngestionError("Schedule text is empty.")
    try:
        items = parse_schedule_payload(request_schedule_json(text, session=session))
    except IngestionError as e:
        LOGGER.error("Schedule parsing failed: %s", e)
        raise
    LOGGER.info("Parsed %d schedule item(s)", len(items))
    return items


# --- Other Schedule Sources ---

def fetch_schedule_text(url, session=None):
    """Downloads an agenda page and returns its visible text."""
    http = session or requests
    LOGGER.info("Fetching schedule page from: %s", url)
    try:
        resp = http.get(url, headers=config.HEADERS, timeout=config.REQUEST_TIMEOUT)
        resp.raise_for_status()
    except requests.exceptions.RequestException as e:
        raise IngestionError(f"Error fetching URL: {e}") from e

    soup = BeautifulSoup(resp.text, 'lxml')
    for tag in soup(['script', 'style', 'noscript']):
        tag.decompose()
    root = soup.find('article') or soup.body or soup
    return root.get_text("\n", strip=True)


def load_schedule_file(path):
    """Loads a schedule saved in the service's JSON format."""
    try:
        with open(path, 'r', encoding='utf-8') as f:
            raw = f.read()
    except OSError as e:
        raise IngestionError(f"Could not read schedule file '{path}': {e}") from e
    return parse_schedule_payload(raw)
