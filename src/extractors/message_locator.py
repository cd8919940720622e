#!/usr/bin/env python3
"""
Message Locator for Gemini Chat Exporter
Finds the message nodes currently present in the document, classifies their
role and picks up a timestamp when the page exposes one.
"""

import re
import logging
from datetime import datetime
from email.utils import parsedate_to_datetime
from typing import List, Optional

from bs4 import Tag

from models import LocatedMessage, MessageRole

logger = logging.getLogger(__name__)

# Gemini renders each turn as sibling <user-query> and <model-response> elements
TURN_SELECTOR = 'user-query, model-response'

MODEL_CONTENT_SELECTOR = (
    '.model-response-text message-content, '
    '.model-response-text .markdown, '
    '.model-response-text'
)

FALLBACK_SELECTOR = ', '.join([
    '[data-message-author-role]',
    '[data-role]',
    '[class*="user-query"]',
    '[class*="user-message"]',
    '[class*="query-text"]',
    '[class*="prompt"]',
    '[class*="model-response"]',
    '[class*="model-message"]',
    '[class*="response-text"]',
    '[class*="assistant"]',
])

ROLE_ATTRIBUTES = ('data-message-author-role', 'data-role', 'data-author')
HUMAN_ROLE_VALUES = ('user', 'human')
HUMAN_CLASS_INDICATORS = ('user', 'query', 'human', 'prompt')

TIMESTAMP_ATTRIBUTES = (
    'data-timestamp',
    'data-time',
    'data-created-at',
    'data-created',
    'data-date',
    'datetime',
)
TIME_ELEMENT_SELECTOR = 'time, [class*="timestamp"]'
ARIA_TIME_PATTERN = re.compile(
    r'\d{4}-\d{2}-\d{2}(?:[T ]\d{2}:\d{2}(?::\d{2})?)?'
    r'|\d{1,2}:\d{2}(?::\d{2})?(?:\s*[AaPp]\.?[Mm]\.?)?'
)
MAX_ANCESTOR_LEVELS = 5

DISPLAY_FORMAT = '%Y-%m-%d %H:%M'
DATE_FORMATS = [
    '%B %d, %Y %I:%M %p',
    '%B %d, %Y',
    '%b %d, %Y %I:%M %p',
    '%b %d, %Y',
    '%m/%d/%Y %I:%M %p',
    '%m/%d/%Y',
]

TITLE_SELECTORS = [
    '[class*="conversation-title"]',
    '[class*="chat-title"]',
    '.title',
    'h1',
]
DEFAULT_TITLE = 'Gemini Chat Export'
MAX_TITLE_LENGTH = 200

def classify_role(element: Tag) -> MessageRole:
    """
    Classify a message element as human or assistant

    An explicit role attribute wins, then class-name vocabulary; anything
    unrecognized is treated as the assistant.
    """
    name = (element.name or '').lower()
    if name == 'user-query':
        return MessageRole.HUMAN
    if name == 'model-response':
        return MessageRole.ASSISTANT

    for attribute in ROLE_ATTRIBUTES:
        value = element.get(attribute)
        if value:
            if value.strip().lower() in HUMAN_ROLE_VALUES:
                return MessageRole.HUMAN
            return MessageRole.ASSISTANT

    classes = element.get('class') or []
    class_names = (classes if isinstance(classes, str) else ' '.join(classes)).lower()
    if any(indicator in class_names for indicator in HUMAN_CLASS_INDICATORS):
        return MessageRole.HUMAN

    return MessageRole.ASSISTANT

def format_timestamp(raw: Optional[str]) -> Optional[str]:
    """
    Turn a raw timestamp value into a display string

    Numbers are Unix time, in seconds up to 10 digits and milliseconds
    beyond. Other values are parsed as dates; anything unparseable is
    returned unchanged.
    """
    if raw is None:
        return None
    raw = raw.strip()
    if not raw:
        return None

    if re.fullmatch(r'\d+(?:\.\d+)?', raw):
        digits = raw.split('.')[0]
        value = float(raw)
        if len(digits) > 10:
            value /= 1000
        try:
            return datetime.fromtimestamp(value).strftime(DISPLAY_FORMAT)
        except (OverflowError, OSError, ValueError):
            return raw

    parsed = _parse_date(raw)
    return parsed.strftime(DISPLAY_FORMAT) if parsed else raw

def _parse_date(raw: str) -> Optional[datetime]:
    parsed = None

    try:
        parsed = datetime.fromisoformat(raw.replace('Z', '+00:00'))
    except ValueError:
        pass

    if parsed is None:
        try:
            parsed = parsedate_to_datetime(raw)
        except (TypeError, ValueError, IndexError):
            parsed = None

    if parsed is None:
        for date_format in DATE_FORMATS:
            try:
                parsed = datetime.strptime(raw, date_format)
                break
            except ValueError:
                continue

    if parsed is not None and parsed.tzinfo is not None:
        parsed = parsed.astimezone()

    return parsed

def extract_timestamp(element: Tag) -> Optional[str]:
    """
    Best-effort timestamp for a message element

    Looks at timestamp attributes on the element and its nearest ancestors,
    then at a nested time element, then at accessibility labels.

    Returns:
        Display string, or None when the page offers nothing
    """
    current = element
    for _ in range(MAX_ANCESTOR_LEVELS + 1):
        if not isinstance(current, Tag) or current.name == '[document]':
            break
        for attribute in TIMESTAMP_ATTRIBUTES:
            value = current.get(attribute)
            if value and value.strip():
                return format_timestamp(value)
        current = current.parent

    time_element = element.select_one(TIME_ELEMENT_SELECTOR)
    if time_element:
        value = time_element.get('datetime') or time_element.get_text()
        if value and value.strip():
            return format_timestamp(value)

    labelled = [element] if element.get('aria-label') else []
    labelled.extend(element.select('[aria-label]'))
    for candidate in labelled:
        match = ARIA_TIME_PATTERN.search(candidate.get('aria-label', ''))
        if match:
            return format_timestamp(match.group(0))

    return None

def extract_title(document: Tag, default: str = DEFAULT_TITLE,
                  max_length: int = MAX_TITLE_LENGTH) -> str:
    """
    Extract the conversation title

    Candidates naming Gemini itself are generic page chrome and are skipped.

    Args:
        document: Current document tree
        default: Title used when no candidate qualifies
        max_length: Candidates this long or longer are rejected

    Returns:
        Title string
    """
    candidates = [document.select_one(selector) for selector in TITLE_SELECTORS]
    candidates.append(document.find('title'))

    for element in candidates:
        if element is None:
            continue
        title = ' '.join(element.get_text().split())
        if title and len(title) < max_length and 'gemini' not in title.lower():
            return title

    return default

class MessageLocator:
    """Locates message nodes in the currently loaded document"""

    def locate(self, document: Tag) -> List[LocatedMessage]:
        """
        Find every message node present in the document

        Args:
            document: Current document tree

        Returns:
            Located messages in document order
        """
        elements = document.select(TURN_SELECTOR)
        if elements:
            logger.debug(f"Found {len(elements)} turn elements")
        else:
            elements = self._topmost(document.select(FALLBACK_SELECTOR))
            if elements:
                logger.debug(f"Found {len(elements)} messages with fallback selectors")

        located = []
        for element in elements:
            role = classify_role(element)
            located.append(LocatedMessage(
                role=role,
                node=self._content_node(element, role),
                timestamp=extract_timestamp(element),
            ))

        return located

    @staticmethod
    def _topmost(candidates: List[Tag]) -> List[Tag]:
        """Drop candidates nested inside another candidate"""
        candidate_ids = {id(candidate) for candidate in candidates}
        return [
            candidate for candidate in candidates
            if not any(id(parent) in candidate_ids for parent in candidate.parents)
        ]

    @staticmethod
    def _content_node(element: Tag, role: MessageRole) -> Tag:
        if role == MessageRole.ASSISTANT:
            content = element.select_one(MODEL_CONTENT_SELECTOR)
            if content is not None:
                return content
        return element
