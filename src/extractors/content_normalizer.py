#!/usr/bin/env python3
"""
Content Normalizer for Gemini Chat Exporter
Converts a single message node into clean Markdown text.

The node is copied before any element is removed, so the live document is
never modified. Conversion walks the copied tree and dispatches on the tag
name instead of rewriting serialized markup with regular expressions.
"""

import copy
import re
import unicodedata
import logging
from typing import Iterable, Optional

from bs4 import NavigableString, Tag
from bs4.element import Comment, Declaration, Doctype, ProcessingInstruction

logger = logging.getLogger(__name__)

# Presentational elements that never carry message content
UNWANTED_SELECTORS = [
    'button',
    '[class*="action"]',
    '[class*="toolbar"]',
    '[class*="copy"]',
    '[class*="feedback"]',
    '[class*="icon"]',
    '[class*="avatar"]',
    '[aria-hidden="true"]',
    'mat-icon',
    '.material-icons',
    '[class*="thumb"]',
    '[class*="rating"]',
    '[class*="menu"]',
    '[class*="label"]',
    '[class*="header"]',
    '[class*="sender"]',
    '[class*="author"]',
]

ROLE_LABELS = ('You said', 'Gemini said', 'You', 'Gemini')
LABEL_PHRASES = ('You said', 'Gemini said')

# Leaf elements shorter than this are candidates for role-label removal
MAX_LABEL_LENGTH = 20

LANGUAGE_CLASS_PATTERN = re.compile(r'language-(\w+)|lang-(\w+)|(\w+)-code')
LANGUAGE_DATA_ATTRIBUTES = ('data-language', 'data-lang')

SKIPPED_TAGS = {'script', 'style', 'template', 'noscript'}
NON_TEXT_STRINGS = (Comment, Declaration, Doctype, ProcessingInstruction)

def detect_code_language(element: Optional[Tag]) -> str:
    """
    Detect programming language of a code element

    Args:
        element: code or pre element

    Returns:
        Language identifier, or empty string if undetected
    """
    if element is None:
        return ''

    classes = element.get('class') or []
    class_names = classes if isinstance(classes, str) else ' '.join(classes)

    match = LANGUAGE_CLASS_PATTERN.search(class_names)
    if match:
        return next(group for group in match.groups() if group)

    for attribute in LANGUAGE_DATA_ATTRIBUTES:
        value = element.get(attribute)
        if value:
            return value

    return ''

class ContentNormalizer:
    """Strips UI decoration from a message node and renders it as Markdown"""

    def __init__(self, role_labels: Optional[Iterable[str]] = None,
                 label_phrases: Optional[Iterable[str]] = None):
        self.role_labels = set(role_labels or ROLE_LABELS)
        phrases = tuple(label_phrases or LABEL_PHRASES)
        self._label_line = re.compile(
            r'^(?:' + '|'.join(re.escape(p) for p in phrases) + r')[ \t]*(?:\n+|$)',
            re.IGNORECASE | re.MULTILINE,
        )

    def normalize(self, node: Optional[Tag]) -> str:
        """
        Normalize a message node into Markdown text

        Args:
            node: Element holding one message; left untouched

        Returns:
            Trimmed Markdown, or an empty string when nothing remains
        """
        if node is None:
            return ""

        clone = copy.copy(node)

        self._strip_decorations(clone)
        self._strip_role_labels(clone)

        text = self._render_children(clone)
        text = self._clean_characters(text)
        text = self._clean_whitespace(text)
        text = self._label_line.sub('', text).strip()

        if not text:
            logger.debug("Message node normalized to empty text")

        return text

    def _strip_decorations(self, root: Tag) -> None:
        """Remove controls, icons and other non-content elements"""
        for selector in UNWANTED_SELECTORS:
            for element in root.select(selector):
                element.extract()

    def _strip_role_labels(self, root: Tag) -> None:
        """Remove small leaf elements that only hold a role label"""
        for element in root.find_all(True):
            if element.find(True) is not None:
                continue
            text = element.get_text().strip()
            if len(text) >= MAX_LABEL_LENGTH or text not in self.role_labels:
                continue
            # A message whose whole body is "You" or "Gemini" keeps it
            if root.get_text().strip() == text:
                continue
            element.extract()

    def _render_children(self, element: Tag) -> str:
        return ''.join(self._render(child) for child in element.children)

    def _render(self, node) -> str:
        if isinstance(node, NavigableString):
            if isinstance(node, NON_TEXT_STRINGS):
                return ''
            text = str(node)
            # Indentation between tags is source formatting, not content
            if '\n' in text and not text.strip():
                return '\n'
            return text

        if not isinstance(node, Tag):
            return ''

        name = (node.name or '').lower()

        if name in SKIPPED_TAGS:
            return ''
        if name == 'pre':
            return self._render_code_block(node)
        if name == 'code':
            return f"`{node.get_text()}`"
        if name == 'br':
            return '\n'

        inner = self._render_children(node)

        if name in ('strong', 'b'):
            return f"**{inner}**"
        if name in ('em', 'i'):
            return f"*{inner}*"
        if name == 'a':
            href = node.get('href')
            return f"[{inner}]({href})" if href else inner
        if re.fullmatch(r'h[1-6]', name):
            level = int(name[1])
            return f"\n\n{'#' * level} {inner.strip()}\n\n"
        if name == 'li':
            return f"- {inner.strip()}\n"
        if name in ('ul', 'ol'):
            return f"\n{inner}\n"
        if name == 'p':
            return f"{inner}\n\n"
        if name == 'div':
            return f"{inner}\n"

        # span and anything else: keep the text, drop the tag
        return inner

    def _render_code_block(self, pre: Tag) -> str:
        """Render a pre element as a fenced code block"""
        code = pre.find('code') or pre
        language = detect_code_language(code) or detect_code_language(pre)
        # Fence delimiters inside the code are not escaped
        return f"\n```{language}\n{code.get_text()}\n```\n\n"

    @staticmethod
    def _clean_characters(text: str) -> str:
        """Normalize Unicode and drop invisible characters"""
        text = unicodedata.normalize('NFC', text)

        replacements = {
            '\u200b': '',  # zero-width space
            '\u200c': '',  # zero-width non-joiner
            '\u200d': '',  # zero-width joiner
            '\ufeff': '',  # byte order mark
            '\u00a0': ' ', # non-breaking space
            '\x00': '',
        }

        for old, new in replacements.items():
            text = text.replace(old, new)

        text = text.replace('\r\n', '\n').replace('\r', '\n')
        return text

    @staticmethod
    def _clean_whitespace(text: str) -> str:
        """Strip trailing spaces per line and collapse blank runs"""
        text = re.sub(r'[ \t]+$', '', text, flags=re.MULTILINE)
        text = re.sub(r'\n{3,}', '\n\n', text)
        return text
