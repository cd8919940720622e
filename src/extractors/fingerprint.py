#!/usr/bin/env python3
"""
Content Fingerprint and Deduplication for Gemini Chat Exporter

A fingerprint is the trimmed first 100 characters of a message plus its full
length. Two long messages sharing that prefix and length are treated as the
same message; the approximation is accepted rather than hashing the whole body.
"""

import logging
from typing import Iterable, List, Set

from models import ChatMessage

logger = logging.getLogger(__name__)

PREFIX_LENGTH = 100
SEPARATOR = '|'

def fingerprint(content: str) -> str:
    """Compute the identity key of a message body"""
    if not content:
        return ''
    return f"{content[:PREFIX_LENGTH].strip()}{SEPARATOR}{len(content)}"

def dedupe(messages: Iterable[ChatMessage]) -> List[ChatMessage]:
    """
    Remove messages whose fingerprint was already seen

    The first occurrence wins and the order of the survivors is kept.

    Args:
        messages: Messages in their best-known order

    Returns:
        New list without duplicates
    """
    seen: Set[str] = set()
    result = []

    for message in messages:
        key = fingerprint(message.content)
        if key in seen:
            continue
        seen.add(key)
        result.append(message)

    return result

class Accumulator:
    """Ordered messages gathered during one extraction, with their seen-set"""

    def __init__(self):
        self.messages: List[ChatMessage] = []
        self.seen: Set[str] = set()

    def __len__(self) -> int:
        return len(self.messages)

    def absorb(self, batch: Iterable[ChatMessage], prepend: bool = False) -> int:
        """
        Add the unseen messages of a batch

        Args:
            batch: Messages in document order
            prepend: Place the new messages before everything gathered so far

        Returns:
            Number of messages added
        """
        fresh = []
        for message in batch:
            key = fingerprint(message.content)
            if key in self.seen:
                continue
            self.seen.add(key)
            fresh.append(message)

        if fresh:
            if prepend:
                self.messages[:0] = fresh
            else:
                self.messages.extend(fresh)
            logger.debug(f"Accumulated {len(fresh)} new messages ({len(self.messages)} total)")

        return len(fresh)
