#!/usr/bin/env python3
"""
Document View for Gemini Chat Exporter
The narrow interface through which extraction reads and scrolls the page.

A view exposes the current document tree, layout geometry of its elements,
and the scroll position of a region (or of the whole viewport when the
region is None). Nothing else about the host page is visible to extraction.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Union
import logging

from bs4 import BeautifulSoup, Tag

logger = logging.getLogger(__name__)

SCROLLABLE_OVERFLOW = ('auto', 'scroll', 'overlay')

@dataclass
class ScrollMetrics:
    """Scroll position and extents of a region"""
    scroll_top: float
    scroll_height: float
    client_height: float

@dataclass
class Geometry:
    """Layout box and scroll extents of one element"""
    left: float
    width: float
    height: float
    scroll_height: float
    client_height: float
    overflow_y: str = 'visible'

    @property
    def area(self) -> float:
        return self.width * self.height

    @property
    def has_scrollable_overflow(self) -> bool:
        return self.overflow_y in SCROLLABLE_OVERFLOW

class DocumentView(ABC):
    """Capability interface onto the live, possibly virtualized, document"""

    @abstractmethod
    def document(self) -> Tag:
        """Return the document tree as currently materialized"""
        pass

    @abstractmethod
    def geometry(self, element: Tag) -> Optional[Geometry]:
        """Return layout information for an element, or None if unknown"""
        pass

    @abstractmethod
    def scroll_metrics(self, region: Optional[Tag]) -> ScrollMetrics:
        """Return scroll metrics of a region, or of the viewport for None"""
        pass

    @abstractmethod
    def scroll_to(self, region: Optional[Tag], top: float) -> None:
        """Set the scroll position of a region, or of the viewport for None"""
        pass

    def scroll_by(self, region: Optional[Tag], amount: float) -> None:
        metrics = self.scroll_metrics(region)
        self.scroll_to(region, metrics.scroll_top + amount)

    def disable_scroll_anchoring(self, region: Optional[Tag]) -> None:
        """Stop the host from re-anchoring the scroll position on content shifts"""
        pass

class StaticDocumentView(DocumentView):
    """
    A fully materialized page with no layout

    Every message is present from the start and nothing scrolls, so a
    traversal over this view settles immediately at the origin.
    """

    def __init__(self, source: Union[str, bytes, BeautifulSoup]):
        if isinstance(source, BeautifulSoup):
            self.soup = source
        else:
            self.soup = BeautifulSoup(source, 'html.parser')
        logger.debug("Created static document view")

    def document(self) -> Tag:
        return self.soup

    def geometry(self, element: Tag) -> Optional[Geometry]:
        return None

    def scroll_metrics(self, region: Optional[Tag]) -> ScrollMetrics:
        return ScrollMetrics(scroll_top=0, scroll_height=0, client_height=0)

    def scroll_to(self, region: Optional[Tag], top: float) -> None:
        pass
