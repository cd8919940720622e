#!/usr/bin/env python3
"""
Scroll Driver for Gemini Chat Exporter
Walks a virtualized conversation from the newest end to the oldest end,
collecting the messages that materialize along the way.

The driver is a small state machine:

    INITIALIZING -> SETTLING -> ADVANCING <-> STABILIZING -> SETTLING -> TERMINAL

Messages found while moving toward the origin are older than everything
gathered so far, so each new batch is prepended and the accumulator ends up
in chronological order without a separate reverse step. Every wait goes
through the injected clock and every loop is bounded.
"""

import math
import time
import logging
from dataclasses import dataclass, fields
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from bs4 import Tag

from models import ChatMessage
from extractors.content_normalizer import ContentNormalizer
from extractors.document_view import DocumentView, ScrollMetrics
from extractors.errors import ExtractionFailure, TransientViewError
from extractors.fingerprint import Accumulator
from extractors.message_locator import MessageLocator

logger = logging.getLogger(__name__)

REGION_TURN_SELECTOR = (
    'user-query, model-response, conversation-turn, '
    '[class*="conversation-turn"], [data-turn-id]'
)

CONTAINER_SELECTORS = [
    '[class*="response-container"]',
    '[class*="chat-history"]',
    '[class*="message-list"]',
    '[class*="conversation-content"]',
    '[class*="chat-content"]',
]

# Extent slack before an element counts as scrollable
SCROLLABLE_SLACK = 20
CANDIDATE_SLACK = 100
CANDIDATE_MIN_HEIGHT = 300

# Left-edge sidebar exclusion
SIDEBAR_MAX_LEFT = 50
SIDEBAR_MAX_WIDTH = 350

class LoaderState(Enum):
    """States of the scroll driver"""
    INITIALIZING = "initializing"
    SETTLING = "settling"
    ADVANCING = "advancing"
    STABILIZING = "stabilizing"
    TERMINAL = "terminal"

class TerminationReason:
    """Why the traversal stopped advancing"""
    ORIGIN = "origin"
    STUCK = "stuck"
    STEP_CAP = "step_cap"

@dataclass
class LoaderSettings:
    """Timing and bounds for one traversal"""
    step_fraction: float = 0.7
    min_step: int = 400
    max_steps: int = 500
    stuck_threshold: int = 3
    origin_threshold: float = 10
    advance_delay_ms: int = 50
    poll_interval_ms: int = 75
    max_settle_polls: int = 5
    initial_settle_ms: int = 200
    initial_confirm_ms: int = 100
    final_settle_ms: int = 300
    final_confirm_ms: int = 200

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'LoaderSettings':
        """Build settings from the 'scroll' section of a configuration dict"""
        section = config.get('scroll') or {}
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in section.items() if key in known})

class SystemClock:
    """Real time source"""

    def sleep(self, ms: float) -> None:
        time.sleep(ms / 1000.0)

    def now(self) -> datetime:
        return datetime.now().astimezone()

class ScrollDriver:
    """Drives a document view through one full traversal"""

    def __init__(self, view: DocumentView, locator: Optional[MessageLocator] = None,
                 normalizer: Optional[ContentNormalizer] = None,
                 settings: Optional[LoaderSettings] = None, clock=None):
        self.view = view
        self.locator = locator or MessageLocator()
        self.normalizer = normalizer or ContentNormalizer()
        self.settings = settings or LoaderSettings()
        self.clock = clock or SystemClock()

        self.accumulator = Accumulator()
        self.state = LoaderState.INITIALIZING
        self.region: Optional[Tag] = None
        self.steps = 0
        self.termination_reason: Optional[str] = None

        self._step_size = 0.0
        self._stuck_count = 0
        self._previous: Optional[ScrollMetrics] = None
        self._last_metrics: Optional[ScrollMetrics] = None
        self._reached_end = False

        self._handlers = {
            LoaderState.INITIALIZING: self._initialize,
            LoaderState.SETTLING: self._settle,
            LoaderState.ADVANCING: self._advance,
            LoaderState.STABILIZING: self._stabilize,
        }

    def run(self) -> Accumulator:
        """
        Traverse the whole conversation

        Returns:
            Accumulator holding the collected messages, oldest first
        """
        while self.state != LoaderState.TERMINAL:
            next_state = self._handlers[self.state]()
            if next_state != self.state:
                logger.debug(f"Scroll driver: {self.state.value} -> {next_state.value}")
            self.state = next_state

        logger.info(
            f"Traversal finished after {self.steps} steps ({self.termination_reason}), "
            f"{len(self.accumulator)} messages collected"
        )
        return self.accumulator

    def call_view(self, description: str, call, *args, required: bool = False):
        """
        Run one view call, polling again while the view is not ready

        Args:
            description: What the call does, for log messages
            call: View method to invoke
            *args: Arguments for the call
            required: Raise instead of giving up quietly

        Returns:
            The call's result, or None when every attempt failed

        Raises:
            ExtractionFailure: A required call never succeeded
        """
        attempts = max(1, self.settings.max_settle_polls)
        for attempt in range(1, attempts + 1):
            try:
                return call(*args)
            except TransientViewError as e:
                logger.debug(f"{description} failed (attempt {attempt}/{attempts}): {e}")
                if attempt < attempts:
                    self.clock.sleep(self.settings.poll_interval_ms)

        if required:
            raise ExtractionFailure(f"{description} kept failing after {attempts} attempts")
        return None

    def resolve_scroll_region(self) -> Optional[Tag]:
        """
        Find the element that scrolls the conversation

        Returns:
            The scrollable element, or None to scroll the whole viewport
        """
        document = self.call_view("Reading document", self.view.document, required=True)

        turns = document.select(REGION_TURN_SELECTOR)
        if turns:
            element = turns[0].parent
            while self._inside_body(element):
                geometry = self._geometry(element)
                if (geometry and geometry.has_scrollable_overflow and
                        geometry.scroll_height > geometry.client_height + SCROLLABLE_SLACK):
                    logger.debug(f"Scroll region is the ancestor <{element.name}> of a turn")
                    return element
                element = element.parent

        for selector in CONTAINER_SELECTORS:
            element = document.select_one(selector)
            while self._inside_body(element):
                geometry = self._geometry(element)
                if geometry and geometry.scroll_height > geometry.client_height + SCROLLABLE_SLACK:
                    logger.debug(f"Scroll region found via {selector}")
                    return element
                element = element.parent

        best = None
        best_area = -1.0
        for element in document.find_all(True):
            geometry = self._geometry(element)
            if geometry is None or not geometry.has_scrollable_overflow:
                continue
            if geometry.scroll_height <= geometry.client_height + CANDIDATE_SLACK:
                continue
            if geometry.client_height <= CANDIDATE_MIN_HEIGHT:
                continue
            if geometry.left < SIDEBAR_MAX_LEFT and geometry.width < SIDEBAR_MAX_WIDTH:
                continue
            if geometry.area > best_area:
                best, best_area = element, geometry.area

        if best is not None:
            logger.debug(f"Scroll region is the largest scrollable <{best.name}>")
        else:
            logger.debug("No scroll region found, scrolling the viewport")
        return best

    @staticmethod
    def _inside_body(element) -> bool:
        return isinstance(element, Tag) and element.name not in ('body', 'html', '[document]')

    def _geometry(self, element: Tag):
        return self.call_view("Reading geometry", self.view.geometry, element)

    def _initialize(self) -> LoaderState:
        self.region = self.resolve_scroll_region()
        self.call_view("Disabling scroll anchoring", self.view.disable_scroll_anchoring, self.region)

        # Start at the newest end
        metrics = self._read_metrics()
        self.call_view("Scrolling to the end", self.view.scroll_to, self.region,
                       metrics.scroll_height, required=True)
        return LoaderState.SETTLING

    def _settle(self) -> LoaderState:
        if not self._reached_end:
            return self._settle_at_start()
        return self._settle_at_origin()

    def _settle_at_start(self) -> LoaderState:
        self.clock.sleep(self.settings.initial_settle_ms)
        self._extract_visible(prepend=False)
        self.clock.sleep(self.settings.initial_confirm_ms)
        self._extract_visible(prepend=False)

        client_height = self._read_metrics().client_height
        self._step_size = max(self.settings.min_step,
                              math.floor(client_height * self.settings.step_fraction))
        self._reached_end = True
        return LoaderState.ADVANCING

    def _settle_at_origin(self) -> LoaderState:
        # The oldest content is often the slowest to materialize
        self._extract_visible(prepend=True)

        self.call_view("Scrolling to the origin", self.view.scroll_to, self.region, 0)
        self.clock.sleep(self.settings.final_settle_ms)
        self._extract_visible(prepend=True)

        self.clock.sleep(self.settings.final_confirm_ms)
        self._extract_visible(prepend=True)

        self.call_view("Scrolling to the origin", self.view.scroll_to, self.region, 0)
        self.clock.sleep(self.settings.final_confirm_ms)
        self._extract_visible(prepend=True)
        return LoaderState.TERMINAL

    def _advance(self) -> LoaderState:
        if self.steps >= self.settings.max_steps:
            self.termination_reason = TerminationReason.STEP_CAP
            logger.warning(f"Stopped scrolling after the limit of {self.settings.max_steps} steps")
            return LoaderState.SETTLING

        self._previous = self._read_metrics()
        self.call_view("Scrolling toward the origin", self.view.scroll_by, self.region, -self._step_size)
        self.clock.sleep(self.settings.advance_delay_ms)
        self._extract_visible(prepend=True)
        return LoaderState.STABILIZING

    def _stabilize(self) -> LoaderState:
        previous = self._previous
        scroll_height = self._read_metrics().scroll_height
        message_count = len(self.accumulator)

        for _ in range(self.settings.max_settle_polls):
            self.clock.sleep(self.settings.poll_interval_ms)
            self._extract_visible(prepend=True)

            new_height = self._read_metrics().scroll_height
            new_count = len(self.accumulator)
            if new_height == scroll_height and new_count == message_count:
                break
            scroll_height, message_count = new_height, new_count

        current = self._read_metrics()
        self.steps += 1

        if current.scroll_height > previous.scroll_height:
            self._stuck_count = 0

        if abs(current.scroll_top - previous.scroll_top) < self.settings.origin_threshold:
            self._stuck_count += 1
            if self._stuck_count >= self.settings.stuck_threshold:
                self.termination_reason = TerminationReason.STUCK
                logger.debug(f"Scroll position unchanged for {self._stuck_count} steps")
                return LoaderState.SETTLING
        else:
            self._stuck_count = 0

        if current.scroll_top <= self.settings.origin_threshold:
            self.termination_reason = TerminationReason.ORIGIN
            return LoaderState.SETTLING

        return LoaderState.ADVANCING

    def _read_metrics(self) -> ScrollMetrics:
        """Read scroll metrics, falling back to the last real reading"""
        metrics = self.call_view("Reading scroll metrics", self.view.scroll_metrics, self.region,
                                 required=self._last_metrics is None)
        if metrics is not None:
            self._last_metrics = metrics
        return self._last_metrics

    def _extract_visible(self, prepend: bool) -> int:
        """Collect the messages currently in the document"""
        document = self.call_view("Reading document", self.view.document)
        if document is None:
            return 0
        located = self.locator.locate(document)

        batch = []
        for item in located:
            content = self.normalizer.normalize(item.node)
            if not content:
                continue
            batch.append(ChatMessage(role=item.role, content=content, timestamp=item.timestamp))

        return self.accumulator.absorb(batch, prepend=prepend)
