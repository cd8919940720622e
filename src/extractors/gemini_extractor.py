#!/usr/bin/env python3
"""
Gemini Extractor for Gemini Chat Exporter
Extracts a conversation from a Gemini chat page and renders it as Markdown.
"""

import threading
import logging
from typing import Any, Dict, Optional

from models import Conversation, ExtractionResult
from output_formatter import MarkdownFormatter
from extractors.content_normalizer import ContentNormalizer
from extractors.document_view import DocumentView
from extractors.errors import ExtractionError, ExtractionFailure, NoContentFound
from extractors.fingerprint import dedupe
from extractors.message_locator import DEFAULT_TITLE, MAX_TITLE_LENGTH, MessageLocator, extract_title
from extractors.scroll_driver import LoaderSettings, ScrollDriver, SystemClock

logger = logging.getLogger(__name__)

class GeminiExtractor:
    """Extractor for Gemini conversations"""

    def __init__(self, view: DocumentView, config: Optional[Dict[str, Any]] = None, clock=None):
        self.view = view
        self.config = config or {}
        self.clock = clock or SystemClock()
        self.settings = LoaderSettings.from_config(self.config)
        self.locator = MessageLocator()
        self.normalizer = ContentNormalizer()
        self.formatter = MarkdownFormatter(self.config)
        # One traversal at a time: the view is a single shared resource
        self._lock = threading.Lock()

    def extract(self) -> ExtractionResult:
        """
        Extract the conversation currently loaded in the view

        Returns:
            ExtractionResult with the rendered document

        Raises:
            NoContentFound: No messages were found after the full traversal
            ExtractionFailure: Traversal or normalization failed unexpectedly
        """
        if not self._lock.acquire(blocking=False):
            raise ExtractionFailure("An extraction is already running on this page")

        try:
            logger.info("Starting extraction")
            conversation = self._collect_conversation()
        finally:
            self._lock.release()

        if not conversation.messages:
            logger.warning("No messages found in Gemini conversation")
            raise NoContentFound()

        document = self.formatter.format_conversation(conversation)
        logger.info(f"Successfully extracted {conversation.get_message_count()} messages")

        return ExtractionResult(
            document=document,
            title=conversation.title,
            message_count=conversation.get_message_count(),
            messages=conversation.messages,
        )

    def _collect_conversation(self) -> Conversation:
        extraction = self.config.get('extraction', {})

        try:
            driver = ScrollDriver(
                self.view,
                locator=self.locator,
                normalizer=self.normalizer,
                settings=self.settings,
                clock=self.clock,
            )
            accumulator = driver.run()

            # The seen-set already filtered during loading; this pass is the guarantee
            messages = dedupe(accumulator.messages)

            default_title = extraction.get('default_title', DEFAULT_TITLE)
            document = driver.call_view("Reading title", self.view.document)
            if document is None:
                logger.debug("Page not readable for a title, using the default")
                title = default_title
            else:
                title = extract_title(
                    document,
                    default=default_title,
                    max_length=extraction.get('max_title_length', MAX_TITLE_LENGTH),
                )
        except ExtractionError:
            raise
        except Exception as e:
            logger.error(f"Error extracting Gemini conversation: {e}")
            raise ExtractionFailure(f"Failed to extract chat: {e}") from e

        return Conversation(messages=messages, title=title, extracted_at=self.clock.now())
