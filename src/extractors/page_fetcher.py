#!/usr/bin/env python3
"""
Page Fetcher for Gemini Chat Exporter
Downloads a page's HTML with retries.
"""

from typing import Dict, Any, Optional
import requests
import logging
import time
import random

from extractors.errors import ExtractionFailure

logger = logging.getLogger(__name__)

class PageFetcher:
    """Fetches HTML pages over HTTP"""

    def __init__(self, config: Optional[Dict[str, Any]] = None, session: Optional[requests.Session] = None):
        self.config = config or {}
        self.session = session or requests.Session()

        self.session.headers.update({
            'User-Agent': 'Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36',
            'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
            'Accept-Language': 'en-US,en;q=0.9',
        })

    def fetch(self, url: str) -> str:
        """
        Fetch HTML content from URL with retries

        Args:
            url: URL to fetch

        Returns:
            HTML content string

        Raises:
            ExtractionFailure: Every attempt failed
        """
        max_retries = self.config.get('extraction', {}).get('max_retries', 3)
        timeout = self.config.get('extraction', {}).get('timeout', 30)
        last_error = None

        for attempt in range(max_retries):
            try:
                logger.debug(f"Fetching HTML (attempt {attempt + 1}/{max_retries})")

                response = self.session.get(url, timeout=timeout, allow_redirects=True)
                response.raise_for_status()

                logger.debug(f"Successfully fetched HTML ({len(response.text)} characters)")
                return response.text

            except requests.RequestException as e:
                last_error = e
                logger.warning(f"Attempt {attempt + 1} failed: {e}")
                if attempt < max_retries - 1:
                    wait_time = (2 ** attempt) + random.uniform(1, 3)
                    logger.debug(f"Waiting {wait_time:.1f} seconds before retry...")
                    time.sleep(wait_time)

        raise ExtractionFailure(f"Failed to fetch {url} after {max_retries} attempts: {last_error}")
