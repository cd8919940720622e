#!/usr/bin/env python3
"""
Service Detector for Gemini Chat Exporter
Checks that a URL points at a Gemini conversation before extraction runs.
"""

import re
from urllib.parse import urlparse
from typing import Dict, Optional
import logging

from extractors.errors import HostMismatch

logger = logging.getLogger(__name__)

class LinkType:
    """Types of Gemini links"""
    SHARED_CONVERSATION = "shared_conversation"
    APP_CHAT = "app_chat"
    UNKNOWN = "unknown"

class ServiceDetector:
    """Detects Gemini pages and the kind of link they are"""

    # (hostname, required path prefix); hostnames must match in full
    HOST_PATTERNS = [
        (r'(?:www\.)?gemini\.google\.com', r''),
        (r'(?:www\.)?bard\.google\.com', r''),
        (r'(?:www\.)?g\.co', r'/gemini(?:/|$)'),
    ]

    SHARED_LINK_PATTERNS = [
        r'/share/[a-z0-9_-]+',
    ]

    APP_CHAT_PATTERNS = [
        r'/app(?:/[a-z0-9_-]+)?/?$',
        r'/gem/[a-z0-9_-]+',
    ]

    def analyze_url(self, url: str) -> Dict[str, Optional[str]]:
        """
        Analyze a URL

        Args:
            url: The URL to analyze

        Returns:
            Dictionary with 'is_gemini' and 'link_type' keys
        """
        parsed_url = urlparse(url.strip().lower())
        host = parsed_url.hostname or ''
        path = parsed_url.path

        logger.debug(f"Analyzing URL: {url}")

        if not host or not self._is_gemini_host(host, path):
            return {'is_gemini': False, 'link_type': LinkType.UNKNOWN}

        return {'is_gemini': True, 'link_type': self._determine_link_type(path)}

    def _is_gemini_host(self, host: str, path: str) -> bool:
        for host_pattern, path_pattern in self.HOST_PATTERNS:
            if re.fullmatch(host_pattern, host) and re.match(path_pattern, path):
                return True
        return False

    def _determine_link_type(self, path: str) -> str:
        for pattern in self.SHARED_LINK_PATTERNS:
            if re.search(pattern, path):
                return LinkType.SHARED_CONVERSATION

        for pattern in self.APP_CHAT_PATTERNS:
            if re.search(pattern, path):
                return LinkType.APP_CHAT

        return LinkType.UNKNOWN

    def is_gemini_url(self, url: str) -> bool:
        """Check if the URL is a Gemini page"""
        return bool(self.analyze_url(url)['is_gemini'])

    def is_shared_link(self, url: str) -> bool:
        """Check if URL is a shared conversation link"""
        return self.analyze_url(url)['link_type'] == LinkType.SHARED_CONVERSATION

    def ensure_gemini_url(self, url: str) -> None:
        """
        Reject URLs that are not Gemini pages

        Raises:
            HostMismatch: The URL is not on a Gemini host
        """
        if not self.is_gemini_url(url):
            raise HostMismatch(
                f"Not a Gemini page: {url}. Open a conversation on gemini.google.com and try again."
            )
