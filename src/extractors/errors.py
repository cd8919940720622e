#!/usr/bin/env python3
"""
Error types for Gemini Chat Exporter
"""

from datetime import datetime

class ExtractionError(Exception):
    """Base exception for extraction errors"""

    def __init__(self, message: str, error_type: str = "general"):
        super().__init__(message)
        self.message = message
        self.error_type = error_type
        self.timestamp = datetime.now()

class NoContentFound(ExtractionError):
    """No messages were located after a full traversal"""

    DEFAULT_MESSAGE = (
        "No chat messages found. Make sure you are on a Gemini chat page "
        "with an active conversation."
    )

    def __init__(self, message: str = DEFAULT_MESSAGE):
        super().__init__(message, error_type="no_content")

class ExtractionFailure(ExtractionError):
    """Unexpected fault during traversal, normalization or fetching"""

    def __init__(self, message: str):
        super().__init__(message, error_type="failure")

class HostMismatch(ExtractionError):
    """The page is not a Gemini conversation"""

    def __init__(self, message: str):
        super().__init__(message, error_type="host_mismatch")

class TransientViewError(Exception):
    """A view read that failed but may succeed on the next poll"""
