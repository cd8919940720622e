#!/usr/bin/env python3
"""
Data models for Gemini Chat Exporter
"""

from dataclasses import dataclass, field
from typing import List, Optional, Any
from datetime import datetime
from enum import Enum

class MessageRole(Enum):
    """Message role enumeration"""
    HUMAN = "human"
    ASSISTANT = "assistant"

@dataclass(frozen=True)
class ChatMessage:
    """Represents a single chat message"""
    role: MessageRole
    content: str
    timestamp: Optional[str] = None

@dataclass
class LocatedMessage:
    """A message-bearing node found in the current document"""
    role: MessageRole
    node: Any
    timestamp: Optional[str] = None

@dataclass
class Conversation:
    """Represents a complete, deduplicated conversation"""
    messages: List[ChatMessage]
    title: str
    extracted_at: Optional[datetime] = None

    def __post_init__(self):
        if self.extracted_at is None:
            self.extracted_at = datetime.now().astimezone()

    def get_human_messages(self) -> List[ChatMessage]:
        """Get all human messages"""
        return [msg for msg in self.messages if msg.role == MessageRole.HUMAN]

    def get_assistant_messages(self) -> List[ChatMessage]:
        """Get all assistant messages"""
        return [msg for msg in self.messages if msg.role == MessageRole.ASSISTANT]

    def get_message_count(self) -> int:
        """Get total message count"""
        return len(self.messages)

@dataclass
class ExtractionResult:
    """Outcome of a successful extraction"""
    document: str
    title: str
    message_count: int
    messages: List[ChatMessage] = field(default_factory=list)
