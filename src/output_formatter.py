#!/usr/bin/env python3
"""
Output Formatter for Gemini Chat Exporter
Renders an ordered, deduplicated conversation as a Markdown document.
"""

from typing import Dict, Any, List, Optional
from datetime import datetime
import logging

from models import Conversation, ChatMessage, MessageRole

logger = logging.getLogger(__name__)

ROLE_HEADERS = {
    MessageRole.HUMAN: "## 👤 User",
    MessageRole.ASSISTANT: "## 🤖 Gemini",
}

SEPARATOR = "---"

class MarkdownFormatter:
    """Formats conversations into Markdown"""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = config or {}
        self.show_timestamps = self.config.get('output', {}).get('show_timestamps', True)

    def format_conversation(self, conversation: Conversation) -> str:
        """
        Format a conversation using its own extraction time

        Args:
            conversation: Conversation object to format

        Returns:
            Markdown string
        """
        return self.render(conversation.messages, conversation.title, conversation.extracted_at)

    def render(self, messages: List[ChatMessage], title: str,
               now: Optional[datetime] = None) -> str:
        """
        Render messages as a Markdown document

        Output depends only on the arguments; pass `now` to pin the
        provenance line.

        Args:
            messages: Messages, oldest first
            title: Conversation title
            now: Export time, defaults to the current local time

        Returns:
            Markdown string
        """
        conversation = Conversation(messages=list(messages), title=title, extracted_at=now)

        logger.info(f"Formatting conversation with {conversation.get_message_count()} messages")

        human_count = len(conversation.get_human_messages())
        assistant_count = len(conversation.get_assistant_messages())

        parts = [
            f"# {title}\n\n",
            f"*Exported from Gemini on {self._format_export_time(conversation.extracted_at)}*\n\n",
            f"**Messages:** {conversation.get_message_count()} total "
            f"(👤 User: {human_count}, 🤖 Gemini: {assistant_count})\n\n",
            f"{SEPARATOR}\n\n",
        ]

        for index, message in enumerate(messages):
            parts.append(f"{self._format_header(message)}\n\n")
            parts.append(f"{message.content}\n\n")

            if index < len(messages) - 1:
                parts.append(f"{SEPARATOR}\n\n")

        return "".join(parts)

    def _format_header(self, message: ChatMessage) -> str:
        header = ROLE_HEADERS[message.role]
        if self.show_timestamps and message.timestamp:
            header = f"{header} ({message.timestamp})"
        return header

    @staticmethod
    def _format_export_time(now: datetime) -> str:
        """Human-readable date and time with a timezone label"""
        when = f"{now:%B} {now.day}, {now.year} at {now:%I:%M %p}"
        timezone = now.strftime('%Z')
        return f"{when} {timezone}" if timezone else when
