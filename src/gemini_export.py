#!/usr/bin/env python3
"""
Gemini Chat Exporter CLI
Export a Gemini conversation page to a Markdown file.
"""

import argparse
import re
import sys
from datetime import date
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import urlparse
import logging

from config_manager import ConfigManager
from extractors.document_view import StaticDocumentView
from extractors.errors import ExtractionError
from extractors.gemini_extractor import GeminiExtractor
from extractors.page_fetcher import PageFetcher
from extractors.service_detector import ServiceDetector

VERSION = "0.1.0"

logger = logging.getLogger(__name__)

def setup_logging(verbose: bool = False):
    """Setup logging configuration"""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

def is_url(source: str) -> bool:
    """Check if the source looks like a URL rather than a file path"""
    result = urlparse(source)
    return result.scheme in ('http', 'https') and bool(result.netloc)

def generate_filename(title: str, config: Optional[Dict[str, Any]] = None,
                      today: Optional[date] = None) -> str:
    """
    Generate a safe filename from a chat title

    Args:
        title: Conversation title
        config: Configuration with an optional 'output' section
        today: Date used in the name, defaults to today

    Returns:
        Filename such as 'gemini-my-chat-2026-10-19.md'
    """
    output = (config or {}).get('output', {})
    prefix = output.get('filename_prefix', 'gemini')
    max_length = output.get('filename_max_length', 50)
    extension = output.get('extension', 'md')
    today = today or date.today()

    safe_title = re.sub(r'[^a-z0-9]+', '-', title.lower()).strip('-')[:max_length]

    return f"{prefix}-{safe_title}-{today.isoformat()}.{extension}"

def load_page(source: str, config: Dict[str, Any]) -> str:
    """Fetch a Gemini URL or read a saved HTML page"""
    if is_url(source):
        ServiceDetector().ensure_gemini_url(source)
        logger.info(f"Fetching {source}...")
        return PageFetcher(config).fetch(source)

    path = Path(source).expanduser()
    logger.info(f"Reading {path}...")
    return path.read_text(encoding='utf-8')

def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Export a Gemini conversation to Markdown",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  gemini-export https://gemini.google.com/share/abc123
  gemini-export saved_chat.html --output ~/Documents/Chats
  gemini-export saved_chat.html --stdout
        """
    )

    parser.add_argument(
        "source",
        help="Gemini share URL or path to a saved Gemini page"
    )

    parser.add_argument(
        "--output", "-o",
        help="Output directory for the exported file (default: from config)"
    )

    parser.add_argument(
        "--config", "-c",
        help="Configuration file path (default: ~/.config/gemini_chat_exporter/config.yaml)"
    )

    parser.add_argument(
        "--stdout",
        action="store_true",
        help="Print the Markdown instead of writing a file"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose output"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"Gemini Chat Exporter v{VERSION}"
    )

    args = parser.parse_args(argv)

    setup_logging(args.verbose)

    try:
        logger.info("Loading configuration...")
        config = ConfigManager(args.config).load_config()

        html = load_page(args.source, config)

        extractor = GeminiExtractor(StaticDocumentView(html), config)
        result = extractor.extract()

        if args.stdout:
            sys.stdout.write(result.document)
            return 0

        output_dir = args.output or config.get('default_output', '~/Documents/Gemini Exports')
        output_dir = Path(output_dir).expanduser()
        output_dir.mkdir(parents=True, exist_ok=True)

        output_path = output_dir / generate_filename(result.title, config)

        logger.info(f"Saving conversation to {output_path}")
        output_path.write_text(result.document, encoding='utf-8')

        print(f"✅ Exported {result.message_count} messages to {output_path.name}")
        print(f"📁 Saved to: {output_path}")

        return 0

    except ExtractionError as e:
        logger.error(e.message)
        return 1
    except OSError as e:
        logger.error(f"File error: {e}")
        return 1
    except KeyboardInterrupt:
        logger.info("Operation cancelled by user")
        return 1

if __name__ == "__main__":
    sys.exit(main())
