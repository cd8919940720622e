#!/usr/bin/env python3
"""
Tests for the gemini_export command-line host
"""

import io
import unittest
import tempfile
import shutil
import os
import sys
from datetime import date
from pathlib import Path
from unittest import mock

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

import gemini_export
from gemini_export import generate_filename, is_url, main

PAGE = """
<html><head><title>Rust lifetimes</title></head><body>
<user-query><div class="query-text">Explain lifetimes</div></user-query>
<model-response><div class="model-response-text"><p>Lifetimes describe <em>scopes</em>.</p></div></model-response>
</body></html>
"""

class TestGenerateFilename(unittest.TestCase):
    """Test cases for generate_filename"""

    def test_sanitized_title(self):
        """Non-alphanumeric runs collapse to one dash"""
        filename = generate_filename("My Chat: Plans & Ideas!", today=date(2026, 10, 19))
        self.assertEqual(filename, "gemini-my-chat-plans-ideas-2026-10-19.md")

    def test_length_cap(self):
        """The title part is capped"""
        filename = generate_filename("a" * 80, today=date(2026, 10, 19))
        self.assertEqual(filename, "gemini-" + "a" * 50 + "-2026-10-19.md")

    def test_config_overrides(self):
        """Prefix, cap and extension come from configuration"""
        config = {'output': {'filename_prefix': 'chat', 'filename_max_length': 5, 'extension': 'txt'}}
        filename = generate_filename("Hello World", config, today=date(2026, 1, 2))
        self.assertEqual(filename, "chat-hello-2026-01-02.txt")

class TestMain(unittest.TestCase):
    """Test cases for main"""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.config_path = str(Path(self.temp_dir) / "config.yaml")
        self.page_path = Path(self.temp_dir) / "saved.html"
        self.page_path.write_text(PAGE, encoding='utf-8')
        self.output_dir = Path(self.temp_dir) / "out"

        # Skip real waits during traversal
        patcher = mock.patch('extractors.scroll_driver.time.sleep')
        patcher.start()
        self.addCleanup(patcher.stop)

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def test_is_url(self):
        """URLs and file paths are told apart"""
        self.assertTrue(is_url("https://gemini.google.com/share/abc"))
        self.assertFalse(is_url("saved.html"))
        self.assertFalse(is_url("/home/me/saved.html"))

    def test_exports_saved_page(self):
        """A saved page is written as Markdown to the output directory"""
        with mock.patch('sys.stdout', new_callable=io.StringIO):
            code = main([str(self.page_path), '--output', str(self.output_dir),
                         '--config', self.config_path])

        self.assertEqual(code, 0)
        files = list(self.output_dir.iterdir())
        self.assertEqual(len(files), 1)
        self.assertTrue(files[0].name.startswith("gemini-rust-lifetimes-"))

        content = files[0].read_text(encoding='utf-8')
        self.assertTrue(content.startswith("# Rust lifetimes\n\n"))
        self.assertIn("Lifetimes describe *scopes*.", content)

    def test_stdout(self):
        """The document can be printed instead of saved"""
        with mock.patch('sys.stdout', new_callable=io.StringIO) as stdout:
            code = main([str(self.page_path), '--stdout', '--config', self.config_path])

        self.assertEqual(code, 0)
        self.assertIn("## 👤 User\n\nExplain lifetimes", stdout.getvalue())

    def test_host_mismatch(self):
        """Non-Gemini URLs are rejected before any fetching"""
        with mock.patch.object(gemini_export, 'PageFetcher') as fetcher:
            code = main(["https://example.com/chat/1", '--config', self.config_path])

        self.assertEqual(code, 1)
        fetcher.assert_not_called()

    def test_fetches_gemini_url(self):
        """Gemini URLs are fetched and extracted"""
        with mock.patch.object(gemini_export, 'PageFetcher') as fetcher, \
                mock.patch('sys.stdout', new_callable=io.StringIO) as stdout:
            fetcher.return_value.fetch.return_value = PAGE
            code = main(["https://gemini.google.com/share/abc123", '--stdout',
                         '--config', self.config_path])

        self.assertEqual(code, 0)
        fetcher.return_value.fetch.assert_called_once_with("https://gemini.google.com/share/abc123")
        self.assertIn("# Rust lifetimes", stdout.getvalue())

    def test_no_content(self):
        """A page without messages exits with an error"""
        self.page_path.write_text("<html><body><p>Sign in</p></body></html>", encoding='utf-8')

        code = main([str(self.page_path), '--output', str(self.output_dir), '--config', self.config_path])

        self.assertEqual(code, 1)
        self.assertFalse(self.output_dir.exists())

    def test_missing_file(self):
        """An unreadable source exits with an error"""
        code = main([str(Path(self.temp_dir) / "missing.html"), '--config', self.config_path])
        self.assertEqual(code, 1)

if __name__ == '__main__':
    unittest.main()
