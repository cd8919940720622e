#!/usr/bin/env python3
"""
Tests for ContentNormalizer
"""

import unittest
import sys
import os

from bs4 import BeautifulSoup

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from extractors.content_normalizer import ContentNormalizer, detect_code_language

def node(html: str):
    """Parse a fragment and return its first element"""
    return BeautifulSoup(html, 'html.parser').find(True)

class TestContentNormalizer(unittest.TestCase):
    """Test cases for ContentNormalizer"""

    def setUp(self):
        self.normalizer = ContentNormalizer()

    def test_mixed_formatting_in_order(self):
        """Bold, code block, list and link come out in document order"""
        html = """
        <div class="markdown">
          <p>This is <strong>important</strong> text.</p>
          <pre><code class="language-python">print("hi")</code></pre>
          <ul><li>first item</li><li>second item</li></ul>
          <p>See <a href="https://example.com/docs">the docs</a>.</p>
        </div>
        """
        text = self.normalizer.normalize(node(html))

        bold = text.index("**important**")
        fence = text.index("```python\nprint(\"hi\")\n```")
        first = text.index("- first item")
        second = text.index("- second item")
        link = text.index("[the docs](https://example.com/docs)")

        self.assertLess(bold, fence)
        self.assertLess(fence, first)
        self.assertLess(first, second)
        self.assertLess(second, link)

        lines = text.split("\n")
        self.assertIn("- first item", lines)
        self.assertIn("- second item", lines)

    def test_source_node_is_not_modified(self):
        """Normalization works on a copy"""
        element = node('<div><button>Copy</button><p>Hello <b>there</b></p></div>')
        before = str(element)

        self.assertEqual(self.normalizer.normalize(element), "Hello **there**")
        self.assertEqual(str(element), before)
        self.assertIsNotNone(element.find('button'))

    def test_strips_ui_decoration(self):
        """Controls, icons and hidden elements are removed"""
        html = """
        <div>
          <div class="avatar-wrapper"><img src="a.png"></div>
          <mat-icon>thumb_up</mat-icon>
          <span aria-hidden="true">decor</span>
          <div class="message-toolbar"><span>Share</span></div>
          <p>Actual answer</p>
        </div>
        """
        self.assertEqual(self.normalizer.normalize(node(html)), "Actual answer")

    def test_strips_role_label_leaves(self):
        """Short label elements are removed but message text is kept"""
        html = '<div><div>You said</div><p>What is 2+2?</p></div>'
        self.assertEqual(self.normalizer.normalize(node(html)), "What is 2+2?")

        html = '<div><span>Gemini</span><p>It is 4.</p></div>'
        self.assertEqual(self.normalizer.normalize(node(html)), "It is 4.")

    def test_keeps_short_message_bodies(self):
        """A short reply that is not a label survives"""
        self.assertEqual(self.normalizer.normalize(node('<div><p>Yes</p></div>')), "Yes")

    def test_keeps_body_that_reads_like_a_label(self):
        """A message consisting only of a role word is not treated as a label"""
        html = '<user-query><p>Gemini</p></user-query>'
        self.assertEqual(self.normalizer.normalize(node(html)), "Gemini")

        html = '<div><div>You said</div><p>You</p></div>'
        self.assertEqual(self.normalizer.normalize(node(html)), "You")

    def test_strips_residual_label_lines(self):
        """Label lines left inside text blocks are removed"""
        html = '<div><p>Gemini said<br>Here is the answer</p></div>'
        self.assertEqual(self.normalizer.normalize(node(html)), "Here is the answer")

        html = '<div><p>Intro</p><p>you said<br>More</p></div>'
        self.assertEqual(self.normalizer.normalize(node(html)), "Intro\n\nMore")

    def test_inline_code(self):
        """Inline code outside a pre block is wrapped in backticks"""
        html = '<div><p>Run <code>ls -la</code> first</p></div>'
        self.assertEqual(self.normalizer.normalize(node(html)), "Run `ls -la` first")

    def test_code_block_is_verbatim(self):
        """Code text is not reformatted or escaped"""
        html = '<div><pre><code>a = "&lt;b&gt;"\n**not bold**</code></pre></div>'
        text = self.normalizer.normalize(node(html))
        self.assertEqual(text, '```\na = "<b>"\n**not bold**\n```')

    def test_headings(self):
        """Headings become hash-prefixed lines separated by blank lines"""
        html = '<div><p>Intro</p><h2>Setup</h2><p>Body</p><h6>Small</h6></div>'
        text = self.normalizer.normalize(node(html))
        self.assertEqual(text, "Intro\n\n## Setup\n\nBody\n\n###### Small")

    def test_italic_and_span(self):
        """Italic is wrapped and spans are dropped"""
        html = '<div><p><em>soft</em> and <span class="x">plain</span></p></div>'
        self.assertEqual(self.normalizer.normalize(node(html)), "*soft* and plain")

    def test_anchor_without_href(self):
        """Anchors without a target keep only their text"""
        html = '<div><p><a name="x">anchor</a></p></div>'
        self.assertEqual(self.normalizer.normalize(node(html)), "anchor")

    def test_entities_are_decoded_once(self):
        """Entities become characters and are never re-parsed as markup"""
        html = '<div><p>5 &lt; 6 &amp;&amp; &lt;script&gt;x&lt;/script&gt; &amp;amp;</p></div>'
        text = self.normalizer.normalize(node(html))
        self.assertEqual(text, "5 < 6 && <script>x</script> &amp;")

    def test_whitespace_cleanup(self):
        """Blank runs collapse to one empty line and trailing spaces go"""
        html = '<div><p>first   </p><p></p><p></p><div></div><p>second</p></div>'
        self.assertEqual(self.normalizer.normalize(node(html)), "first\n\nsecond")

    def test_invisible_characters_removed(self):
        """Zero-width characters are dropped and non-breaking spaces become spaces"""
        html = '<div><p>a\u200bb\u00a0c</p></div>'
        self.assertEqual(self.normalizer.normalize(node(html)), "ab c")

    def test_empty_after_normalization(self):
        """A node with only decoration yields empty text"""
        self.assertEqual(self.normalizer.normalize(node('<div><button>Copy</button></div>')), "")
        self.assertEqual(self.normalizer.normalize(None), "")

    def test_scripts_and_comments_ignored(self):
        """Script bodies and comments are not content"""
        html = '<div><script>var x = 1;</script><!-- note --><p>Visible</p></div>'
        self.assertEqual(self.normalizer.normalize(node(html)), "Visible")

class TestDetectCodeLanguage(unittest.TestCase):
    """Test cases for detect_code_language"""

    def test_class_patterns(self):
        """language-X, lang-X and X-code are recognized"""
        cases = {
            '<code class="language-python"></code>': 'python',
            '<code class="hljs lang-js"></code>': 'js',
            '<code class="rust-code"></code>': 'rust',
        }
        for html, expected in cases.items():
            with self.subTest(html=html):
                self.assertEqual(detect_code_language(node(html)), expected)

    def test_data_attributes(self):
        """Data attributes are used when classes say nothing"""
        self.assertEqual(detect_code_language(node('<code data-language="go"></code>')), 'go')
        self.assertEqual(detect_code_language(node('<code data-lang="sql"></code>')), 'sql')

    def test_undetected(self):
        """No hint gives an empty identifier"""
        self.assertEqual(detect_code_language(node('<code class="hljs"></code>')), '')
        self.assertEqual(detect_code_language(None), '')

    def test_pre_fallback(self):
        """The pre element is consulted when its code element has no hint"""
        normalizer = ContentNormalizer()
        html = '<div><pre class="language-bash"><code>echo hi</code></pre></div>'
        self.assertEqual(normalizer.normalize(node(html)), "```bash\necho hi\n```")

if __name__ == '__main__':
    unittest.main()
