"""Best-effort conversion of vendor rich-text fields to Markdown."""

import logging
import re
from typing import Any, Optional

from bs4 import BeautifulSoup, Comment
from markdownify import ATX, MarkdownConverter as MarkdownifyConverter

logger = logging.getLogger('msp_doc_exporter.converters.html_normalizer')

# Tags converted to Markdown. Everything else is unwrapped to plain text.
SUPPORTED_TAGS = [
    'h1', 'h2', 'h3',
    'p', 'br',
    'b', 'strong', 'i', 'em',
    'code', 'a',
    'ul', 'ol', 'li'
]

# Tags whose content is never useful as document text.
DROPPED_TAGS = ['script', 'style', 'head', 'title', 'meta', 'link', 'noscript']

_EXCESS_NEWLINES = re.compile(r'\n{3,}')
_TRAILING_SPACES = re.compile(r'[ \t]+\n')


class HtmlNormalizer(MarkdownifyConverter):
    """
    Tag-allow-list HTML to Markdown converter.

    The HTML is tokenized by BeautifulSoup; only ``SUPPORTED_TAGS`` are
    handed to markdownify's converters, all other tags are stripped with
    their text kept. Tables, deeply nested or malformed markup are not
    guaranteed to come out right.
    """

    def __init__(self, logger: logging.Logger = None, **kwargs):
        options = {
            'heading_style': ATX,
            'bullets': '-',
            'convert': SUPPORTED_TAGS,
            'autolinks': False,
            'newline_style': 'backslash',
            'escape_asterisks': False,
            'escape_underscores': False
        }
        options.update(kwargs)
        super().__init__(**options)

        self.logger = logger or logging.getLogger('msp_doc_exporter.converters.html_normalizer')

    def normalize(self, html: Optional[Any]) -> str:
        """
        Convert an HTML fragment to Markdown.

        Args:
            html: HTML string; ``None`` and empty input yield ``""``

        Returns:
            Markdown text with runs of 3+ newlines collapsed to 2
        """
        if html is None:
            return ""
        if not isinstance(html, str):
            html = str(html)
        if not html.strip():
            return ""

        soup = BeautifulSoup(html, 'lxml')

        for element in soup.find_all(DROPPED_TAGS):
            element.decompose()
        for comment in soup.find_all(string=lambda text: isinstance(text, Comment)):
            comment.extract()

        markdown = self.convert_soup(soup)
        markdown = _TRAILING_SPACES.sub('\n', markdown)
        markdown = _EXCESS_NEWLINES.sub('\n\n', markdown)

        return markdown.strip()


_default_normalizer: Optional[HtmlNormalizer] = None


def html_to_markdown(html: Optional[Any]) -> str:
    """Convert an HTML fragment with the shared default normalizer."""
    global _default_normalizer
    if _default_normalizer is None:
        _default_normalizer = HtmlNormalizer()
    return _default_normalizer.normalize(html)


__all__ = ['HtmlNormalizer', 'html_to_markdown', 'SUPPORTED_TAGS']
