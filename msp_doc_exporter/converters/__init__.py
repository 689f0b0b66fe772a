"""Converters package: slugs and HTML-to-Markdown normalization."""

from .html_normalizer import HtmlNormalizer, html_to_markdown, SUPPORTED_TAGS
from .slugger import slugify, FALLBACK_SLUG

__all__ = [
    'HtmlNormalizer',
    'html_to_markdown',
    'SUPPORTED_TAGS',
    'slugify',
    'FALLBACK_SLUG'
]
