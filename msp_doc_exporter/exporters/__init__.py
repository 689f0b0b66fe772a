"""Markdown export package.

Package Structure:
- field_mapping: explicit vendor-key -> document-field tables
- document_renderer: front matter + body for one vendor record
- markdown_writer: filesystem writes and the slug collision policy
- index_builder: README.md navigation at the export root
"""

from .document_renderer import DocumentRenderer, format_front_matter, split_front_matter
from .field_mapping import (
    DEFAULT_FIELD_MAPPINGS,
    MISSING,
    FieldMapping,
    format_value,
    resolve_field
)
from .index_builder import IndexBuilder
from .markdown_writer import MarkdownWriter

__all__ = [
    'DocumentRenderer',
    'format_front_matter',
    'split_front_matter',
    'DEFAULT_FIELD_MAPPINGS',
    'MISSING',
    'FieldMapping',
    'format_value',
    'resolve_field',
    'IndexBuilder',
    'MarkdownWriter'
]
