"""Render vendor records as Markdown documents with YAML front matter."""

import logging
import re
from datetime import date
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import yaml

from ..converters.html_normalizer import HtmlNormalizer
from ..converters.slugger import slugify
from ..models import DocumentKind, DocumentStatus, FrontMatter, ResourceListing, VendorRecord
from .field_mapping import (
    DEFAULT_FIELD_MAPPINGS,
    MISSING,
    FieldMapping,
    escape_table_cell,
    format_value,
    resolve_field
)

FRONT_MATTER_PATTERN = re.compile(r'\A---\n(.*?)\n---\n?', re.DOTALL)


class _QuotedString(str):
    """Marker for strings that must be emitted double-quoted."""
    pass


class _FrontMatterDumper(yaml.SafeDumper):
    """SafeDumper that never emits anchors; created and updated share one date."""

    def ignore_aliases(self, data):
        return True


def _represent_quoted(dumper: yaml.SafeDumper, data: _QuotedString) -> yaml.ScalarNode:
    return dumper.represent_scalar('tag:yaml.org,2002:str', str(data), style='"')


_FrontMatterDumper.add_representer(_QuotedString, _represent_quoted)


class DocumentRenderer:
    """
    Turns one VendorRecord into a complete Markdown document.

    Front matter always carries title, status, owner, created, updated and
    tags, plus the vendor identifier. ``created`` and ``updated`` are the
    export date, so every run re-stamps them even when nothing changed.
    """

    def __init__(
        self,
        vendor: str,
        field_mappings: Optional[Dict[DocumentKind, FieldMapping]] = None,
        owner: str = "msp-team",
        status: Union[DocumentStatus, str] = DocumentStatus.PUBLISHED,
        id_field: Optional[str] = None,
        id_keys: Sequence[str] = ('id',),
        vendor_label: Optional[str] = None,
        normalizer: Optional[HtmlNormalizer] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the renderer.

        Args:
            vendor: Vendor name, used for tags and the default id field
            field_mappings: Per-kind mappings overriding the defaults
            owner: Front-matter owner when the caller has no better value
            status: Front-matter status
            id_field: Front-matter key for the vendor identifier
            id_keys: Record keys holding the vendor identifier
            vendor_label: Display name used in the identifier table row
            normalizer: HTML normalizer for rich-text fields
            logger: Logger instance
        """
        self.vendor = vendor
        self.field_mappings = dict(DEFAULT_FIELD_MAPPINGS)
        self.field_mappings.update(field_mappings or {})
        self.owner = owner or "msp-team"
        self.status = DocumentStatus(status) if isinstance(status, str) else status
        self.id_field = id_field or f"{slugify(vendor).replace('-', '_')}_id"
        self.id_keys = list(id_keys)
        self.vendor_label = vendor_label or vendor.replace('_', ' ').replace('-', ' ').title()
        self.normalizer = normalizer or HtmlNormalizer()
        self.logger = logger or logging.getLogger('msp_doc_exporter.exporters.document_renderer')

    def mapping_for(self, kind: Union[DocumentKind, str]) -> FieldMapping:
        return self.field_mappings[DocumentKind(kind)]

    def record_id(self, record: VendorRecord) -> Any:
        return resolve_field(record, self.id_keys)

    def resolve_title(self, record: VendorRecord, kind: Union[DocumentKind, str]) -> str:
        """Title from the mapping's fallback chain, else "<Kind> <id>"."""
        kind = DocumentKind(kind)
        title = resolve_field(record, self.mapping_for(kind).title)
        if title is not None:
            return _collapse_whitespace(format_value(title))

        record_id = self.record_id(record)
        if record_id is not None:
            return f"{kind.label} {record_id}"
        return "Untitled"

    def build_tags(self, record: VendorRecord, kind: Union[DocumentKind, str]) -> List[str]:
        """Vendor, kind and category slugs, in that order, without duplicates."""
        kind = DocumentKind(kind)
        candidates = [self.vendor, kind.value]

        category = resolve_field(record, self.mapping_for(kind).category)
        if category is not None:
            candidates.append(format_value(category))

        tags = []
        for candidate in candidates:
            tag = slugify(candidate)
            if tag not in tags:
                tags.append(tag)
        return tags

    def build_front_matter(
        self,
        record: VendorRecord,
        kind: Union[DocumentKind, str],
        today: date
    ) -> FrontMatter:
        return FrontMatter(
            title=self.resolve_title(record, kind),
            created=today,
            updated=today,
            status=self.status,
            owner=self.owner,
            tags=self.build_tags(record, kind),
            id_field=self.id_field,
            vendor_id=self.record_id(record)
        )

    def render(self, record: VendorRecord, kind: Union[DocumentKind, str], today: date) -> str:
        """
        Render a complete document.

        Args:
            record: Vendor record
            kind: Document kind selecting the field mapping
            today: Export run date, stamped as created/updated

        Returns:
            Markdown text: front matter, then body
        """
        front_matter = self.build_front_matter(record, kind, today)
        body = self.render_body(record, kind, title=front_matter.title)
        return f"{format_front_matter(front_matter)}\n\n{body}"

    def render_body(
        self,
        record: VendorRecord,
        kind: Union[DocumentKind, str],
        title: Optional[str] = None
    ) -> str:
        kind = DocumentKind(kind)
        mapping = self.mapping_for(kind)
        title = title or self.resolve_title(record, kind)

        sections = [f"# {title}", self._render_table(record, mapping)]

        rich_text = self._render_rich_text(record, mapping)
        if rich_text:
            sections.append(f"## {mapping.body_heading}\n\n{rich_text}")

        return "\n\n".join(sections) + "\n"

    def render_organization(
        self,
        record: VendorRecord,
        today: date,
        listings: Sequence[ResourceListing] = ()
    ) -> str:
        """
        Render an organization overview (README.md) with one section per
        nested resource type linking the files written for it.
        """
        kind = DocumentKind.ORGANIZATION_OVERVIEW
        front_matter = self.build_front_matter(record, kind, today)
        body = self.render_body(record, kind, title=front_matter.title).rstrip('\n')

        sections = [body]
        for listing in listings:
            sections.append(self._render_listing(listing))

        return f"{format_front_matter(front_matter)}\n\n" + "\n\n".join(sections) + "\n"

    def _render_table(self, record: VendorRecord, mapping: FieldMapping) -> str:
        lines = ["| Field | Value |", "|-------|-------|"]
        for label, candidates in mapping.rows:
            value = format_value(resolve_field(record, candidates))
            lines.append(f"| {label} | {escape_table_cell(value)} |")

        record_id = self.record_id(record)
        lines.append(f"| {self.vendor_label} ID | {escape_table_cell(format_value(record_id))} |")
        return "\n".join(lines)

    def _render_rich_text(self, record: VendorRecord, mapping: FieldMapping) -> str:
        if not mapping.body:
            return ""
        value = resolve_field(record, mapping.body)
        if value is None:
            return ""
        if not isinstance(value, str):
            value = format_value(value)
        return self.normalizer.normalize(value)

    def _render_listing(self, listing: ResourceListing) -> str:
        heading = listing.resource_type.replace('-', ' ').replace('_', ' ').title()
        lines = [f"## {heading}", ""]

        if listing.entries:
            for entry in listing.entries:
                lines.append(f"- [{_escape_link_text(entry['title'])}]({entry['path']})")
        if listing.failed:
            lines.append(f"_{heading} could not be fully exported; see the export log._")
        elif listing.unavailable:
            lines.append(f"_{heading} are not available for this account._")
        elif not listing.entries:
            lines.append(f"_No {heading.lower()} exported._")

        return "\n".join(lines)


def format_front_matter(front_matter: FrontMatter) -> str:
    """Serialize front matter as a ``---`` delimited YAML block."""
    data = front_matter.to_dict()
    data['title'] = _QuotedString(data['title'])

    yaml_str = yaml.dump(
        data,
        Dumper=_FrontMatterDumper,
        default_flow_style=False,
        allow_unicode=True,
        sort_keys=False,
        width=1000
    )
    return f"---\n{yaml_str}---"


def split_front_matter(text: str) -> Tuple[Dict[str, Any], str]:
    """
    Split a rendered document into (front matter dict, body).

    Documents without front matter return an empty dict and the full text.
    """
    match = FRONT_MATTER_PATTERN.match(text)
    if not match:
        return {}, text
    data = yaml.safe_load(match.group(1)) or {}
    return data, text[match.end():].lstrip('\n')


def _collapse_whitespace(text: str) -> str:
    return re.sub(r'\s+', ' ', text).strip()


def _escape_link_text(text: str) -> str:
    return text.replace('[', '\\[').replace(']', '\\]')


__all__ = ['DocumentRenderer', 'format_front_matter', 'split_front_matter', 'MISSING']
