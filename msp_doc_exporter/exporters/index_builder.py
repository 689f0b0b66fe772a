"""Builds the top-level README.md that links every exported organization."""

import logging
from datetime import date
from typing import Dict, List, Optional, Sequence

from ..converters.slugger import slugify
from ..models import DocumentStatus, FrontMatter
from .document_renderer import format_front_matter

INDEX_FILENAME = "README.md"


class IndexBuilder:
    """Renders the navigation index at the root of an export."""

    def __init__(
        self,
        vendor: str,
        vendor_label: Optional[str] = None,
        owner: str = "msp-team",
        status: DocumentStatus = DocumentStatus.PUBLISHED,
        logger: Optional[logging.Logger] = None
    ):
        self.vendor = vendor
        self.vendor_label = vendor_label or vendor.title()
        self.owner = owner
        self.status = status
        self.logger = logger or logging.getLogger('msp_doc_exporter.exporters.index_builder')

    def build(
        self,
        today: date,
        organizations: Sequence[Dict[str, str]],
        knowledge_base: Optional[Sequence[Dict[str, str]]] = None
    ) -> str:
        """
        Render the root index.

        Args:
            today: Export run date
            organizations: ``{'title', 'path'}`` entries, path relative to the root
            knowledge_base: Knowledge-base entries, or None when the vendor has none

        Returns:
            Markdown document with front matter
        """
        front_matter = FrontMatter(
            title=f"{self.vendor_label} Documentation",
            created=today,
            updated=today,
            status=self.status,
            owner=self.owner,
            tags=[slugify(self.vendor), 'index']
        )

        sections: List[str] = [f"# {front_matter.title}"]

        lines = ["## Organizations", ""]
        if organizations:
            for entry in sorted(organizations, key=lambda e: e['title'].lower()):
                lines.append(f"- [{entry['title']}]({entry['path']})")
        else:
            lines.append("_No organizations exported._")
        sections.append("\n".join(lines))

        if knowledge_base is not None:
            lines = ["## Knowledge Base", ""]
            if knowledge_base:
                for entry in sorted(knowledge_base, key=lambda e: e['title'].lower()):
                    lines.append(f"- [{entry['title']}]({entry['path']})")
            else:
                lines.append("_No knowledge base articles exported._")
            sections.append("\n".join(lines))

        self.logger.debug(
            f"Built index with {len(organizations)} organizations and "
            f"{len(knowledge_base or [])} knowledge base articles"
        )
        return f"{format_front_matter(front_matter)}\n\n" + "\n\n".join(sections) + "\n"


__all__ = ['IndexBuilder', 'INDEX_FILENAME']
