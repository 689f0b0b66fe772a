"""Data models for the vendor export pipeline."""

import logging
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger('msp_doc_exporter')

# One entity as returned by a vendor API. No fixed schema.
VendorRecord = Dict[str, Any]


class DocumentStatus(Enum):
    """Lifecycle status written to front matter."""
    DRAFT = "draft"
    REVIEW = "review"
    PUBLISHED = "published"
    DEPRECATED = "deprecated"


class DocumentKind(Enum):
    """Kinds of documents the renderer knows how to lay out."""
    ORGANIZATION_OVERVIEW = "organization-overview"
    DEVICE = "device"
    CONFIGURATION = "configuration"
    DOCUMENT = "document"
    ASSET = "asset"
    RUNBOOK = "runbook"
    KNOWLEDGE_BASE_ARTICLE = "knowledge-base-article"
    CONTACT = "contact"
    LOCATION = "location"

    @property
    def label(self) -> str:
        """Human readable label, e.g. ``Knowledge Base Article``."""
        return self.value.replace('-', ' ').title()


class ExportState(Enum):
    """States of a single export run."""
    IDLE = "idle"
    AUTHENTICATING = "authenticating"
    FETCHING_TOP_LEVEL = "fetching_top_level"
    FETCHING_NESTED = "fetching_nested"
    RENDERING = "rendering"
    WRITING = "writing"
    DONE = "done"


@dataclass
class FrontMatter:
    """Fixed front-matter schema shared by every exported document."""

    title: str
    created: date
    updated: date
    status: DocumentStatus = DocumentStatus.PUBLISHED
    owner: str = "msp-team"
    tags: List[str] = field(default_factory=list)
    id_field: Optional[str] = None
    vendor_id: Any = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize in a stable key order; the vendor identifier goes last."""
        data = {
            'title': self.title,
            'status': self.status.value,
            'owner': self.owner,
            'created': self.created,
            'updated': self.updated,
            'tags': list(self.tags)
        }
        if self.id_field:
            data[self.id_field] = self.vendor_id
        return data


@dataclass
class ExportTarget:
    """A rendered document and where it goes on disk."""

    path: Path
    content: str


@dataclass
class ResourceListing:
    """Files written for one nested resource type of an organization."""

    resource_type: str
    entries: List[Dict[str, str]] = field(default_factory=list)
    unavailable: bool = False
    failed: bool = False

    def add(self, title: str, relative_path: str) -> None:
        self.entries.append({'title': title, 'path': relative_path})


__all__ = [
    'VendorRecord',
    'DocumentStatus',
    'DocumentKind',
    'ExportState',
    'FrontMatter',
    'ExportTarget',
    'ResourceListing'
]
