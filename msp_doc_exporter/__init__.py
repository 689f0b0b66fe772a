"""
MSP Documentation Exporter

Pulls documentation records out of MSP platforms (Atera, IT Glue, NinjaOne,
ITBoost) and writes them as a static tree of Markdown files with YAML front
matter, ready to be committed to a git-based documentation repository.

Features:
- One export pipeline with small per-vendor adapters
- API key, bearer token and OAuth2 client-credentials authentication
- Page-number, JSON:API, cursor and next-link pagination
- Explicit field-mapping tables; missing fields render as N/A
- Allow-list HTML to Markdown normalization for rich-text fields
- Deterministic, collision-free slugs for file and directory names
- Dry-run mode, organization filter and a JSON export report

Basic Usage:
    EXPORT_VENDOR=atera VENDOR_API_KEY=... msp-export --output-dir ./docs

Password vaults are never exported; credentials belong in a dedicated
secrets manager, not in the documentation corpus.
"""

__version__ = "1.0.0"

from .errors import (
    AuthenticationError,
    ExporterError,
    PermissionDeniedError,
    RateLimitError,
    TransportError,
    UnknownVendorError
)
from .models import DocumentKind, DocumentStatus, ExportState, FrontMatter, VendorRecord
from .vendor_client import VendorApiClient

__all__ = [
    '__version__',
    'AuthenticationError',
    'ExporterError',
    'PermissionDeniedError',
    'RateLimitError',
    'TransportError',
    'UnknownVendorError',
    'DocumentKind',
    'DocumentStatus',
    'ExportState',
    'FrontMatter',
    'VendorRecord',
    'VendorApiClient'
]
