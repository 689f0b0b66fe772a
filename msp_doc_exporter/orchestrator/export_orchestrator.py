"""
Export orchestrator: drives one vendor export from authentication to the
final index.

Pipeline per run: authenticate → list organizations → for each organization,
fetch every nested resource type, render each record, write it → organization
README → knowledge base → root index.
"""

import logging
from datetime import date
from functools import partial
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from ..config_loader import get_nested
from ..converters.slugger import slugify
from ..errors import ExporterError, PermissionDeniedError
from ..exporters.document_renderer import DocumentRenderer
from ..exporters.index_builder import INDEX_FILENAME, IndexBuilder
from ..exporters.markdown_writer import MarkdownWriter
from ..fetchers.base_adapter import BaseAdapter
from ..logger import ProgressTracker, log_section
from ..models import DocumentKind, ExportState, ExportTarget, ResourceListing, VendorRecord
from .export_report import ExportReport

KNOWLEDGE_BASE_DIR = "knowledge-base"
ORGANIZATION_README = "README.md"


class ExportOrchestrator:
    """Central coordinator sequencing one export run."""

    def __init__(
        self,
        adapter: BaseAdapter,
        config: Dict[str, Any],
        renderer: Optional[DocumentRenderer] = None,
        writer: Optional[MarkdownWriter] = None,
        index_builder: Optional[IndexBuilder] = None,
        today: Optional[date] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the orchestrator.

        Args:
            adapter: Vendor adapter supplying records
            config: Exporter configuration
            renderer: Document renderer (built from the adapter when omitted)
            writer: Markdown writer (built from ``export.*`` when omitted)
            index_builder: Root index builder (built from the adapter when omitted)
            today: Date stamped into front matter; defaults to the current date
            logger: Optional logger instance
        """
        self.adapter = adapter
        self.config = config
        self.logger = logger or logging.getLogger('msp_doc_exporter.orchestrator')

        self.output_directory = Path(get_nested(config, 'export.output_directory', './export'))
        self.dry_run = bool(get_nested(config, 'export.dry_run', False))
        self.create_index = bool(get_nested(config, 'export.create_index_files', True))
        self.organization_filter = {
            str(name).strip().lower() for name in (get_nested(config, 'export.organizations') or [])
        }

        owner = get_nested(config, 'export.owner', 'msp-team')
        status = get_nested(config, 'export.status', 'published')

        self.renderer = renderer or DocumentRenderer(
            vendor=adapter.name,
            field_mappings=adapter.field_mappings,
            owner=owner,
            status=status,
            id_field=adapter.id_field,
            id_keys=adapter.id_keys,
            vendor_label=adapter.display_name
        )
        self.writer = writer or MarkdownWriter(self.output_directory, dry_run=self.dry_run)
        self.index_builder = index_builder or IndexBuilder(
            vendor=adapter.name,
            vendor_label=adapter.display_name,
            owner=owner,
            status=self.renderer.status
        )
        self.today = today or date.today()

        self.state = ExportState.IDLE
        self.report: Optional[ExportReport] = None

    def run(self) -> ExportReport:
        """
        Execute the export.

        Returns:
            ExportReport for the run

        Raises:
            AuthenticationError: If credentials are rejected
            ExporterError: If the organization list cannot be fetched
        """
        self.report = ExportReport(self.adapter.name, self.output_directory, dry_run=self.dry_run)
        log_section(f"{self.adapter.display_name} export")

        self._transition(ExportState.AUTHENTICATING)
        self.adapter.authenticate()

        self.writer.reserve(self.output_directory, KNOWLEDGE_BASE_DIR)

        self._transition(ExportState.FETCHING_TOP_LEVEL)
        index_entries: List[Dict[str, str]] = []
        with ProgressTracker("organizations") as progress:
            for organization in self._selected_organizations():
                title = self.renderer.resolve_title(organization, DocumentKind.ORGANIZATION_OVERVIEW)
                success = self._export_organization(organization, title, index_entries)
                progress.increment(success=success, label=title)

        knowledge_base_entries = None
        if self.adapter.has_knowledge_base:
            knowledge_base_entries = self._export_knowledge_base()

        if self.create_index:
            self._write_index(index_entries, knowledge_base_entries)

        self._transition(ExportState.DONE)
        client = getattr(self.adapter, 'client', None)
        self.report.finish(self.writer.stats, requests=getattr(client, 'request_count', 0))
        return self.report

    def _selected_organizations(self) -> Iterator[VendorRecord]:
        """Stream top-level records; the next page is fetched only once the current one is exported."""
        for organization in self.adapter.list_top_level():
            if self._is_selected(organization):
                yield organization
                self._transition(ExportState.FETCHING_TOP_LEVEL)

    def _export_organization(
        self,
        organization: VendorRecord,
        title: str,
        index_entries: List[Dict[str, str]]
    ) -> bool:
        """Export one organization and its nested collections. Returns False on any failure."""
        org_id = self.adapter.record_id(organization)
        org_dir = self.writer.unique_dir(self.output_directory, slugify(title), org_id)
        self.report.organizations += 1
        self.logger.info(f"Exporting organization '{title}' (ID: {org_id}) to {org_dir.name}/")

        listings = []
        success = True
        for resource_type, kind in self.adapter.nested_types.items():
            listing = ResourceListing(resource_type)
            listings.append(listing)

            if org_id is None:
                self.logger.warning(f"Organization '{title}' has no ID, skipping {resource_type}")
                self.report.mark_unavailable(f"{title}/{resource_type}", "organization has no ID")
                listing.unavailable = True
                continue

            self._export_collection(
                partial(self.adapter.list_nested, org_id, resource_type),
                kind,
                org_dir / resource_type,
                org_dir,
                listing,
                context=f"{title}/{resource_type}"
            )
            success = success and not listing.failed

        self._transition(ExportState.RENDERING)
        content = self.renderer.render_organization(organization, self.today, listings)
        if not self._write(ExportTarget(org_dir / ORGANIZATION_README, content), context=title):
            return False

        index_entries.append({'title': title, 'path': f"{org_dir.name}/{ORGANIZATION_README}"})
        return success

    def _export_knowledge_base(self) -> List[Dict[str, str]]:
        log_section("Knowledge base")
        listing = ResourceListing(KNOWLEDGE_BASE_DIR)
        self._export_collection(
            self.adapter.list_knowledge_base,
            DocumentKind.KNOWLEDGE_BASE_ARTICLE,
            self.output_directory / KNOWLEDGE_BASE_DIR,
            self.output_directory,
            listing,
            context=KNOWLEDGE_BASE_DIR
        )
        self.logger.info(f"Exported {len(listing.entries)} knowledge base articles")
        return listing.entries

    def _export_collection(
        self,
        fetch,
        kind: DocumentKind,
        directory: Path,
        relative_to: Path,
        listing: ResourceListing,
        context: str
    ) -> None:
        """
        Fetch, render and write one collection.

        A 403 leaves the collection empty with a warning; any other vendor
        error stops the collection and is reported. Records already written
        stay on disk.
        """
        self._transition(ExportState.FETCHING_NESTED)
        try:
            for record in fetch():
                self._export_record(record, kind, directory, relative_to, listing)
        except PermissionDeniedError as e:
            self.logger.warning(f"Skipping {context}: not available for this account ({e})")
            listing.unavailable = True
            self.report.mark_unavailable(context, str(e))
        except ExporterError as e:
            self.logger.error(f"Failed to export {context}: {e}")
            listing.failed = True
            self.report.mark_failed(context, str(e))

    def _export_record(
        self,
        record: VendorRecord,
        kind: DocumentKind,
        directory: Path,
        relative_to: Path,
        listing: ResourceListing
    ) -> None:
        self._transition(ExportState.RENDERING)
        title = self.renderer.resolve_title(record, kind)
        content = self.renderer.render(record, kind, self.today)
        path = self.writer.unique_path(directory, slugify(title), self.renderer.record_id(record))

        if not self._write(ExportTarget(path, content), context=f"{listing.resource_type}/{path.name}"):
            return

        listing.add(title, path.relative_to(relative_to).as_posix())
        if kind is DocumentKind.KNOWLEDGE_BASE_ARTICLE:
            self.report.knowledge_base_articles += 1
        else:
            self.report.record_document(listing.resource_type)

    def _write_index(
        self,
        organizations: List[Dict[str, str]],
        knowledge_base: Optional[List[Dict[str, str]]]
    ) -> None:
        self._transition(ExportState.RENDERING)
        content = self.index_builder.build(self.today, organizations, knowledge_base)
        self._write(ExportTarget(self.output_directory / INDEX_FILENAME, content), context=INDEX_FILENAME)

    def _write(self, target: ExportTarget, context: str) -> bool:
        self._transition(ExportState.WRITING)
        try:
            self.writer.write(target)
            return True
        except OSError as e:
            self.logger.error(f"Failed to write {target.path}: {e}")
            self.report.add_error(context, str(e))
            return False

    def _is_selected(self, organization: VendorRecord) -> bool:
        if not self.organization_filter:
            return True
        title = self.renderer.resolve_title(organization, DocumentKind.ORGANIZATION_OVERVIEW)
        org_id = self.adapter.record_id(organization)
        candidates = {title.strip().lower(), slugify(title)}
        if org_id is not None:
            candidates.add(str(org_id).lower())
        return bool(candidates & self.organization_filter)

    def _transition(self, state: ExportState) -> None:
        if state is not self.state:
            self.logger.debug(f"State: {self.state.value} -> {state.value}")
            self.state = state


__all__ = ['ExportOrchestrator', 'KNOWLEDGE_BASE_DIR']
