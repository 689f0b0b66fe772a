"""
Export report: counters and problems collected during one run.

Formats a console summary and a JSON file, the same two views the
operator gets after every export.
"""

import json
import logging
from collections import Counter
from datetime import datetime
from typing import Any, Dict, List, Optional


class ExportReport:
    """Aggregates per-run statistics from the orchestrator and writer."""

    def __init__(self, vendor: str, output_directory: str, dry_run: bool = False):
        self.vendor = vendor
        self.output_directory = str(output_directory)
        self.dry_run = dry_run
        self.started_at = datetime.now()
        self.finished_at: Optional[datetime] = None

        self.organizations = 0
        self.documents: Counter = Counter()
        self.knowledge_base_articles = 0
        self.files: Dict[str, int] = {}
        self.requests = 0

        self.unavailable: List[str] = []
        self.failed_collections: List[str] = []
        self.errors: List[Dict[str, str]] = []
        self.warnings: List[Dict[str, str]] = []

    @property
    def success(self) -> bool:
        """A run succeeds unless a record or collection failed outright."""
        return not self.errors

    @property
    def total_documents(self) -> int:
        return self.organizations + sum(self.documents.values()) + self.knowledge_base_articles

    def record_document(self, resource_type: str) -> None:
        self.documents[resource_type] += 1

    def add_error(self, context: str, message: str) -> None:
        self.errors.append({'context': context, 'message': message})

    def add_warning(self, context: str, message: str) -> None:
        self.warnings.append({'context': context, 'message': message})

    def mark_unavailable(self, context: str, message: str) -> None:
        self.unavailable.append(context)
        self.add_warning(context, message)

    def mark_failed(self, context: str, message: str) -> None:
        self.failed_collections.append(context)
        self.add_error(context, message)

    def finish(self, writer_stats: Optional[Dict[str, int]] = None, requests: int = 0) -> None:
        self.finished_at = datetime.now()
        self.files = dict(writer_stats or {})
        self.requests = requests

    @property
    def duration(self) -> float:
        end = self.finished_at or datetime.now()
        return (end - self.started_at).total_seconds()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'summary': {
                'vendor': self.vendor,
                'output_directory': self.output_directory,
                'dry_run': self.dry_run,
                'success': self.success,
                'organizations': self.organizations,
                'documents': dict(self.documents),
                'knowledge_base_articles': self.knowledge_base_articles,
                'total_documents': self.total_documents,
                'requests': self.requests,
                'duration_seconds': round(self.duration, 3)
            },
            'files': dict(self.files),
            'unavailable_collections': list(self.unavailable),
            'failed_collections': list(self.failed_collections),
            'errors': list(self.errors),
            'warnings': list(self.warnings),
            'started_at': self.started_at.isoformat(),
            'finished_at': self.finished_at.isoformat() if self.finished_at else None
        }

    def format_console_report(self) -> str:
        sections = []

        sections.append("=" * 60)
        sections.append("EXPORT REPORT")
        sections.append("=" * 60)
        sections.append("")

        sections.append("Summary:")
        sections.append(f"  Vendor:         {self.vendor}")
        sections.append(f"  Output:         {self.output_directory}")
        sections.append(f"  Organizations:  {self.organizations}")
        for resource_type, count in sorted(self.documents.items()):
            sections.append(f"  {resource_type.replace('-', ' ').title() + ':':<16}{count}")
        sections.append(f"  Knowledge Base: {self.knowledge_base_articles}")
        sections.append(f"  Requests:       {self.requests}")
        sections.append(f"  Duration:       {self.duration:.1f}s")
        if self.dry_run:
            sections.append("  Mode:           DRY RUN (nothing written)")
        sections.append("")

        if self.files:
            sections.append("Files:")
            for key in ('written', 'unchanged', 'skipped', 'collisions'):
                if key in self.files:
                    sections.append(f"  {key.title() + ':':<16}{self.files[key]}")
            sections.append("")

        if self.warnings:
            sections.append(f"Warnings ({len(self.warnings)}):")
            for warning in self.warnings[:10]:
                sections.append(f"  - {warning['context']}: {warning['message']}")
            if len(self.warnings) > 10:
                sections.append(f"  ... and {len(self.warnings) - 10} more")
            sections.append("")

        if self.errors:
            sections.append(f"Errors ({len(self.errors)}):")
            for error in self.errors[:10]:
                sections.append(f"  - {error['context']}: {error['message']}")
            if len(self.errors) > 10:
                sections.append(f"  ... and {len(self.errors) - 10} more")
            sections.append("")

        sections.append("=" * 60)
        return "\n".join(sections)

    def log_summary(self, logger: Optional[logging.Logger] = None) -> None:
        logger = logger or logging.getLogger('msp_doc_exporter.orchestrator')
        for line in self.format_console_report().splitlines():
            logger.info(line)

    def export_json_report(self, filepath: str, logger: Optional[logging.Logger] = None) -> None:
        """
        Write the report as JSON.

        Raises:
            OSError: If the file cannot be written
        """
        logger = logger or logging.getLogger('msp_doc_exporter.orchestrator')
        with open(filepath, 'w', encoding='utf-8') as f:
            json.dump(self.to_dict(), f, indent=2, ensure_ascii=False, default=str)
        logger.info(f"JSON report exported to {filepath}")


__all__ = ['ExportReport']
