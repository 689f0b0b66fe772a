"""Writes rendered documents to disk and keeps paths unique within a run."""

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Set

from ..converters.slugger import slugify
from ..models import ExportTarget

WRITTEN = "written"
UNCHANGED = "unchanged"
SKIPPED = "skipped"


class MarkdownWriter:
    """
    Filesystem sink for ExportTargets.

    Also owns the collision policy: the first record to claim a slug in a
    directory keeps it, later ones get the vendor ID appended, and a counter
    is added if even that is taken. Existing files are overwritten wholesale;
    byte-identical files are left untouched.
    """

    def __init__(self, output_directory: Path, dry_run: bool = False, logger: Optional[logging.Logger] = None):
        self.output_directory = Path(output_directory)
        self.dry_run = dry_run
        self.logger = logger or logging.getLogger('msp_doc_exporter.exporters.markdown_writer')
        self._issued: Dict[str, Set[str]] = {}

        self.stats = {
            'written': 0,
            'unchanged': 0,
            'skipped': 0,
            'collisions': 0
        }

    def reserve(self, directory: Path, name: str) -> None:
        """Mark a name as taken in a directory without writing anything."""
        self._names_in(directory).add(name.lower())

    def unique_name(self, directory: Path, slug: str, vendor_id: Any = None) -> str:
        """
        Claim a collision-free stem for ``slug`` inside ``directory``.

        Args:
            directory: Directory the file or subdirectory will live in
            slug: Preferred stem
            vendor_id: Record identifier used to disambiguate

        Returns:
            The claimed stem
        """
        taken = self._names_in(directory)
        candidate = slug

        if candidate.lower() in taken:
            self.stats['collisions'] += 1
            if vendor_id is not None and str(vendor_id).strip():
                candidate = f"{slug}-{slugify(vendor_id)}"
            counter = 2
            base = candidate
            while candidate.lower() in taken:
                candidate = f"{base}-{counter}"
                counter += 1
            self.logger.warning(
                f"Slug collision in {directory}: '{slug}' already used, writing as '{candidate}'"
            )

        taken.add(candidate.lower())
        return candidate

    def unique_path(self, directory: Path, slug: str, vendor_id: Any = None) -> Path:
        """Collision-free ``<directory>/<stem>.md`` for a record."""
        return Path(directory) / f"{self.unique_name(directory, slug, vendor_id)}.md"

    def unique_dir(self, parent: Path, slug: str, vendor_id: Any = None) -> Path:
        """Collision-free subdirectory of ``parent`` for an organization."""
        return Path(parent) / self.unique_name(parent, slug, vendor_id)

    def write(self, target: ExportTarget) -> str:
        """
        Write a document, creating parent directories as needed.

        Returns:
            ``"written"``, ``"unchanged"`` or ``"skipped"`` (dry run)

        Raises:
            OSError: If the directory or file cannot be written
        """
        path = Path(target.path)

        if self.dry_run:
            self.logger.info(f"[dry-run] would write {self._display(path)}")
            self.stats['skipped'] += 1
            return SKIPPED

        path.parent.mkdir(parents=True, exist_ok=True)

        if path.exists():
            try:
                if path.read_text(encoding='utf-8') == target.content:
                    self.logger.debug(f"Unchanged: {self._display(path)}")
                    self.stats['unchanged'] += 1
                    return UNCHANGED
            except (OSError, UnicodeDecodeError) as e:
                self.logger.debug(f"Could not read existing file {path}: {e}, overwriting")

        path.write_text(target.content, encoding='utf-8')
        self.stats['written'] += 1
        self.logger.debug(f"Wrote {len(target.content)} bytes to {self._display(path)}")
        return WRITTEN

    def _names_in(self, directory: Path) -> Set[str]:
        return self._issued.setdefault(str(Path(directory)), set())

    def _display(self, path: Path) -> str:
        try:
            return str(path.relative_to(self.output_directory))
        except ValueError:
            return str(path)


__all__ = ['MarkdownWriter', 'WRITTEN', 'UNCHANGED', 'SKIPPED']
