import shutil
import tempfile
import unittest
from datetime import date
from pathlib import Path

from msp_doc_exporter.exporters.document_renderer import split_front_matter
from msp_doc_exporter.exporters.index_builder import IndexBuilder
from msp_doc_exporter.exporters.markdown_writer import SKIPPED, UNCHANGED, WRITTEN, MarkdownWriter
from msp_doc_exporter.models import ExportTarget


class TestMarkdownWriter(unittest.TestCase):
    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())
        self.writer = MarkdownWriter(self.temp_dir)

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_first_claim_keeps_slug(self):
        path = self.writer.unique_path(self.temp_dir / 'devices', 'server-01', 17)
        self.assertEqual(path, self.temp_dir / 'devices' / 'server-01.md')

    def test_collision_appends_vendor_id(self):
        directory = self.temp_dir / 'devices'
        first = self.writer.unique_path(directory, 'server-01', 17)
        second = self.writer.unique_path(directory, 'server-01', 18)

        self.assertEqual(first.name, 'server-01.md')
        self.assertEqual(second.name, 'server-01-18.md')
        self.assertEqual(self.writer.stats['collisions'], 1)

    def test_collision_without_id_uses_counter(self):
        directory = self.temp_dir / 'devices'
        names = [self.writer.unique_path(directory, 'server-01').name for _ in range(3)]
        self.assertEqual(names, ['server-01.md', 'server-01-2.md', 'server-01-3.md'])

    def test_same_id_twice_gets_counter(self):
        directory = self.temp_dir / 'devices'
        self.writer.unique_path(directory, 'server-01', 5)
        self.writer.unique_path(directory, 'server-01-5')
        third = self.writer.unique_path(directory, 'server-01', 5)
        self.assertEqual(third.name, 'server-01-5-2.md')

    def test_registry_is_per_directory(self):
        a = self.writer.unique_path(self.temp_dir / 'acme' / 'devices', 'server-01', 1)
        b = self.writer.unique_path(self.temp_dir / 'globex' / 'devices', 'server-01', 2)
        self.assertEqual(a.name, b.name)

    def test_reserved_names_are_avoided(self):
        self.writer.reserve(self.temp_dir, 'knowledge-base')
        org_dir = self.writer.unique_dir(self.temp_dir, 'knowledge-base', 99)
        self.assertEqual(org_dir.name, 'knowledge-base-99')

    def test_write_creates_directories(self):
        target = ExportTarget(self.temp_dir / 'acme' / 'devices' / 'a.md', "# A\n")
        self.assertEqual(self.writer.write(target), WRITTEN)
        self.assertEqual((self.temp_dir / 'acme' / 'devices' / 'a.md').read_text(encoding='utf-8'), "# A\n")

    def test_identical_content_is_left_untouched(self):
        path = self.temp_dir / 'a.md'
        self.writer.write(ExportTarget(path, "# A\n"))
        self.assertEqual(self.writer.write(ExportTarget(path, "# A\n")), UNCHANGED)
        self.assertEqual(self.writer.write(ExportTarget(path, "# B\n")), WRITTEN)
        self.assertEqual(path.read_text(encoding='utf-8'), "# B\n")
        self.assertEqual(self.writer.stats, {'written': 2, 'unchanged': 1, 'skipped': 0, 'collisions': 0})

    def test_dry_run_writes_nothing(self):
        writer = MarkdownWriter(self.temp_dir, dry_run=True)
        result = writer.write(ExportTarget(self.temp_dir / 'acme' / 'README.md', "# Acme\n"))
        self.assertEqual(result, SKIPPED)
        self.assertFalse((self.temp_dir / 'acme').exists())


class TestIndexBuilder(unittest.TestCase):

    def test_index_lists_organizations_and_knowledge_base(self):
        builder = IndexBuilder('atera', vendor_label='Atera')
        text = builder.build(
            date(2024, 3, 1),
            [{'title': 'Globex', 'path': 'globex/README.md'}, {'title': 'Acme', 'path': 'acme/README.md'}],
            [{'title': 'Reset VPN', 'path': 'knowledge-base/reset-vpn.md'}]
        )

        front_matter, body = split_front_matter(text)
        self.assertEqual(front_matter['title'], 'Atera Documentation')
        self.assertEqual(front_matter['tags'], ['atera', 'index'])
        self.assertLess(body.index('[Acme](acme/README.md)'), body.index('[Globex](globex/README.md)'))
        self.assertIn('## Knowledge Base\n\n- [Reset VPN](knowledge-base/reset-vpn.md)', body)

    def test_index_without_knowledge_base(self):
        text = IndexBuilder('ninjaone', vendor_label='NinjaOne').build(date(2024, 3, 1), [], None)
        self.assertIn('_No organizations exported._', text)
        self.assertNotIn('Knowledge Base', text)


if __name__ == '__main__':
    unittest.main()
