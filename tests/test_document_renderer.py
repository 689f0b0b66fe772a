import unittest
from datetime import date

from msp_doc_exporter.exporters.document_renderer import (
    DocumentRenderer,
    format_front_matter,
    split_front_matter
)
from msp_doc_exporter.exporters.field_mapping import (
    DEFAULT_FIELD_MAPPINGS,
    MISSING,
    FieldMapping,
    escape_table_cell,
    format_value,
    resolve_field
)
from msp_doc_exporter.models import DocumentKind, DocumentStatus, FrontMatter, ResourceListing

REQUIRED_KEYS = ['title', 'status', 'owner', 'created', 'updated', 'tags']
TODAY = date(2024, 3, 1)


class TestFieldMapping(unittest.TestCase):

    def test_resolve_field_tries_candidates_in_order(self):
        record = {'name': '', 'hostname': 'WIN-ABC'}
        self.assertEqual(resolve_field(record, ['name', 'hostname']), 'WIN-ABC')

    def test_resolve_field_dotted_path(self):
        record = {'os': {'name': 'Ubuntu 22.04'}}
        self.assertEqual(resolve_field(record, ['os.name']), 'Ubuntu 22.04')

    def test_resolve_field_absent(self):
        self.assertIsNone(resolve_field({'a': None, 'b': []}, ['a', 'b', 'c']))

    def test_format_value(self):
        self.assertEqual(format_value(None), MISSING)
        self.assertEqual(format_value(''), MISSING)
        self.assertEqual(format_value(['10.0.0.5', '10.0.0.6']), '10.0.0.5, 10.0.0.6')
        self.assertEqual(format_value([{'value': 'a@example.com'}]), 'a@example.com')
        self.assertEqual(format_value(False), 'False')
        self.assertEqual(format_value(0), '0')

    def test_escape_table_cell(self):
        self.assertEqual(escape_table_cell("a | b\nc"), "a \\| b c")

    def test_secret_keys_are_rejected(self):
        for key in ('password', 'admin_password', 'client_secret', 'api_token', 'otp', 'totp_secret', 'credentials'):
            with self.assertRaises(ValueError, msg=key):
                FieldMapping(title=['name'], rows=[("Login", [key])])

    def test_words_containing_otp_are_allowed(self):
        FieldMapping(title=['name'], rows=[("Hotplug", ['hotplug'])])

    def test_extend_prepends_vendor_keys(self):
        mapping = DEFAULT_FIELD_MAPPINGS[DocumentKind.DEVICE].extend(
            rows={'Hostname': ['MachineName'], 'Uptime': ['uptime']}
        )
        rows = dict(mapping.rows)
        self.assertEqual(rows['Hostname'][0], 'MachineName')
        self.assertIn('hostname', rows['Hostname'])
        self.assertEqual(rows['Uptime'], ['uptime'])
        self.assertEqual(mapping.rows[-1][0], 'Uptime')


class TestDocumentRenderer(unittest.TestCase):
    def setUp(self):
        self.renderer = DocumentRenderer('atera', vendor_label='Atera')

    def test_device_body_table(self):
        record = {"id": 42, "hostname": "WIN-ABC", "os": "Windows 11"}

        document = self.renderer.render(record, DocumentKind.DEVICE, TODAY)

        self.assertIn("| Hostname | WIN-ABC |", document)
        self.assertIn("| OS | Windows 11 |", document)
        self.assertIn("| Serial Number | N/A |", document)
        self.assertIn("| Atera ID | 42 |", document)
        self.assertIn("# WIN-ABC", document)

    def test_front_matter_has_required_keys_for_empty_record(self):
        for kind in DocumentKind:
            document = self.renderer.render({}, kind, TODAY)
            front_matter, body = split_front_matter(document)
            self.assertEqual(list(front_matter)[:6], REQUIRED_KEYS, kind)
            self.assertEqual(front_matter['title'], "Untitled")
            self.assertEqual(front_matter['created'], TODAY)
            self.assertEqual(front_matter['updated'], TODAY)
            self.assertTrue(body.startswith("# Untitled"))

    def test_front_matter_values(self):
        record = {'id': 7, 'name': 'Acme Corp!!', 'type': 'Managed'}
        document = self.renderer.render(record, DocumentKind.ORGANIZATION_OVERVIEW, TODAY)

        self.assertTrue(document.startswith('---\ntitle: "Acme Corp!!"\n'))
        front_matter, _ = split_front_matter(document)
        self.assertEqual(front_matter['status'], 'published')
        self.assertEqual(front_matter['owner'], 'msp-team')
        self.assertEqual(front_matter['tags'], ['atera', 'organization-overview', 'managed'])
        self.assertEqual(front_matter['atera_id'], 7)
        self.assertEqual(list(front_matter)[-1], 'atera_id')

    def test_dates_are_not_yaml_aliases(self):
        document = self.renderer.render({"id": 42, "hostname": "WIN-ABC"}, DocumentKind.DEVICE, TODAY)

        self.assertIn("created: 2024-03-01\nupdated: 2024-03-01\n", document)
        self.assertNotIn("&id", document)

    def test_multiline_title_stays_on_one_line(self):
        record = {"id": 3, "name": "Acme\n  Corp\r\nEast"}

        document = self.renderer.render(record, DocumentKind.ORGANIZATION_OVERVIEW, TODAY)

        self.assertEqual(self.renderer.resolve_title(record, DocumentKind.ORGANIZATION_OVERVIEW), "Acme Corp East")
        self.assertIn("\n# Acme Corp East\n", document)
        self.assertIn('title: "Acme Corp East"\n', document)

    def test_title_falls_back_to_kind_and_id(self):
        self.assertEqual(self.renderer.resolve_title({'id': 9}, DocumentKind.CONTACT), "Contact 9")

    def test_title_with_quotes_round_trips(self):
        record = {'id': 1, 'name': 'The "Main" Office: HQ #1'}
        front_matter, _ = split_front_matter(self.renderer.render(record, DocumentKind.LOCATION, TODAY))
        self.assertEqual(front_matter['title'], 'The "Main" Office: HQ #1')

    def test_rich_text_is_normalized(self):
        record = {'id': 3, 'name': 'VPN setup', 'content': '<h2>Steps</h2><ol><li>Install client</li></ol>'}
        document = self.renderer.render(record, DocumentKind.DOCUMENT, TODAY)
        self.assertIn("## Content", document)
        self.assertIn("## Steps", document)
        self.assertIn("1. Install client", document)
        self.assertNotIn("<li>", document)

    def test_no_rich_text_section_when_field_missing(self):
        document = self.renderer.render({'id': 3, 'name': 'Empty'}, DocumentKind.DOCUMENT, TODAY)
        self.assertNotIn("## Content", document)

    def test_table_cells_cannot_break_columns(self):
        record = {'id': 5, 'hostname': 'srv|01', 'notes': None}
        document = self.renderer.render(record, DocumentKind.DEVICE, TODAY)
        self.assertIn("| Hostname | srv\\|01 |", document)

    def test_custom_owner_and_status(self):
        renderer = DocumentRenderer('itglue', owner='ops-team', status='draft')
        front_matter, _ = split_front_matter(renderer.render({'id': 1}, DocumentKind.DEVICE, TODAY))
        self.assertEqual(front_matter['owner'], 'ops-team')
        self.assertEqual(front_matter['status'], 'draft')
        self.assertIn('itglue_id', front_matter)

    def test_rerender_keeps_body_but_restamps_updated(self):
        record = {"id": 42, "hostname": "WIN-ABC", "os": "Windows 11", "notes": "<p>Spare laptop</p>"}

        first = self.renderer.render(record, DocumentKind.DEVICE, date(2024, 3, 1))
        second = self.renderer.render(record, DocumentKind.DEVICE, date(2024, 3, 2))

        first_fm, first_body = split_front_matter(first)
        second_fm, second_body = split_front_matter(second)
        self.assertEqual(first_body, second_body)
        self.assertNotEqual(first_fm['updated'], second_fm['updated'])

    def test_organization_listing_sections(self):
        devices = ResourceListing('devices')
        devices.add('WIN-ABC', 'devices/win-abc.md')
        contacts = ResourceListing('contacts')
        documents = ResourceListing('documents', unavailable=True)

        document = self.renderer.render_organization(
            {'id': 1, 'name': 'Acme'}, TODAY, [devices, contacts, documents]
        )

        self.assertIn("## Devices\n\n- [WIN-ABC](devices/win-abc.md)", document)
        self.assertIn("## Contacts\n\n_No contacts exported._", document)
        self.assertIn("## Documents\n\n_Documents are not available for this account._", document)


class TestFrontMatterFormatting(unittest.TestCase):

    def test_dates_render_as_iso(self):
        text = format_front_matter(FrontMatter(title="X", created=TODAY, updated=TODAY, tags=['a']))
        self.assertIn("created: 2024-03-01\n", text)
        self.assertIn("updated: 2024-03-01\n", text)
        self.assertIn("status: published\n", text)
        self.assertTrue(text.startswith("---\n"))
        self.assertTrue(text.endswith("\n---"))

    def test_split_without_front_matter(self):
        self.assertEqual(split_front_matter("# Plain"), ({}, "# Plain"))

    def test_status_enum(self):
        fm = FrontMatter(title="X", created=TODAY, updated=TODAY, status=DocumentStatus.DEPRECATED)
        self.assertEqual(fm.to_dict()['status'], 'deprecated')


if __name__ == '__main__':
    unittest.main()
