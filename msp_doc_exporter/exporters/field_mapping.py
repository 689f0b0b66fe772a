"""Explicit field-mapping tables from vendor JSON keys to document fields."""

import json
import re
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..config_loader import get_nested
from ..models import DocumentKind, VendorRecord

MISSING = "N/A"

SECRET_KEY_PATTERN = re.compile(
    r'password|passwd|secret|token|credential|(^|[_.\-])otp([_.\-]|$)',
    re.IGNORECASE
)

# Keys tried, in order, when a nested dict or list element has to become text.
_DISPLAY_KEYS = ('name', 'value', 'title', 'label')


def is_missing(value: Any) -> bool:
    """True for values a vendor uses to say "no data"."""
    if value is None:
        return True
    if isinstance(value, str) and not value.strip():
        return True
    if isinstance(value, (list, dict, tuple)) and not value:
        return True
    return False


def resolve_field(record: VendorRecord, candidates: Sequence[str]) -> Any:
    """
    Return the first present value among candidate keys.

    Candidates may be dotted paths into nested objects ("os.name").
    Empty strings, empty collections and None count as absent.
    """
    for key in candidates:
        value = get_nested(record, key)
        if not is_missing(value):
            return value
    return None


def format_value(value: Any) -> str:
    """Render a vendor value as table text, verbatim for scalars."""
    if is_missing(value):
        return MISSING
    if isinstance(value, dict):
        for key in _DISPLAY_KEYS:
            if not is_missing(value.get(key)):
                return format_value(value[key])
        return json.dumps(value, sort_keys=True, default=str)
    if isinstance(value, (list, tuple)):
        parts = [format_value(item) for item in value if not is_missing(item)]
        return ", ".join(parts) if parts else MISSING
    return str(value)


def escape_table_cell(text: str) -> str:
    """Keep a value on one table row and stop it from splitting columns."""
    text = re.sub(r'\s*[\r\n]+\s*', ' ', text)
    return text.replace('|', '\\|').strip()


@dataclass
class FieldMapping:
    """
    How one document kind is built from a vendor record.

    Attributes:
        title: Candidate keys for the document title
        rows: (label, candidate keys) pairs rendered as the body table
        category: Candidate keys for the record's type/category (drives tags)
        body: Candidate keys for a rich-text field rendered below the table
        body_heading: Section heading for the rich-text field
    """

    title: List[str]
    rows: List[Tuple[str, List[str]]] = field(default_factory=list)
    category: List[str] = field(default_factory=list)
    body: List[str] = field(default_factory=list)
    body_heading: str = "Notes"

    def __post_init__(self) -> None:
        for key in self.all_keys():
            if SECRET_KEY_PATTERN.search(key):
                raise ValueError(
                    f"Field mapping references '{key}', which looks like a secret; "
                    f"credentials belong in a vault, not in exported documents"
                )

    def all_keys(self) -> List[str]:
        keys = list(self.title) + list(self.category) + list(self.body)
        for _, candidates in self.rows:
            keys.extend(candidates)
        return keys

    def extend(
        self,
        title: Optional[List[str]] = None,
        rows: Optional[Dict[str, List[str]]] = None,
        category: Optional[List[str]] = None,
        body: Optional[List[str]] = None,
        extra_rows: Optional[List[Tuple[str, List[str]]]] = None,
        body_heading: Optional[str] = None
    ) -> 'FieldMapping':
        """
        Derive a vendor mapping: vendor keys are tried before the defaults.

        Args:
            title: Keys prepended to the title candidates
            rows: Keys prepended to existing rows, by label
            category: Keys prepended to the category candidates
            body: Keys prepended to the rich-text candidates
            extra_rows: New rows appended after the existing ones
            body_heading: Replacement heading for the rich-text section
        """
        rows = rows or {}
        merged_rows = [
            (label, _prepend(rows.get(label), candidates))
            for label, candidates in self.rows
        ]
        known = {label for label, _ in self.rows}
        for label, candidates in rows.items():
            if label not in known:
                merged_rows.append((label, list(candidates)))
        merged_rows.extend(extra_rows or [])

        return replace(
            self,
            title=_prepend(title, self.title),
            rows=merged_rows,
            category=_prepend(category, self.category),
            body=_prepend(body, self.body),
            body_heading=body_heading or self.body_heading
        )


def _prepend(first: Optional[List[str]], rest: List[str]) -> List[str]:
    merged = list(first or [])
    merged.extend(key for key in rest if key not in merged)
    return merged


_NAME_KEYS = ['name', 'title', 'displayName', 'display_name']
_UPDATED_KEYS = ['updated_at', 'updatedAt', 'updated-at', 'last_modified', 'lastModified', 'LastModified']
_NOTES_KEYS = ['notes', 'description', 'Notes', 'Description']

DEFAULT_FIELD_MAPPINGS: Dict[DocumentKind, FieldMapping] = {
    DocumentKind.ORGANIZATION_OVERVIEW: FieldMapping(
        title=_NAME_KEYS + ['company_name', 'companyName'],
        category=['type', 'organization_type', 'organizationType'],
        rows=[
            ("Name", _NAME_KEYS + ['company_name', 'companyName']),
            ("Type", ['type', 'organization_type', 'organizationType']),
            ("Status", ['status']),
            ("Phone", ['phone', 'phone_number', 'phoneNumber']),
            ("Website", ['website', 'url', 'domain']),
            ("Address", ['address', 'address1', 'address_line_1']),
            ("City", ['city']),
            ("Country", ['country'])
        ],
        body=_NOTES_KEYS,
        body_heading="Overview"
    ),
    DocumentKind.DEVICE: FieldMapping(
        title=['hostname', 'host_name'] + _NAME_KEYS,
        category=['type', 'device_type', 'deviceType', 'category'],
        rows=[
            ("Hostname", ['hostname', 'host_name', 'name']),
            ("OS", ['os', 'os_name', 'operating_system', 'operatingSystem']),
            ("Type", ['type', 'device_type', 'deviceType']),
            ("IP Address", ['ip', 'ip_address', 'ipAddress', 'ip_addresses']),
            ("Serial Number", ['serial', 'serial_number', 'serialNumber']),
            ("Manufacturer", ['manufacturer', 'vendor']),
            ("Model", ['model']),
            ("Last Seen", ['last_seen', 'lastSeen', 'last_contact']),
            ("Status", ['status', 'online'])
        ],
        body=_NOTES_KEYS
    ),
    DocumentKind.CONFIGURATION: FieldMapping(
        title=['hostname'] + _NAME_KEYS,
        category=['type', 'configuration_type', 'category'],
        rows=[
            ("Name", _NAME_KEYS),
            ("Hostname", ['hostname']),
            ("Type", ['type', 'configuration_type']),
            ("OS", ['os', 'operating_system']),
            ("IP Address", ['ip', 'ip_address']),
            ("Serial Number", ['serial', 'serial_number']),
            ("Status", ['status']),
            ("Location", ['location', 'location_name'])
        ],
        body=_NOTES_KEYS
    ),
    DocumentKind.DOCUMENT: FieldMapping(
        title=_NAME_KEYS,
        category=['category', 'folder', 'type'],
        rows=[
            ("Category", ['category', 'folder', 'type']),
            ("Author", ['author', 'created_by', 'createdBy']),
            ("Created", ['created_at', 'createdAt', 'created-at']),
            ("Last Updated", _UPDATED_KEYS)
        ],
        body=['content', 'body', 'html', 'description'],
        body_heading="Content"
    ),
    DocumentKind.ASSET: FieldMapping(
        title=_NAME_KEYS + ['asset_tag'],
        category=['type', 'asset_type', 'category'],
        rows=[
            ("Name", _NAME_KEYS),
            ("Type", ['type', 'asset_type', 'category']),
            ("Asset Tag", ['asset_tag', 'assetTag']),
            ("Serial Number", ['serial', 'serial_number', 'serialNumber']),
            ("Manufacturer", ['manufacturer', 'vendor']),
            ("Model", ['model']),
            ("Location", ['location', 'location_name']),
            ("Purchase Date", ['purchase_date', 'purchased_at', 'purchaseDate']),
            ("Warranty Expires", ['warranty_expires', 'warranty_expiration', 'warrantyExpiration'])
        ],
        body=_NOTES_KEYS
    ),
    DocumentKind.RUNBOOK: FieldMapping(
        title=_NAME_KEYS,
        category=['category', 'type'],
        rows=[
            ("Category", ['category', 'type']),
            ("Owner", ['owner', 'assignee']),
            ("Frequency", ['frequency', 'schedule']),
            ("Last Updated", _UPDATED_KEYS)
        ],
        body=['steps', 'content', 'body', 'procedure', 'description'],
        body_heading="Procedure"
    ),
    DocumentKind.KNOWLEDGE_BASE_ARTICLE: FieldMapping(
        title=['title', 'name', 'subject'],
        category=['category', 'category_name', 'folder'],
        rows=[
            ("Category", ['category', 'category_name', 'folder']),
            ("Keywords", ['keywords', 'tags']),
            ("Last Updated", _UPDATED_KEYS)
        ],
        body=['content', 'body', 'html', 'answer'],
        body_heading="Content"
    ),
    DocumentKind.CONTACT: FieldMapping(
        title=['name', 'full_name', 'fullName'],
        category=['contact_type', 'type'],
        rows=[
            ("Name", ['name', 'full_name', 'fullName']),
            ("Title", ['title', 'job_title', 'jobTitle']),
            ("Email", ['email', 'email_address']),
            ("Phone", ['phone', 'phone_number', 'mobile'])
        ],
        body=_NOTES_KEYS
    ),
    DocumentKind.LOCATION: FieldMapping(
        title=_NAME_KEYS,
        category=['type'],
        rows=[
            ("Name", _NAME_KEYS),
            ("Address", ['address', 'address1', 'address_line_1']),
            ("City", ['city']),
            ("Region", ['region', 'state']),
            ("Postal Code", ['postal_code', 'zip', 'zipcode']),
            ("Country", ['country']),
            ("Phone", ['phone'])
        ],
        body=_NOTES_KEYS
    )
}


__all__ = [
    'MISSING',
    'FieldMapping',
    'DEFAULT_FIELD_MAPPINGS',
    'resolve_field',
    'format_value',
    'escape_table_cell',
    'is_missing'
]
