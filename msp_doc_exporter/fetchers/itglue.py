"""IT Glue adapter (JSON:API)."""

from ..auth import ApiKeyAuth, AuthStrategy
from ..config_loader import get_nested
from ..exporters.field_mapping import DEFAULT_FIELD_MAPPINGS
from ..models import DocumentKind
from ..pagination import JsonApiPaginator, Paginator
from .base_adapter import BaseAdapter


class ITGlueAdapter(BaseAdapter):
    """
    Organizations with their configurations, documents, contacts and
    locations. Records arrive as JSON:API resources; the paginator flattens
    ``attributes`` so the mappings below use IT Glue's kebab-case keys.
    """

    name = "itglue"
    display_name = "IT Glue"
    default_base_url = "https://api.itglue.com"

    nested_types = {
        'configurations': DocumentKind.CONFIGURATION,
        'documents': DocumentKind.DOCUMENT,
        'contacts': DocumentKind.CONTACT,
        'locations': DocumentKind.LOCATION
    }

    endpoints = {
        'organizations': 'organizations',
        'configurations': 'organizations/{parent_id}/relationships/configurations',
        'documents': 'organizations/{parent_id}/relationships/documents',
        'contacts': 'organizations/{parent_id}/relationships/contacts',
        'locations': 'organizations/{parent_id}/relationships/locations'
    }

    field_mappings = {
        DocumentKind.ORGANIZATION_OVERVIEW: DEFAULT_FIELD_MAPPINGS[DocumentKind.ORGANIZATION_OVERVIEW].extend(
            category=['organization-type-name'],
            rows={
                'Type': ['organization-type-name'],
                'Status': ['organization-status-name']
            },
            extra_rows=[("Short Name", ['short-name'])],
            body=['quick-notes', 'description']
        ),
        DocumentKind.CONFIGURATION: DEFAULT_FIELD_MAPPINGS[DocumentKind.CONFIGURATION].extend(
            category=['configuration-type-name'],
            rows={
                'Type': ['configuration-type-name'],
                'OS': ['operating-system-name', 'operating-system-notes'],
                'IP Address': ['primary-ip'],
                'Serial Number': ['serial-number'],
                'Status': ['configuration-status-name'],
                'Location': ['location-name']
            },
            extra_rows=[
                ("Manufacturer", ['manufacturer-name']),
                ("Model", ['model-name']),
                ("Asset Tag", ['asset-tag']),
                ("Warranty Expires", ['warranty-expires-at'])
            ]
        ),
        DocumentKind.DOCUMENT: DEFAULT_FIELD_MAPPINGS[DocumentKind.DOCUMENT].extend(
            category=['document-folder-name'],
            rows={
                'Category': ['document-folder-name'],
                'Created': ['created-at'],
                'Last Updated': ['updated-at']
            }
        ),
        DocumentKind.CONTACT: DEFAULT_FIELD_MAPPINGS[DocumentKind.CONTACT].extend(
            category=['contact-type-name'],
            rows={
                'Email': ['contact-emails'],
                'Phone': ['contact-phones']
            },
            extra_rows=[("Location", ['location-name'])]
        ),
        DocumentKind.LOCATION: DEFAULT_FIELD_MAPPINGS[DocumentKind.LOCATION].extend(
            rows={
                'Address': ['address-1'],
                'Region': ['region-name'],
                'Postal Code': ['postal-code'],
                'Country': ['country-name']
            },
            extra_rows=[("Primary", ['primary'])]
        )
    }

    def build_auth(self) -> AuthStrategy:
        return ApiKeyAuth(get_nested(self.config, 'vendor.api_key'), header_name='x-api-key')

    def build_paginator(self) -> Paginator:
        return JsonApiPaginator(default_page_size=50, max_page_size=1000)
