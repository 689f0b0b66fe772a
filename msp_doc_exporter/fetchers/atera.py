"""Atera RMM adapter (REST API v3)."""

from typing import Any, Iterator

from ..auth import ApiKeyAuth, AuthStrategy
from ..config_loader import get_nested
from ..exporters.field_mapping import DEFAULT_FIELD_MAPPINGS
from ..models import DocumentKind, VendorRecord
from ..pagination import PageNumberPaginator, Paginator
from .base_adapter import BaseAdapter


class AteraAdapter(BaseAdapter):
    """
    Customers, their agents (devices) and contacts, plus the account-wide
    knowledge base.

    Atera wraps every list in ``{"items": [...], "page": N, "totalPages": M}``
    and caps ``itemsInPage`` at 50.
    """

    name = "atera"
    display_name = "Atera"
    default_base_url = "https://app.atera.com/api/v3"

    nested_types = {
        'devices': DocumentKind.DEVICE,
        'contacts': DocumentKind.CONTACT
    }

    endpoints = {
        'organizations': 'customers',
        'devices': 'agents/customer/{parent_id}',
        'contacts': 'customers/{parent_id}/contacts',
        'knowledge_base': 'knowledgebase'
    }

    # Agents and contacts also carry CustomerID, so it is tried last.
    id_keys = ['AgentID', 'EndUserID', 'KBID', 'CustomerID', 'id']

    field_mappings = {
        DocumentKind.ORGANIZATION_OVERVIEW: DEFAULT_FIELD_MAPPINGS[DocumentKind.ORGANIZATION_OVERVIEW].extend(
            title=['CustomerName'],
            category=['BusinessType'],
            rows={
                'Name': ['CustomerName'],
                'Type': ['BusinessType'],
                'Phone': ['Phone'],
                'Website': ['Domain'],
                'Address': ['Address'],
                'City': ['City'],
                'Country': ['Country']
            },
            extra_rows=[("Business Number", ['BusinessNumber'])]
        ),
        DocumentKind.DEVICE: DEFAULT_FIELD_MAPPINGS[DocumentKind.DEVICE].extend(
            title=['MachineName', 'AgentName'],
            category=['DeviceType', 'OSType'],
            rows={
                'Hostname': ['MachineName'],
                'OS': ['OS', 'OSType'],
                'Type': ['DeviceType', 'OSType'],
                'IP Address': ['IpAddresses', 'ReportedFromIP'],
                'Serial Number': ['VendorSerialNumber'],
                'Manufacturer': ['Vendor'],
                'Model': ['VendorBrandModel'],
                'Last Seen': ['LastSeen', 'Modified'],
                'Status': ['Online']
            },
            extra_rows=[
                ("Domain", ['DomainName']),
                ("Logged-in User", ['LastLoginUser', 'CurrentLoggedUsers'])
            ]
        ),
        DocumentKind.CONTACT: DEFAULT_FIELD_MAPPINGS[DocumentKind.CONTACT].extend(
            title=['FullName'],
            category=['ContactType'],
            rows={
                'Name': ['FullName'],
                'Title': ['JobTitle'],
                'Email': ['Email'],
                'Phone': ['Phone', 'MobilePhone']
            },
            extra_rows=[("Primary Contact", ['IsContactPerson'])]
        ),
        DocumentKind.KNOWLEDGE_BASE_ARTICLE: DEFAULT_FIELD_MAPPINGS[DocumentKind.KNOWLEDGE_BASE_ARTICLE].extend(
            title=['KBProduct'],
            category=['KBProduct'],
            rows={
                'Category': ['KBProduct'],
                'Keywords': ['KBKeywords'],
                'Last Updated': ['KBTimestamp']
            },
            body=['KBContext']
        )
    }

    def build_auth(self) -> AuthStrategy:
        return ApiKeyAuth(get_nested(self.config, 'vendor.api_key'), header_name='X-API-KEY')

    def build_paginator(self) -> Paginator:
        return PageNumberPaginator(
            page_param='page',
            size_param='itemsInPage',
            items_key='items',
            total_pages_key='totalPages',
            default_page_size=50,
            max_page_size=50
        )

    def list_nested(self, parent_id: Any, resource_type: str) -> Iterator[VendorRecord]:
        records = super().list_nested(parent_id, resource_type)
        if resource_type == 'contacts':
            return (self._with_full_name(record) for record in records)
        return records

    @staticmethod
    def _with_full_name(record: VendorRecord) -> VendorRecord:
        """Atera splits contact names; the renderer wants one title field."""
        parts = [record.get('Firstname'), record.get('Lastname')]
        full_name = " ".join(str(p).strip() for p in parts if p and str(p).strip())
        if full_name and 'FullName' not in record:
            record = dict(record, FullName=full_name)
        return record
