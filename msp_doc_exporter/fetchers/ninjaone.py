"""NinjaOne adapter (public API v2, OAuth2 client credentials)."""

from typing import Any, Iterator

from ..auth import AuthStrategy, OAuth2ClientCredentials
from ..config_loader import get_nested
from ..exporters.field_mapping import DEFAULT_FIELD_MAPPINGS
from ..models import DocumentKind, VendorRecord
from ..pagination import CursorPaginator, Paginator
from .base_adapter import BaseAdapter


class NinjaOneAdapter(BaseAdapter):
    """
    Organizations and their devices. The access token is obtained once per
    run; exports that outlive it fail with a 401 on the next request.
    """

    name = "ninjaone"
    display_name = "NinjaOne"
    default_base_url = "https://app.ninjarmm.com"
    default_scope = "monitoring"

    nested_types = {
        'devices': DocumentKind.DEVICE
    }

    endpoints = {
        'organizations': 'v2/organizations',
        'devices': 'v2/organization/{parent_id}/devices'
    }

    field_mappings = {
        DocumentKind.ORGANIZATION_OVERVIEW: DEFAULT_FIELD_MAPPINGS[DocumentKind.ORGANIZATION_OVERVIEW].extend(
            extra_rows=[("Node Approval", ['nodeApprovalMode'])]
        ),
        DocumentKind.DEVICE: DEFAULT_FIELD_MAPPINGS[DocumentKind.DEVICE].extend(
            title=['systemName', 'dnsName', 'displayName'],
            category=['nodeClass'],
            rows={
                'Hostname': ['systemName', 'dnsName'],
                'OS': ['os.name'],
                'Type': ['nodeClass'],
                'IP Address': ['ipAddresses', 'publicIP'],
                'Serial Number': ['system.serialNumber'],
                'Manufacturer': ['system.manufacturer'],
                'Model': ['system.model'],
                'Last Seen': ['lastContact'],
                'Status': ['connectionStatus']
            },
            extra_rows=[("Approval Status", ['approvalStatus'])]
        )
    }

    def build_auth(self) -> AuthStrategy:
        token_url = get_nested(self.config, 'vendor.token_url') or f"{self.base_url.rstrip('/')}/ws/oauth/token"
        return OAuth2ClientCredentials(
            token_url=token_url,
            client_id=get_nested(self.config, 'vendor.client_id'),
            client_secret=get_nested(self.config, 'vendor.client_secret'),
            scope=get_nested(self.config, 'vendor.scope') or self.default_scope
        )

    def build_paginator(self) -> Paginator:
        return CursorPaginator(size_param='pageSize', cursor_param='after', cursor_field='id')

    def list_nested(self, parent_id: Any, resource_type: str) -> Iterator[VendorRecord]:
        return (self._with_connection_status(record) for record in super().list_nested(parent_id, resource_type))

    @staticmethod
    def _with_connection_status(record: VendorRecord) -> VendorRecord:
        """NinjaOne reports ``offline: bool``; the Status row shows Online/Offline."""
        offline = record.get('offline')
        if isinstance(offline, bool) and 'connectionStatus' not in record:
            record = dict(record, connectionStatus="Offline" if offline else "Online")
        return record
