"""ITBoost adapter (bearer token, link-following pagination)."""

from ..auth import AuthStrategy, BearerTokenAuth
from ..config_loader import get_nested
from ..exporters.field_mapping import DEFAULT_FIELD_MAPPINGS
from ..models import DocumentKind
from ..pagination import NextLinkPaginator, Paginator
from .base_adapter import BaseAdapter


class ITBoostAdapter(BaseAdapter):
    """Companies with assets, documents and runbooks, plus a knowledge base."""

    name = "itboost"
    display_name = "ITBoost"

    # No public default; every tenant has its own API host.
    default_base_url = None

    nested_types = {
        'assets': DocumentKind.ASSET,
        'documents': DocumentKind.DOCUMENT,
        'runbooks': DocumentKind.RUNBOOK
    }

    endpoints = {
        'organizations': 'companies',
        'assets': 'companies/{parent_id}/assets',
        'documents': 'companies/{parent_id}/documents',
        'runbooks': 'companies/{parent_id}/runbooks',
        'knowledge_base': 'knowledge-base'
    }

    field_mappings = {
        DocumentKind.ORGANIZATION_OVERVIEW: DEFAULT_FIELD_MAPPINGS[DocumentKind.ORGANIZATION_OVERVIEW].extend(
            rows={'Type': ['company_type']},
            category=['company_type']
        ),
        DocumentKind.ASSET: DEFAULT_FIELD_MAPPINGS[DocumentKind.ASSET].extend(
            rows={'Type': ['asset_type_name']},
            category=['asset_type_name'],
            extra_rows=[("Assigned To", ['assigned_to', 'contact_name'])]
        ),
        DocumentKind.DOCUMENT: DEFAULT_FIELD_MAPPINGS[DocumentKind.DOCUMENT].extend(
            rows={'Category': ['folder_name']},
            category=['folder_name']
        ),
        DocumentKind.RUNBOOK: DEFAULT_FIELD_MAPPINGS[DocumentKind.RUNBOOK].extend(
            extra_rows=[("Estimated Duration", ['estimated_duration'])]
        ),
        DocumentKind.KNOWLEDGE_BASE_ARTICLE: DEFAULT_FIELD_MAPPINGS[DocumentKind.KNOWLEDGE_BASE_ARTICLE].extend(
            rows={'Category': ['category_name']},
            category=['category_name']
        )
    }

    def build_auth(self) -> AuthStrategy:
        return BearerTokenAuth(get_nested(self.config, 'vendor.api_token'))

    def build_paginator(self) -> Paginator:
        return NextLinkPaginator(next_key='links.next', size_param='per_page', items_key='data')
