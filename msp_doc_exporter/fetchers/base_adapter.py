"""Abstract vendor adapter: the per-vendor data the export pipeline needs."""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterator, List, Optional

from ..auth import AuthStrategy
from ..config_loader import get_nested
from ..exporters.field_mapping import FieldMapping, resolve_field
from ..models import DocumentKind, VendorRecord
from ..pagination import Paginator
from ..vendor_client import VendorApiClient


class BaseAdapter(ABC):
    """
    Vendor quirks expressed as data: endpoints, auth, pagination and field
    mappings. The pipeline only ever calls ``authenticate``,
    ``list_top_level``, ``list_nested`` and ``list_knowledge_base``.
    """

    name = "vendor"
    display_name = "Vendor"
    default_base_url: Optional[str] = None

    # Directory name -> document kind, in export order.
    nested_types: Dict[str, DocumentKind] = {}

    # Endpoint templates; ``{parent_id}`` is substituted for nested types.
    endpoints: Dict[str, str] = {}

    id_keys: List[str] = ['id']
    field_mappings: Dict[DocumentKind, FieldMapping] = {}

    def __init__(
        self,
        config: Dict[str, Any],
        client: Optional[VendorApiClient] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the adapter.

        Args:
            config: Full exporter configuration
            client: Pre-built API client (tests inject one)
            logger: Logger instance
        """
        self.config = config
        self.logger = logger or logging.getLogger(f'msp_doc_exporter.fetchers.{self.name}')

        self.endpoints = dict(self.endpoints)
        self.endpoints.update(get_nested(config, 'vendor.endpoints', None) or {})

        self.page_size = get_nested(config, 'export.page_size')
        self.client = client or self.build_client()

    @property
    def id_field(self) -> str:
        return f"{self.name}_id"

    @property
    def has_knowledge_base(self) -> bool:
        return 'knowledge_base' in self.endpoints

    @property
    def base_url(self) -> str:
        base_url = get_nested(self.config, 'vendor.base_url') or self.default_base_url
        if not base_url:
            raise ValueError(f"{self.display_name} requires vendor.base_url")
        return base_url

    @abstractmethod
    def build_auth(self) -> AuthStrategy:
        """Authentication strategy from ``vendor.*`` settings."""
        pass

    @abstractmethod
    def build_paginator(self) -> Paginator:
        """Pagination strategy the vendor's list endpoints use."""
        pass

    def build_client(self) -> VendorApiClient:
        return VendorApiClient(
            base_url=self.base_url,
            auth=self.build_auth(),
            paginator=self.build_paginator(),
            request_delay=get_nested(self.config, 'advanced.request_delay', VendorApiClient.DEFAULT_REQUEST_DELAY),
            timeout=get_nested(self.config, 'advanced.request_timeout', VendorApiClient.DEFAULT_TIMEOUT),
            verify_ssl=get_nested(self.config, 'advanced.verify_ssl', True),
            rate_limit_retries=get_nested(self.config, 'advanced.rate_limit_retries', 0)
        )

    def authenticate(self) -> None:
        self.client.authenticate()

    def record_id(self, record: VendorRecord) -> Any:
        return resolve_field(record, self.id_keys)

    def list_top_level(self) -> Iterator[VendorRecord]:
        """Organizations / customers / companies."""
        return self._paginate(self.endpoints['organizations'])

    def list_nested(self, parent_id: Any, resource_type: str) -> Iterator[VendorRecord]:
        """Records of one nested type belonging to one organization."""
        if resource_type not in self.nested_types:
            raise ValueError(f"{self.display_name} has no nested resource type '{resource_type}'")
        path = self.endpoints[resource_type].format(parent_id=parent_id)
        return self._paginate(path, self.nested_params(parent_id, resource_type))

    def list_knowledge_base(self) -> Iterator[VendorRecord]:
        """Vendor-wide knowledge-base articles; empty when the vendor has none."""
        if not self.has_knowledge_base:
            return iter(())
        return self._paginate(self.endpoints['knowledge_base'])

    def nested_params(self, parent_id: Any, resource_type: str) -> Optional[Dict[str, Any]]:
        """Extra query parameters for a nested collection."""
        return None

    def _paginate(self, path: str, params: Optional[Dict[str, Any]] = None) -> Iterator[VendorRecord]:
        return self.client.paginate(path, params=params, page_size=self.page_size)


__all__ = ['BaseAdapter']
