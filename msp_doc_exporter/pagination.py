"""Pagination strategies for the shapes vendor REST APIs use."""

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Iterator, List, Optional

from .config_loader import get_nested
from .models import VendorRecord

logger = logging.getLogger('msp_doc_exporter.pagination')

# fetch(path_or_url, params) -> decoded JSON payload
FetchFn = Callable[[str, Optional[Dict[str, Any]]], Any]


class Paginator(ABC):
    """Walks one resource collection page by page."""

    default_page_size = 50
    max_page_size = 100

    def __init__(
        self,
        items_key: Optional[str] = None,
        default_page_size: Optional[int] = None,
        max_page_size: Optional[int] = None
    ):
        self.items_key = items_key
        if default_page_size is not None:
            self.default_page_size = default_page_size
        if max_page_size is not None:
            self.max_page_size = max_page_size

    def resolve_page_size(self, requested: Optional[int] = None) -> int:
        """Clamp the requested page size to the vendor maximum."""
        size = requested or self.default_page_size
        if size > self.max_page_size:
            logger.debug(f"Page size {size} exceeds vendor maximum, using {self.max_page_size}")
            size = self.max_page_size
        return max(1, size)

    def raw_items(self, payload: Any) -> List[Any]:
        """The page's entry list as sent, nulls included; drives the short-page test."""
        if self.items_key:
            items = get_nested(payload, self.items_key, []) if isinstance(payload, dict) else []
        else:
            items = payload
        if items is None:
            return []
        if not isinstance(items, list):
            logger.warning(f"Expected a list of records, got {type(items).__name__}")
            return []
        return items

    def extract_items(self, payload: Any) -> List[VendorRecord]:
        """Pull the record list out of a page payload."""
        return [item for item in self.raw_items(payload) if isinstance(item, dict)]

    @abstractmethod
    def pages(
        self,
        fetch: FetchFn,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        page_size: Optional[int] = None
    ) -> Iterator[List[VendorRecord]]:
        """Yield lists of records until the collection is exhausted."""
        pass


class PageNumberPaginator(Paginator):
    """
    ``?page=N&page_size=P`` style pagination.

    Stops on a short or empty page, or once ``total_pages_key`` (when the
    envelope carries one) says the last page has been read.
    """

    def __init__(
        self,
        page_param: str = 'page',
        size_param: str = 'page_size',
        first_page: int = 1,
        items_key: Optional[str] = None,
        total_pages_key: Optional[str] = None,
        default_page_size: Optional[int] = None,
        max_page_size: Optional[int] = None
    ):
        super().__init__(items_key, default_page_size, max_page_size)
        self.page_param = page_param
        self.size_param = size_param
        self.first_page = first_page
        self.total_pages_key = total_pages_key

    def pages(self, fetch, path, params=None, page_size=None):
        size = self.resolve_page_size(page_size)
        page = self.first_page

        while True:
            query = dict(params or {})
            query[self.page_param] = page
            query[self.size_param] = size

            payload = fetch(path, query)
            items = self.extract_items(payload)
            logger.debug(f"Page {page} of {path}: {len(items)} records")
            yield items

            if len(self.raw_items(payload)) < size:
                return

            total_pages = self._total_pages(payload)
            if total_pages is not None and page - self.first_page + 1 >= total_pages:
                return

            page += 1

    def _total_pages(self, payload: Any) -> Optional[int]:
        if not self.total_pages_key or not isinstance(payload, dict):
            return None
        value = get_nested(payload, self.total_pages_key)
        try:
            return int(value) if value is not None else None
        except (TypeError, ValueError):
            return None


class JsonApiPaginator(PageNumberPaginator):
    """JSON:API collections: ``page[number]``/``page[size]`` and ``meta.total-pages``."""

    def __init__(self, default_page_size: Optional[int] = None, max_page_size: Optional[int] = 1000):
        super().__init__(
            page_param='page[number]',
            size_param='page[size]',
            items_key='data',
            total_pages_key='meta.total-pages',
            default_page_size=default_page_size,
            max_page_size=max_page_size
        )

    def extract_items(self, payload: Any) -> List[VendorRecord]:
        """Flatten ``{"id", "type", "attributes"}`` resources into plain records."""
        records = []
        for item in super().extract_items(payload):
            record = dict(item.get('attributes') or {})
            record['id'] = item.get('id')
            if item.get('type'):
                record.setdefault('resource-type', item['type'])
            records.append(record)
        return records


class CursorPaginator(Paginator):
    """``?pageSize=P&after=<last id>`` keyset pagination."""

    def __init__(
        self,
        size_param: str = 'pageSize',
        cursor_param: str = 'after',
        cursor_field: str = 'id',
        items_key: Optional[str] = None,
        default_page_size: Optional[int] = None,
        max_page_size: Optional[int] = 1000
    ):
        super().__init__(items_key, default_page_size, max_page_size)
        self.size_param = size_param
        self.cursor_param = cursor_param
        self.cursor_field = cursor_field

    def pages(self, fetch, path, params=None, page_size=None):
        size = self.resolve_page_size(page_size)
        cursor = None

        while True:
            query = dict(params or {})
            query[self.size_param] = size
            if cursor is not None:
                query[self.cursor_param] = cursor

            payload = fetch(path, query)
            items = self.extract_items(payload)
            yield items

            if len(self.raw_items(payload)) < size or not items:
                return

            cursor = get_nested(items[-1], self.cursor_field)
            if cursor is None:
                logger.warning(f"Last record of {path} has no '{self.cursor_field}', stopping pagination")
                return


class NextLinkPaginator(Paginator):
    """Follows an opaque "next page" link until the vendor stops sending one."""

    def __init__(
        self,
        next_key: str = 'links.next',
        size_param: Optional[str] = 'per_page',
        items_key: Optional[str] = 'data',
        default_page_size: Optional[int] = None,
        max_page_size: Optional[int] = None
    ):
        super().__init__(items_key, default_page_size, max_page_size)
        self.next_key = next_key
        self.size_param = size_param

    def pages(self, fetch, path, params=None, page_size=None):
        query = dict(params or {})
        if self.size_param:
            query[self.size_param] = self.resolve_page_size(page_size)

        target: Optional[str] = path
        seen = set()

        while target:
            seen.add(target)
            payload = fetch(target, query)
            yield self.extract_items(payload)

            next_link = get_nested(payload, self.next_key) if isinstance(payload, dict) else None
            if not next_link or next_link in seen:
                return
            # The next link already carries every query parameter.
            target, query = next_link, None


__all__ = [
    'Paginator',
    'PageNumberPaginator',
    'JsonApiPaginator',
    'CursorPaginator',
    'NextLinkPaginator'
]
