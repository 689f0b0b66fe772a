"""Filesystem-safe slugs for vendor display names."""

import re
import unicodedata
from typing import Any

FALLBACK_SLUG = "unnamed"
DEFAULT_MAX_LENGTH = 80

_NON_ALNUM = re.compile(r'[^a-z0-9]+')


def slugify(name: Any, max_length: int = DEFAULT_MAX_LENGTH) -> str:
    """
    Convert a display name to a lowercase kebab-case identifier.

    Non-ASCII letters are folded to their ASCII base where possible
    ("Café" -> "cafe"); anything else that is not a letter or digit
    becomes a separator. Distinct names can share a slug ("Server 01",
    "server-01!"), so callers that need unique paths must disambiguate.

    Args:
        name: Display name (non-strings are converted with ``str``)
        max_length: Maximum slug length, 0 disables truncation

    Returns:
        Slug, or ``"unnamed"`` if nothing alphanumeric remains
    """
    if name is None:
        return FALLBACK_SLUG

    text = unicodedata.normalize('NFKD', str(name))
    text = text.encode('ascii', 'ignore').decode('ascii').lower()

    slug = _NON_ALNUM.sub('-', text).strip('-')

    if max_length and len(slug) > max_length:
        slug = slug[:max_length].rstrip('-')

    return slug or FALLBACK_SLUG


__all__ = ['slugify', 'FALLBACK_SLUG']
