from __future__ import annotations

"""
Ownership guard for stored media.

Two policies are supported:

- ``substring`` (default): the caller id must appear anywhere in the key.
  This is what shipped clients were built against. It is known to be weak: a
  key such as ``uploads/victim123extra/x.jpg`` passes for caller ``victim123``.
- ``segment``: the caller id must equal the owner path segment exactly.

Upload URL issuance never goes through this guard; it builds keys with the
caller id as the owner segment instead.
"""

from enum import Enum
from typing import Union

from scoop_media.media.keys import owner_segment


class OwnershipMode(str, Enum):
    SUBSTRING = "substring"
    SEGMENT = "segment"


def authorize(caller_id: str, key: str, *, mode: Union[OwnershipMode, str] = OwnershipMode.SUBSTRING) -> bool:
    """Return True when `caller_id` may mutate or delete `key`."""
    if not caller_id or not key:
        return False
    if OwnershipMode(mode) is OwnershipMode.SEGMENT:
        return owner_segment(key) == caller_id
    return caller_id in key


__all__ = ["OwnershipMode", "authorize"]
