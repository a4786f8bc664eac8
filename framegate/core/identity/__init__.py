"""
Principal resolution: local user id -> linked remote user id.

The linked id is cached after the first successful remote lookup and never
invalidated here.
"""

from __future__ import annotations

from framegate.core.identity.cache import LinkCache, MemoryLinkCache, StoreLinkCache
from framegate.core.identity.client import ConnectedUserClient
from framegate.core.identity.models import Principal
from framegate.core.identity.resolver import PrincipalResolver

__all__ = [
    "LinkCache",
    "MemoryLinkCache",
    "StoreLinkCache",
    "ConnectedUserClient",
    "Principal",
    "PrincipalResolver",
]
