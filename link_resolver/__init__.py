"""
Link Resolver - turns media post URLs into direct download links.
"""

from .client import LinkResolverClient
from .models import LinkRequest, Platform, Resolution, ResolvedLink
from .resolver import LinkResolver

__version__ = "0.1.0"
__all__ = [
    "LinkRequest",
    "LinkResolver",
    "LinkResolverClient",
    "Platform",
    "Resolution",
    "ResolvedLink",
]
