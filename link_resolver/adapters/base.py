from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, List, Optional
import re

from ..config import Config
from ..models import LinkMap, LinkRequest, Platform
from ..utils.http_client import RateLimitedHTTPClient

if TYPE_CHECKING:
    from ..resolver import LinkResolver


class BaseAdapter(ABC):
    """Base class for all platform adapters"""

    def __init__(self, config: Config, http_client: RateLimitedHTTPClient):
        self.config = config
        self.http_client = http_client
        self._signatures = [re.compile(pattern, re.IGNORECASE) for pattern in self.url_patterns]

    @property
    @abstractmethod
    def platform(self) -> Platform:
        pass

    @property
    def platform_name(self) -> str:
        return self.platform.value

    @property
    @abstractmethod
    def url_patterns(self) -> List[str]:
        """Anchored regex patterns matching URLs for this platform"""
        pass

    @property
    def is_configured(self) -> bool:
        """Whether the credentials this adapter needs are available"""
        return True

    @abstractmethod
    async def resolve(self, request: LinkRequest, match: re.Match, resolver: 'LinkResolver') -> LinkMap:
        """Turn a matched URL into a download URL -> filename mapping"""
        pass

    def match(self, url: str) -> Optional[re.Match]:
        """Return the first signature match for the URL, if any"""
        for signature in self._signatures:
            found = signature.match(url)
            if found:
                return found
        return None

    def matches_url(self, url: str) -> bool:
        """Check if this adapter can handle the given URL"""
        return self.match(url) is not None
