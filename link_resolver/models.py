"""
Request and result types shared by the resolver and its adapters.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional

# download URL -> suggested filename ("" lets the caller derive one)
LinkMap = Dict[str, str]


class Platform(str, Enum):
    """Every adapter variant the resolver can dispatch to."""
    TWITTER_MEDIA = "twitter_media"
    TWITTER_STATUS = "twitter_status"
    TISTORY_CDN = "tistory_cdn"
    TISTORY_LEGACY = "tistory_legacy"
    TISTORY = "tistory"
    GFYCAT = "gfycat"
    INSTAGRAM = "instagram"
    IMGUR = "imgur"
    IMGUR_ALBUM = "imgur_album"
    GOOGLE_DRIVE = "google_drive"
    FLICKR_PHOTO = "flickr_photo"
    FLICKR_ALBUM = "flickr_album"
    FLICKR_ALBUM_SHORT = "flickr_album_short"
    GOOGLE_DRIVE_FOLDER = "google_drive_folder"
    STREAMABLE = "streamable"
    FACEBOOK_VIDEO = "facebook_video"
    TISTORY_SITE = "tistory_site"


@dataclass(frozen=True)
class LinkRequest:
    """A URL submitted for resolution.

    ``context`` is opaque to the resolver and handed back unchanged to
    adapters that re-submit discovered links. ``depth`` counts how many
    times the URL was discovered inside another post.
    """
    url: str
    context: Optional[Any] = None
    depth: int = 0

    def child(self, url: str) -> 'LinkRequest':
        return replace(self, url=url, depth=self.depth + 1)


@dataclass(frozen=True)
class ResolvedLink:
    url: str
    filename: str = ""


@dataclass
class Resolution:
    """Outcome of resolving one LinkRequest."""
    platform: Platform
    links: LinkMap = field(default_factory=dict)

    @property
    def count(self) -> int:
        return len(self.links)

    def to_links(self) -> List[ResolvedLink]:
        return [ResolvedLink(url, filename) for url, filename in self.links.items()]
