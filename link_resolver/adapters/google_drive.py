import logging
import re
from typing import List, Optional

from .base import BaseAdapter
from ..api_clients import DriveClient
from ..exceptions import InvalidURLError, PlatformNotConfiguredError
from ..models import LinkMap, LinkRequest, Platform

logger = logging.getLogger(__name__)

DOWNLOAD_URL = "https://drive.google.com/uc?export=download&id={file_id}"
FOLDER_FIELDS = "nextPageToken, files(id)"


def drive_download_url(file_id: str) -> str:
    return DOWNLOAD_URL.format(file_id=file_id)


class GoogleDriveFileAdapter(BaseAdapter):
    @property
    def platform(self) -> Platform:
        return Platform.GOOGLE_DRIVE

    @property
    def url_patterns(self) -> List[str]:
        return [
            r'^https?://drive\.google\.com/file/d/[^/]+/view$',
        ]

    async def resolve(self, request: LinkRequest, match: re.Match, resolver) -> LinkMap:
        # https: / "" / drive.google.com / file / d / <id> / view
        parts = request.url.split('/')
        if len(parts) != 7:
            raise InvalidURLError(request.url, "unable to parse google drive url")
        return {drive_download_url(parts[-2]): ""}


class GoogleDriveFolderAdapter(BaseAdapter):
    """Lists every file directly inside a shared folder, following page tokens."""

    def __init__(self, config, http_client, drive_client: Optional[DriveClient] = None):
        super().__init__(config, http_client)
        self.drive_client = drive_client

    @property
    def platform(self) -> Platform:
        return Platform.GOOGLE_DRIVE_FOLDER

    @property
    def url_patterns(self) -> List[str]:
        return [
            r'^https?://drive\.google\.com/(drive/folders/|open\?id=)(?P<folder_id>[^/?#]+)/?(\?usp=sharing)?$',
        ]

    @property
    def is_configured(self) -> bool:
        return self.drive_client is not None

    async def resolve(self, request: LinkRequest, match: re.Match, resolver) -> LinkMap:
        if self.drive_client is None:
            raise PlatformNotConfiguredError("google_drive", "GOOGLE_DRIVE_API_KEY")

        folder_id = match.group('folder_id')
        query = f'"{folder_id}" in parents'
        page_size = self.config.resolver.drive_page_size

        links: LinkMap = {}
        page_token = None
        pages = 0
        while True:
            result = await self.drive_client.list_files(query, FOLDER_FIELDS, page_size, page_token=page_token)
            pages += 1
            for drive_file in result.get('files') or []:
                if drive_file.get('id'):
                    links[drive_download_url(drive_file['id'])] = ""
            page_token = result.get('nextPageToken')
            if not page_token:
                break

        logger.info(f"Found google drive folder with {len(links)} files in {pages} pages (url: {request.url})")
        return links
