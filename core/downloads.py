# core/downloads.py
"""
Download resolution

The configured source decides: a local artifact is streamed, a release
repository is looked up and the client is sent to its first asset. There is
no fallback from one to the other.
"""

import logging
import os
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from config.site import SiteConfig
from core.errors import NothingToDownloadError, ReleaseLookupError
from core.feeds import file_modified
from core.releases import ReleaseClient

logger = logging.getLogger(__name__)


@dataclass
class DownloadTarget:
    path: Optional[str] = None
    url: Optional[str] = None

    @property
    def is_local(self) -> bool:
        return self.path is not None

    @property
    def filename(self) -> Optional[str]:
        return os.path.basename(self.path) if self.path else None


def resolve_download(config: SiteConfig, releases: ReleaseClient) -> DownloadTarget:
    """
    Raises:
        NothingToDownloadError: no usable artifact and no release asset
        ReleaseLookupError: the release API could not be reached
    """
    if config.artifact_path:
        if os.path.isfile(config.artifact_path):
            return DownloadTarget(path=config.artifact_path)
        logger.error(f"Artifact {config.artifact_path} is missing")
    elif config.release_repo:
        release = releases.latest(config.release_repo)
        if release.assets:
            return DownloadTarget(url=release.assets[0].browser_download_url)
        logger.warning(f"Release {release.tag_name} of {config.release_repo} has no assets")

    raise NothingToDownloadError()


def published_at(config: SiteConfig, releases: ReleaseClient) -> datetime:
    """Timestamp for the update feed, from whichever source is configured"""
    if config.artifact_path:
        try:
            return file_modified(config.artifact_path)
        except OSError as e:
            raise NothingToDownloadError(f'nothing to download: {e}') from e

    release = releases.latest(config.release_repo)
    moment = release.created_at or release.published_at
    if moment is None:
        raise ReleaseLookupError('release has no creation time')
    return moment
