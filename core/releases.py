# core/releases.py
"""
Latest-release lookup against the GitHub releases API
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

import requests

from core.errors import ReleaseLookupError

logger = logging.getLogger(__name__)

API_ROOT = 'https://api.github.com'
DEFAULT_TIMEOUT = 1.0


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """'2020-01-01T10:00:00Z' -> aware datetime"""
    if not value:
        return None
    if value.endswith('Z'):
        value = value[:-1] + '+00:00'
    return datetime.fromisoformat(value)


@dataclass
class ReleaseAsset:
    name: str
    size: int
    download_count: int
    browser_download_url: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> 'ReleaseAsset':
        return cls(
            name=data.get('name', ''),
            size=int(data.get('size') or 0),
            download_count=int(data.get('download_count') or 0),
            browser_download_url=data['browser_download_url'],
            created_at=parse_timestamp(data.get('created_at')),
            updated_at=parse_timestamp(data.get('updated_at')),
        )


@dataclass
class Release:
    tag_name: str
    created_at: Optional[datetime]
    published_at: Optional[datetime]
    assets: List[ReleaseAsset] = field(default_factory=list)

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> 'Release':
        return cls(
            tag_name=data.get('tag_name', ''),
            created_at=parse_timestamp(data.get('created_at')),
            published_at=parse_timestamp(data.get('published_at')),
            assets=[ReleaseAsset.from_json(a) for a in data.get('assets') or []],
        )


class ReleaseClient:
    """Fetches the latest release descriptor of a repository"""

    def __init__(self,
                 session: Optional[requests.Session] = None,
                 timeout: float = DEFAULT_TIMEOUT,
                 api_root: str = API_ROOT):
        self.session = session or requests.Session()
        self.timeout = timeout
        self.api_root = api_root.rstrip('/')

    def latest(self, repo: str) -> Release:
        """
        Args:
            repo: 'owner/project'

        Raises:
            ReleaseLookupError: transport failure, non-2xx status or bad payload
        """
        url = f"{self.api_root}/repos/{repo}/releases/latest"
        try:
            resp = self.session.get(
                url,
                headers={'Accept': 'application/vnd.github+json'},
                timeout=self.timeout,
            )
            resp.raise_for_status()
            payload = resp.json()
        except requests.RequestException as e:
            logger.warning(f"Release lookup for {repo} failed: {e}")
            raise ReleaseLookupError(f'release lookup failed: {e}') from e
        except ValueError as e:
            raise ReleaseLookupError('malformed release descriptor') from e

        try:
            release = Release.from_json(payload)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise ReleaseLookupError(f'malformed release descriptor: {e}') from e

        logger.debug(f"Latest release of {repo}: {release.tag_name} ({len(release.assets)} assets)")
        return release
