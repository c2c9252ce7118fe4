from datetime import datetime, timezone

import pytest
import requests

from conftest import ARTIFACT_MTIME, FakeReleases, make_config, make_release
from core.downloads import published_at, resolve_download
from core.errors import NothingToDownloadError, ReleaseLookupError
from core.releases import Release, ReleaseClient, parse_timestamp

RELEASE_JSON = {
    'tag_name': 'v2.4.1',
    'created_at': '2021-03-04T05:06:07Z',
    'published_at': '2021-03-05T00:00:00Z',
    'assets': [
        {
            'name': 'Notifi.dmg',
            'size': 1024,
            'download_count': 42,
            'created_at': '2021-03-04T05:10:00Z',
            'updated_at': '2021-03-04T05:11:00Z',
            'browser_download_url': 'https://github.com/o/p/releases/download/v2.4.1/Notifi.dmg',
        },
        {
            'name': 'Notifi.zip',
            'size': 2048,
            'download_count': 3,
            'browser_download_url': 'https://github.com/o/p/releases/download/v2.4.1/Notifi.zip',
        },
    ],
}


class FakeResponse:
    def __init__(self, payload, status_code=200):
        self.payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f'{self.status_code} error')

    def json(self):
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.urls = []

    def get(self, url, headers=None, timeout=None):
        self.urls.append((url, timeout))
        if self.error:
            raise self.error
        return self.response


def test_release_client_parses_descriptor():
    session = FakeSession(FakeResponse(RELEASE_JSON))
    release = ReleaseClient(session=session, timeout=1.0).latest('o/p')

    assert session.urls == [('https://api.github.com/repos/o/p/releases/latest', 1.0)]
    assert release.tag_name == 'v2.4.1'
    assert release.created_at == datetime(2021, 3, 4, 5, 6, 7, tzinfo=timezone.utc)
    assert [a.name for a in release.assets] == ['Notifi.dmg', 'Notifi.zip']
    assert release.assets[0].download_count == 42
    assert release.assets[1].created_at is None


@pytest.mark.parametrize('session', [
    FakeSession(error=requests.Timeout('slow')),
    FakeSession(FakeResponse({'message': 'Not Found'}, status_code=404)),
    FakeSession(FakeResponse(ValueError('not json'))),
    FakeSession(FakeResponse({'assets': [{'name': 'no-url'}]})),
])
def test_release_client_failures(session):
    with pytest.raises(ReleaseLookupError):
        ReleaseClient(session=session).latest('o/p')


def test_parse_timestamp():
    assert parse_timestamp(None) is None
    assert parse_timestamp('2021-03-04T05:06:07Z').tzinfo is not None


def test_local_artifact_is_served(tmp_path, artifact):
    config = make_config(tmp_path, artifact_path=str(artifact))
    releases = FakeReleases()

    target = resolve_download(config, releases)

    assert target.is_local
    assert target.filename == 'Notifi.dmg'
    assert releases.calls == []


def test_missing_local_artifact_has_nothing_to_download(tmp_path):
    config = make_config(tmp_path, artifact_path=str(tmp_path / 'gone.dmg'))
    with pytest.raises(NothingToDownloadError):
        resolve_download(config, FakeReleases())


def test_remote_release_redirects_to_first_asset(tmp_path):
    config = make_config(tmp_path, release_repo='o/p')
    releases = FakeReleases(make_release('https://dl/first.dmg', 'https://dl/second.zip'))

    target = resolve_download(config, releases)

    assert not target.is_local
    assert target.url == 'https://dl/first.dmg'
    assert releases.calls == ['o/p']


def test_remote_release_without_assets(tmp_path):
    config = make_config(tmp_path, release_repo='o/p')
    with pytest.raises(NothingToDownloadError) as exc:
        resolve_download(config, FakeReleases(make_release()))
    assert 'nothing to download' in exc.value.message


def test_published_at_from_artifact_mtime(tmp_path, artifact):
    config = make_config(tmp_path, artifact_path=str(artifact))
    assert published_at(config, FakeReleases()).timestamp() == ARTIFACT_MTIME


def test_published_at_from_release_creation(tmp_path):
    config = make_config(tmp_path, release_repo='o/p')
    moment = published_at(config, FakeReleases(make_release()))
    assert moment == datetime(2021, 3, 4, 5, 6, 7, tzinfo=timezone.utc)


def test_published_at_release_without_timestamps(tmp_path):
    config = make_config(tmp_path, release_repo='o/p')
    release = Release(tag_name='v1', created_at=None, published_at=None)
    with pytest.raises(ReleaseLookupError):
        published_at(config, FakeReleases(release))
