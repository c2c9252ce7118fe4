import os
from datetime import datetime, timezone

import pytest

from app import create_app
from config.site import CaptchaKeys, EmailRelay, SiteConfig, UpdateFeedInfo
from core.releases import Release, ReleaseAsset

ARTIFACT_MTIME = 1359383400  # Mon, 28 Jan 2013 14:30:00 +0000

INDEX_HTML = """\
<html><head><title>{{ project.name }}</title></head>
<body>
{% for page in pages %}<section id="{{ page.name }}">{{ page.content }}</section>
{% endfor %}
<footer>{{ year }} {{ project.host | replace('.', ' dot ') }}</footer>
</body></html>
"""


class FakeVerifier:
    """CAPTCHA verifier returning a canned answer"""

    def __init__(self, result=True, error=None):
        self.result = result
        self.error = error
        self.calls = []

    def verify(self, token, remote_ip):
        self.calls.append((token, remote_ip))
        if self.error:
            raise self.error
        return self.result


class FakeMailer:
    def __init__(self, error=None):
        self.error = error
        self.sent = []

    def send(self, msg):
        if self.error:
            raise self.error
        self.sent.append(msg)


class FakeReleases:
    def __init__(self, release=None, error=None):
        self.release = release
        self.error = error
        self.calls = []

    def latest(self, repo):
        self.calls.append(repo)
        if self.error:
            raise self.error
        return self.release


def make_release(*urls, tag='v2.4.1'):
    return Release(
        tag_name=tag,
        created_at=datetime(2021, 3, 4, 5, 6, 7, tzinfo=timezone.utc),
        published_at=datetime(2021, 3, 5, 0, 0, 0, tzinfo=timezone.utc),
        assets=[
            ReleaseAsset(name=url.rsplit('/', 1)[-1], size=10, download_count=0,
                         browser_download_url=url)
            for url in urls
        ],
    )


def make_config(site_root, artifact_path=None, release_repo=None, **overrides):
    values = dict(
        name='Notifi',
        host='example.com',
        keywords='notifications, menu bar',
        description='Push notifications to your Mac',
        site_root=str(site_root),
        artifact_path=artifact_path,
        release_repo=release_repo,
        captcha=CaptchaKeys(public='pub-key', private='priv-key'),
        update_feed=UpdateFeedInfo(version='2.4.1', description='Bug fixes and polish.'),
        email=EmailRelay(recipient='owner@example.com', host='smtp.example.com',
                         port=587, username='mailer', password='secret'),
    )
    values.update(overrides)
    return SiteConfig(**values)


@pytest.fixture
def site_root(tmp_path):
    root = tmp_path / 'site'
    (root / 'images').mkdir(parents=True)
    (root / 'templates').mkdir()
    (root / 'static' / 'css').mkdir(parents=True)
    for name in ('og_logo.png', 'icon.ico', 'logo.png'):
        (root / 'images' / name).write_bytes(b'\x89PNG')
    (root / 'index.html').write_text(INDEX_HTML)
    (root / 'templates' / 'A-Intro.html').write_text('<h1>Intro</h1>')
    (root / 'templates' / 'b-query.html').write_text(
        "{% if data is mapping %}ref={{ data.get('ref', '') }}{% else %}body={{ data.decode() }}{% endif %}"
    )
    (root / 'static' / 'css' / 'site.css').write_text('body { margin: 0; }')
    return root


@pytest.fixture
def artifact(tmp_path):
    path = tmp_path / 'Notifi.dmg'
    path.write_bytes(b'dmg-bytes')
    os.utime(path, (ARTIFACT_MTIME, ARTIFACT_MTIME))
    return path


@pytest.fixture
def site_config(site_root, artifact):
    return make_config(site_root, artifact_path=str(artifact))


@pytest.fixture
def verifier():
    return FakeVerifier()


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def releases():
    return FakeReleases(make_release('https://github.com/o/p/releases/download/v2.4.1/Notifi.dmg'))


@pytest.fixture
def app(site_config, verifier, mailer, releases):
    return create_app('testing', site_config=site_config, verifier=verifier,
                      mailer=mailer, releases=releases)


@pytest.fixture
def client(app):
    return app.test_client()
