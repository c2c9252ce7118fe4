# core/feeds.py
"""
Sitemap and Sparkle update feed documents
"""

import logging
import os
from datetime import datetime, timezone
from email.utils import format_datetime

from jinja2 import Environment, StrictUndefined
from markupsafe import Markup

logger = logging.getLogger(__name__)

DEFAULT_LASTMOD = '2020-01-01T00:00:00+00:00'
SPARKLE_NAMESPACE = 'http://www.andymatuschak.org/xml-namespaces/sparkle'

SITEMAP_TEMPLATE = """\
<?xml version="1.0" encoding="UTF-8"?>
<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">
  <url>
    <loc>https://{{ host }}/</loc>
    <lastmod>{{ lastmod }}</lastmod>
    <changefreq>{{ changefreq }}</changefreq>
  </url>
</urlset>
"""

UPDATE_FEED_TEMPLATE = """\
<?xml version="1.0" encoding="utf-8"?>
<rss version="1.1" xmlns:sparkle="{{ sparkle_ns }}" xmlns:dc="http://purl.org/dc/elements/1.1/">
  <channel>
    <item>
      <title>Version {{ version }}</title>
      <description><![CDATA[
        {{ description }}
      ]]>
      </description>
      <sparkle:version>{{ version }}</sparkle:version>
      <pubDate>{{ pub_date }}</pubDate>
      <enclosure url="https://{{ host }}/download" sparkle:version="{{ version }}"/>
    </item>
  </channel>
</rss>
"""

_env = Environment(autoescape=True, undefined=StrictUndefined, keep_trailing_newline=True)
_sitemap = _env.from_string(SITEMAP_TEMPLATE)
_update_feed = _env.from_string(UPDATE_FEED_TEMPLATE)


def format_rfc2822(moment: datetime) -> str:
    """'Mon, 28 Jan 2013 14:30:00 +0000'; naive datetimes are taken as UTC"""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return format_datetime(moment)


def file_modified(path: str) -> datetime:
    """Modification time of path as an aware UTC datetime"""
    return datetime.fromtimestamp(os.stat(path).st_mtime, tz=timezone.utc)


def _cdata(text: str) -> Markup:
    # ']]>' would close the section early
    return Markup(text.replace(']]>', ']]]]><![CDATA[>'))


def render_sitemap(host: str,
                   lastmod: str = DEFAULT_LASTMOD,
                   changefreq: str = 'monthly') -> str:
    return _sitemap.render(host=host, lastmod=lastmod, changefreq=changefreq)


def render_update_feed(host: str, version: str, description: str,
                       published: datetime) -> str:
    """
    Sparkle appcast with a single item for the latest version

    Args:
        host: public host name, used for the enclosure URL
        version: version string, written to title, element and enclosure
        description: release notes, placed in a CDATA section
        published: release time, written as the RFC 2822 pubDate
    """
    return _update_feed.render(
        sparkle_ns=SPARKLE_NAMESPACE,
        host=host,
        version=version,
        description=_cdata(description),
        pub_date=format_rfc2822(published),
    )
