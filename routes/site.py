# routes/site.py
"""
Landing page, feeds, download and static assets
"""

import logging
import os
from datetime import datetime

from flask import (Blueprint, Response, current_app, redirect, render_template,
                   request, send_file, send_from_directory)

from core.context import get_site
from core.downloads import published_at, resolve_download
from core.errors import MethodNotImplementedError
from core.feeds import render_sitemap, render_update_feed

logger = logging.getLogger(__name__)

site_bp = Blueprint('site', __name__)

XML_MIMETYPE = 'application/xml'


def site_path(config, *parts) -> str:
    return os.path.join(os.path.abspath(config.site_root), *parts)


# Every method reaches the view so that anything but GET and POST gets a 501
ALL_METHODS = ['GET', 'POST', 'PUT', 'PATCH', 'DELETE', 'OPTIONS', 'TRACE', 'CONNECT']


@site_bp.route('/', methods=ALL_METHODS, provide_automatic_options=False)
def index():
    site = get_site()

    if request.method == 'GET':
        data = request.args
    elif request.method == 'POST':
        data = request.get_data()
    else:
        raise MethodNotImplementedError()

    pattern = site_path(site.config, 'templates', '*.html')
    pages = site.composer.compose(pattern, data)

    return render_template(
        'index.html',
        project=site.config,
        pages=pages,
        year=datetime.now().year,
    )


@site_bp.route('/sitemap')
def sitemap():
    site = get_site()
    xml = render_sitemap(
        site.config.host,
        lastmod=current_app.config['SITEMAP_LASTMOD'],
        changefreq=current_app.config['SITEMAP_CHANGEFREQ'],
    )
    return Response(xml, mimetype=XML_MIMETYPE)


@site_bp.route('/version')
def version():
    site = get_site()
    feed = site.config.update_feed
    xml = render_update_feed(
        site.config.host,
        feed.version,
        feed.description,
        published_at(site.config, site.releases),
    )
    return Response(xml, mimetype=XML_MIMETYPE)


@site_bp.route('/download')
def download():
    site = get_site()
    target = resolve_download(site.config, site.releases)

    if target.is_local:
        logger.info(f"Serving {target.filename}")
        return send_file(
            os.path.abspath(target.path),
            as_attachment=True,
            download_name=target.filename,
        )

    logger.info(f"Redirecting download to {target.url}")
    return redirect(target.url, code=307)


@site_bp.route('/images/<path:filename>')
def images(filename):
    return send_from_directory(site_path(get_site().config, 'images'), filename)


@site_bp.route('/<path:filename>')
def static_files(filename):
    return send_from_directory(site_path(get_site().config, 'static'), filename)
