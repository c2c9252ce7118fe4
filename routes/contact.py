# routes/contact.py
"""
Contact form endpoint
"""

import logging
from urllib.parse import urlsplit

from flask import Blueprint, current_app, redirect, request
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from werkzeug.exceptions import BadRequest

from core.context import get_site
from core.errors import MalformedSubmissionError
from middleware.security import client_ip

logger = logging.getLogger(__name__)

contact_bp = Blueprint('contact', __name__)

# Per client IP (after ProxyFix), limits come from CONTACT_RATE_LIMIT
limiter = Limiter(key_func=get_remote_address)

FORM_MIMETYPES = {'application/x-www-form-urlencoded', 'multipart/form-data'}


def load_form():
    """Parsed form of the current request"""
    if request.mimetype not in FORM_MIMETYPES:
        raise MalformedSubmissionError(f'unsupported form encoding: {request.mimetype or "none"}')
    try:
        return request.form
    except BadRequest as e:
        raise MalformedSubmissionError(f'malformed form submission: {e.description}') from e


def contact_anchor() -> str:
    """Same-host page the form was posted from, at its #contact anchor"""
    path = '/'
    if request.referrer:
        parts = urlsplit(request.referrer)
        if parts.netloc == request.host and parts.path:
            path = parts.path
    return f'{path}#contact'


@contact_bp.route('/email', methods=['GET', 'POST', 'PUT', 'PATCH', 'DELETE', 'OPTIONS'],
                  provide_automatic_options=False)
@limiter.limit(lambda: current_app.config['CONTACT_RATE_LIMIT'], methods=['POST'])
def email():
    get_site().contact.submit(request.method, load_form, client_ip())
    return redirect(contact_anchor(), code=303)
