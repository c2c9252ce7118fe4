# middleware/security.py
"""
Request/response middleware: security headers, request ids, access log
"""

import logging
import time
import uuid

from flask import Flask, current_app, g, request

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = 'X-Request-Id'


def client_ip() -> str:
    """
    Caller address

    ProxyFix has already taken it from the X-Forwarded-For entries our own
    proxies appended, so a client cannot choose it.
    """
    return request.remote_addr or ''


def security_headers(response):
    """Add security headers to all responses"""
    for name, value in current_app.config.get('SECURITY_HEADERS', {}).items():
        response.headers.setdefault(name, value)

    csp = current_app.config.get('CSP_POLICY')
    if csp:
        response.headers.setdefault(
            'Content-Security-Policy',
            '; '.join(f'{directive} {value}' for directive, value in csp.items())
        )
    return response


def init_request_middleware(app: Flask) -> None:
    """Attach request id, access logging and security headers to app"""

    @app.before_request
    def before_request():
        g.start_time = time.monotonic()
        g.request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex

    @app.after_request
    def after_request(response):
        response = security_headers(response)

        request_id = getattr(g, 'request_id', None)
        if request_id:
            response.headers[REQUEST_ID_HEADER] = request_id

        if hasattr(g, 'start_time'):
            duration = (time.monotonic() - g.start_time) * 1000
            logger.info(
                f'[{request_id}] {client_ip()} "{request.method} {request.full_path.rstrip("?")}" '
                f'{response.status_code} {duration:.1f}ms'
            )
            if duration > app.config.get('SLOW_REQUEST_THRESHOLD', 1000):
                logger.warning(f"Slow request ({duration:.0f}ms): {request.method} {request.path}")

        return response
