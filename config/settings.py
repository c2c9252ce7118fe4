# config/settings.py
"""
Flask settings per deployment environment
"""

import os
import secrets


class BaseSettings:
    """Settings shared by every environment"""

    SECRET_KEY = os.environ.get('SECRET_KEY') or secrets.token_urlsafe(32)
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    LOG_FILE = os.environ.get('LOG_FILE')

    # Contact form posts are small
    MAX_CONTENT_LENGTH = 64 * 1024

    # Outbound calls (seconds)
    HTTP_TIMEOUT = 1.0
    SMTP_TIMEOUT = 10.0

    RECAPTCHA_VERIFY_URL = 'https://www.google.com/recaptcha/api/siteverify'
    RELEASES_API_ROOT = 'https://api.github.com'

    # Contact form length policy
    CONTACT_MAX_ADDRESS_LENGTH = 254
    CONTACT_MIN_NAME_LENGTH = 1
    CONTACT_MIN_BODY_LENGTH = 1

    SITEMAP_LASTMOD = '2020-01-01T00:00:00+00:00'
    SITEMAP_CHANGEFREQ = 'monthly'

    # Rate limiting
    RATELIMIT_ENABLED = True
    RATELIMIT_STORAGE_URI = 'memory://'
    RATELIMIT_HEADERS_ENABLED = True
    CONTACT_RATE_LIMIT = '5 per minute'

    # Number of reverse proxies in front of the app whose X-Forwarded-* we trust
    PROXY_FIX_X_FOR = int(os.environ.get('PROXY_FIX_X_FOR', 1))

    SLOW_REQUEST_THRESHOLD = 1000  # ms

    # Content Security Policy (reCAPTCHA loads from google/gstatic)
    CSP_POLICY = {
        'default-src': "'self'",
        'script-src': "'self' 'unsafe-inline' https://www.google.com https://www.gstatic.com",
        'frame-src': "https://www.google.com",
        'style-src': "'self' 'unsafe-inline'",
        'img-src': "'self' data: https:",
        'connect-src': "'self'",
        'object-src': "'none'",
        'base-uri': "'self'",
        'form-action': "'self'"
    }

    SECURITY_HEADERS = {
        'X-Content-Type-Options': 'nosniff',
        'X-Frame-Options': 'DENY',
        'Referrer-Policy': 'strict-origin-when-cross-origin',
        'Permissions-Policy': 'camera=(), microphone=(), geolocation=()'
    }


class DevelopmentSettings(BaseSettings):
    DEBUG = True
    LOG_LEVEL = 'DEBUG'


class TestingSettings(BaseSettings):
    TESTING = True
    SECRET_KEY = 'testing'
    RATELIMIT_ENABLED = False


class ProductionSettings(BaseSettings):
    SECURITY_HEADERS = dict(
        BaseSettings.SECURITY_HEADERS,
        **{'Strict-Transport-Security': 'max-age=31536000; includeSubDomains'}
    )


SETTINGS = {
    'development': DevelopmentSettings,
    'testing': TestingSettings,
    'production': ProductionSettings,
}
