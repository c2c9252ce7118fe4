# app.py
"""
Flask application factory for the marketing site

Wires the site configuration, the landing page composer, the contact
pipeline and the feed/download handlers into one application, after
checking that the site is completely configured. A half-configured site
refuses to start.
"""

import os
import sys
import logging
import logging.handlers
from pathlib import Path
from typing import Optional

from flask import Flask, Response, request
from werkzeug.exceptions import HTTPException
from werkzeug.middleware.proxy_fix import ProxyFix

from config.settings import SETTINGS
from config.site import SiteConfig, describe
from core.captcha import CaptchaVerifier
from core.contact import ContactPipeline, ContactPolicy
from core.context import EXTENSION_KEY, SiteContext
from core.errors import ConfigurationError, MethodNotImplementedError, SiteError
from core.mailer import SMTPMailer
from core.page_composer import PageComposer
from core.releases import ReleaseClient
from middleware.security import init_request_middleware
from routes.contact import contact_bp, limiter
from routes.site import site_bp

logger = logging.getLogger(__name__)

# Relative to the site root
REQUIRED_PATHS = (
    'images/og_logo.png',
    'images/icon.ico',
    'images/logo.png',
    'templates/',
    'index.html',
)


def setup_logging(app: Flask) -> None:
    """
    Configure logging for the process

    - stdout stream handler (picked up by the systemd journal)
    - rotating file handler when LOG_FILE is set
    - quiet third-party loggers outside debug
    """
    root = logging.getLogger()

    # Replace handlers from an earlier create_app() in this process
    for handler in [h for h in root.handlers if getattr(h, '_site_handler', False)]:
        root.removeHandler(handler)

    journal_formatter = logging.Formatter(
        fmt='%(name)s[%(process)d]: %(levelname)s %(message)s'
    )
    detailed_formatter = logging.Formatter(
        fmt='%(asctime)s %(name)-20s %(levelname)-8s %(funcName)-15s:%(lineno)-4d %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    log_level = getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO)
    root.setLevel(log_level)

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(journal_formatter)
    stream_handler._site_handler = True
    root.addHandler(stream_handler)

    log_file = app.config.get('LOG_FILE')
    if log_file:
        Path(log_file).parent.mkdir(exist_ok=True, parents=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=10*1024*1024,  # 10MB
            backupCount=5
        )
        file_handler.setFormatter(detailed_formatter)
        file_handler._site_handler = True
        root.addHandler(file_handler)

    if not app.debug:
        logging.getLogger('werkzeug').setLevel(logging.WARNING)
        logging.getLogger('urllib3').setLevel(logging.WARNING)


def check_site(config: SiteConfig) -> None:
    """
    Validate parameters and the files the site cannot run without

    Raises:
        ConfigurationError: on the first class of problem found
    """
    config.validate()

    root = Path(config.site_root)
    missing = [p for p in REQUIRED_PATHS if not (root / p).exists()]
    if missing:
        raise ConfigurationError(f"{', '.join(missing)} required under {root}")

    if config.artifact_path and not os.path.isfile(config.artifact_path):
        raise ConfigurationError(f"{config.artifact_path} doesn't exist")


def configure_error_handlers(app: Flask) -> None:
    """Translate errors into short plain-text responses"""

    @app.errorhandler(SiteError)
    def site_error(error):
        if error.status_code >= 500 and not isinstance(error, MethodNotImplementedError):
            logger.error(f"{request.method} {request.path} failed: {error}", exc_info=error)
        else:
            logger.warning(f"Rejected {request.method} {request.path}: {error.message}")
        return Response(error.message, status=error.status_code, mimetype='text/plain')

    @app.errorhandler(Exception)
    def handle_exception(e):
        """Handle unexpected exceptions"""
        if isinstance(e, HTTPException):
            return e

        logger.error(f"Unhandled exception: {e}", exc_info=True)
        return Response('Internal Server Error', status=500, mimetype='text/plain')


def register_blueprints(app: Flask) -> None:
    """Explicit route table: contact first, then the site catch-all"""
    app.register_blueprint(contact_bp)
    app.register_blueprint(site_bp)


def create_app(config_name: str = None,
               site_config: Optional[SiteConfig] = None,
               verifier: Optional[CaptchaVerifier] = None,
               mailer: Optional[SMTPMailer] = None,
               releases: Optional[ReleaseClient] = None) -> Flask:
    """
    Flask application factory

    Args:
        config_name: 'development', 'testing' or 'production'
            (defaults to FLASK_ENV, then production)
        site_config: site parameters; loaded from the environment if omitted
        verifier, mailer, releases: collaborators to use instead of the
            ones built from the site parameters

    Raises:
        ConfigurationError: the site is not completely configured
    """
    config_name = config_name or os.environ.get('FLASK_ENV', 'production')
    settings = SETTINGS.get(config_name, SETTINGS['production'])

    site_config = site_config or SiteConfig.from_env()
    check_site(site_config)

    app = Flask(__name__,
                static_folder=None,
                template_folder=os.path.abspath(site_config.site_root))
    app.config.from_object(settings)

    # Trust only the hops our own proxies add to X-Forwarded-*
    proxy_hops = app.config.get('PROXY_FIX_X_FOR', 0)
    if proxy_hops > 0:
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=proxy_hops, x_proto=proxy_hops, x_host=proxy_hops)

    setup_logging(app)
    logger.info(f"Starting site in {config_name} mode: {describe(site_config)}")

    verifier = verifier or CaptchaVerifier(
        site_config.captcha.private,
        timeout=app.config['HTTP_TIMEOUT'],
        verify_url=app.config['RECAPTCHA_VERIFY_URL'],
    )
    mailer = mailer or SMTPMailer(site_config.email, timeout=app.config['SMTP_TIMEOUT'])
    releases = releases or ReleaseClient(
        timeout=app.config['HTTP_TIMEOUT'],
        api_root=app.config['RELEASES_API_ROOT'],
    )

    app.extensions[EXTENSION_KEY] = SiteContext(
        config=site_config,
        composer=PageComposer(),
        contact=ContactPipeline(
            site_config,
            verifier,
            mailer,
            ContactPolicy.from_settings(app.config),
        ),
        releases=releases,
    )

    limiter.init_app(app)
    register_blueprints(app)
    configure_error_handlers(app)
    init_request_middleware(app)

    logger.info("Flask application factory completed successfully")
    return app


def main() -> int:
    """Run the development server from environment configuration"""
    try:
        site_config = SiteConfig.from_env()
        app = create_app(site_config=site_config)
    except ConfigurationError as e:
        logging.basicConfig(level=logging.INFO)
        logger.critical(f"Refusing to start: {e.message}")
        return 1

    logger.info(f"listening on http://0.0.0.0:{site_config.port}")
    app.run(host='0.0.0.0', port=site_config.port, debug=app.debug)
    return 0


if __name__ == '__main__':
    sys.exit(main())
