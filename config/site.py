# config/site.py
"""
Site parameters

Loaded once at startup (from the environment or a mapping), validated, and
passed down to the handlers. The dataclasses are frozen so nothing can
change them while requests are being served.
"""

import os
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Mapping, Optional

from core.errors import ConfigurationError

DEFAULT_PORT = 8080
DEFAULT_SMTP_PORT = 587

FALSE_VALUES = {'0', 'false', 'no', 'off'}


@dataclass(frozen=True)
class CaptchaKeys:
    public: str
    private: str


@dataclass(frozen=True)
class UpdateFeedInfo:
    """Latest version advertised in the Sparkle feed"""
    version: str
    description: str


@dataclass(frozen=True)
class EmailRelay:
    """SMTP relay the contact form is delivered through"""
    recipient: str
    host: str
    port: int
    username: str
    password: str = field(repr=False)
    # Self-signed relays need this off; leaves the session open to MITM.
    verify_certificates: bool = True


@dataclass(frozen=True)
class SiteConfig:
    name: str
    host: str
    keywords: str
    description: str
    captcha: CaptchaKeys
    update_feed: UpdateFeedInfo
    email: EmailRelay
    site_root: str = '.'
    artifact_path: Optional[str] = None
    release_repo: Optional[str] = None  # e.g. owner/project
    port: int = DEFAULT_PORT

    def validate(self) -> 'SiteConfig':
        """
        Check every required parameter and the download source

        Raises:
            ConfigurationError: listing every problem found
        """
        problems = []
        for name in ('name', 'host', 'keywords', 'description', 'site_root'):
            if not getattr(self, name):
                problems.append(f'{name} is required')

        for prefix, section in (('captcha', self.captcha),
                                ('update_feed', self.update_feed),
                                ('email', self.email)):
            problems.extend(_missing_fields(prefix, section))

        if self.port <= 0:
            problems.append('port must be positive')

        if self.artifact_path and self.release_repo:
            problems.append('set either artifact_path or release_repo, not both')
        elif not self.artifact_path and not self.release_repo:
            problems.append('you must set either artifact_path or release_repo')

        if problems:
            raise ConfigurationError('; '.join(problems))
        return self

    @property
    def uses_local_artifact(self) -> bool:
        return bool(self.artifact_path)

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> 'SiteConfig':
        """Build a config from flat, environment-style keys"""
        def get(key, default=''):
            value = values.get(key)
            return default if value is None else value

        try:
            port = int(get('PORT', DEFAULT_PORT))
            smtp_port = int(get('SMTP_PORT', DEFAULT_SMTP_PORT))
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f'invalid port: {e}') from e

        verify = str(get('SMTP_VERIFY_CERTS', 'true')).strip().lower()

        return cls(
            name=get('SITE_NAME'),
            host=get('SITE_HOST'),
            keywords=get('SITE_KEYWORDS'),
            description=get('SITE_DESCRIPTION'),
            site_root=get('SITE_ROOT', '.'),
            artifact_path=get('ARTIFACT_PATH') or None,
            release_repo=get('RELEASE_REPO') or None,
            port=port,
            captcha=CaptchaKeys(
                public=get('RECAPTCHA_PUBLIC_KEY'),
                private=get('RECAPTCHA_PRIVATE_KEY'),
            ),
            update_feed=UpdateFeedInfo(
                version=get('SPARKLE_VERSION'),
                description=get('SPARKLE_DESCRIPTION'),
            ),
            email=EmailRelay(
                recipient=get('CONTACT_RECIPIENT'),
                host=get('SMTP_HOST'),
                port=smtp_port,
                username=get('SMTP_USERNAME'),
                password=get('SMTP_PASSWORD'),
                verify_certificates=verify not in FALSE_VALUES,
            ),
        )

    @classmethod
    def from_env(cls, environ: Mapping[str, str] = None) -> 'SiteConfig':
        return cls.from_mapping(os.environ if environ is None else environ)


def _missing_fields(prefix: str, section: Any) -> List[str]:
    problems = []
    for f in fields(section):
        value = getattr(section, f.name)
        if isinstance(value, bool):
            continue
        if isinstance(value, int):
            if value <= 0:
                problems.append(f'{prefix}.{f.name} must be positive')
        elif not value:
            problems.append(f'{prefix}.{f.name} is required')
    return problems


def describe(config: SiteConfig) -> Dict[str, Any]:
    """Loggable summary without secrets"""
    return {
        'name': config.name,
        'host': config.host,
        'site_root': config.site_root,
        'download': config.artifact_path or f'release:{config.release_repo}',
        'smtp': f'{config.email.host}:{config.email.port}',
        'verify_smtp_certs': config.email.verify_certificates,
    }
