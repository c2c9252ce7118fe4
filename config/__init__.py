from config.settings import SETTINGS, BaseSettings
from config.site import CaptchaKeys, EmailRelay, SiteConfig, UpdateFeedInfo

__all__ = [
    'SETTINGS', 'BaseSettings',
    'CaptchaKeys', 'EmailRelay', 'SiteConfig', 'UpdateFeedInfo',
]
