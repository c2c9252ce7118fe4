# core/context.py
"""
Per-application collaborators, built once by the app factory
"""

from dataclasses import dataclass

from flask import current_app

from config.site import SiteConfig
from core.contact import ContactPipeline
from core.page_composer import PageComposer
from core.releases import ReleaseClient

EXTENSION_KEY = 'site'


@dataclass(frozen=True)
class SiteContext:
    config: SiteConfig
    composer: PageComposer
    contact: ContactPipeline
    releases: ReleaseClient


def get_site() -> SiteContext:
    return current_app.extensions[EXTENSION_KEY]
