# core/page_composer.py
"""
Page composer for the landing page

Renders every fragment template matching a glob pattern and hands the
results to index.html as an ordered list of pages. A fragment that fails to
parse or render aborts the whole request; nothing is skipped silently.
"""

import glob
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from jinja2 import Environment, StrictUndefined, select_autoescape
from jinja2.exceptions import TemplateError
from markupsafe import Markup

from core.errors import TemplateRenderError

logger = logging.getLogger(__name__)


@dataclass
class Page:
    """One rendered fragment of the landing page"""
    name: str
    content: Markup


def page_name(path: str) -> str:
    """'templates/About.html' -> 'about'"""
    base = os.path.basename(path)
    stem, _ = os.path.splitext(base)
    return stem.lower()


class PageComposer:
    """
    Renders fragment templates with per-request data

    The request data is exposed to each fragment as ``data``.
    """

    def __init__(self, filters: Optional[Dict[str, Any]] = None):
        self.env = Environment(
            autoescape=select_autoescape(['html', 'xml']),
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        if filters:
            self.env.filters.update(filters)

    def render_file(self, path: str, data: Any) -> Page:
        try:
            with open(path, encoding='utf-8') as fh:
                source = fh.read()
        except OSError as e:
            raise TemplateRenderError(f'cannot read template {path}: {e}') from e

        try:
            template = self.env.from_string(source)
            content = template.render(data=data)
        except TemplateError as e:
            logger.error(f"Template {path} failed: {e}")
            raise TemplateRenderError(f'template {path} failed: {e}') from e

        return Page(name=page_name(path), content=Markup(content))

    def compose(self, pattern: str, data: Any) -> List[Page]:
        """
        Render every template matching pattern, in listing order

        Args:
            pattern: filesystem glob, e.g. ``site/templates/*.html``
            data: query parameters (GET) or raw body bytes (POST)

        Returns:
            One Page per matching file

        Raises:
            TemplateRenderError: on the first template that fails
        """
        files = sorted(glob.glob(pattern))
        logger.debug(f"Composing {len(files)} fragments from {pattern}")
        return [self.render_file(path, data) for path in files]


def compose_pages(pattern: str, data: Any) -> List[Page]:
    return PageComposer().compose(pattern, data)
