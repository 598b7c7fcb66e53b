"""Blocking HTTP GET helper shared by the catalog and page scraper."""

import logging
from urllib.error import URLError
from urllib.request import Request, urlopen

from nvupdater.branding import AppBranding
from nvupdater.core.errors import NetworkFailure

logger = logging.getLogger(__name__)


def fetch_text(url: str, timeout: int = 30) -> str:
    """GET ``url`` and return the decoded body. Raises NetworkFailure."""
    req = Request(url, headers={
        'User-Agent': AppBranding.BROWSER_USER_AGENT,
    })
    logger.debug("GET %s", url)
    try:
        with urlopen(req, timeout=timeout) as resp:
            charset = resp.headers.get_content_charset() or 'utf-8'
            return resp.read().decode(charset, errors='replace')
    except (URLError, OSError) as e:
        raise NetworkFailure(f"Request to {url} failed: {e}") from e
