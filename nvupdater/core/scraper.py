"""Driver results page scraping.

NVIDIA publishes no structured API for the latest version, so the results
page HTML is searched for the installer path. Extraction is behind the
VersionExtractor interface so the heuristic can change without touching
the decision logic.
"""

import logging
import re
from typing import Protocol

from nvupdater.core.errors import ParseFailure
from nvupdater.core.http import fetch_text
from nvupdater.core.models import DriverRelease

logger = logging.getLogger(__name__)

DOWNLOAD_HOST = "https://us.download.nvidia.com"


class VersionExtractor(Protocol):
    """Pulls the driver version and installer URL out of a results page."""

    def extract_version(self, page: str) -> str | None: ...

    def extract_download_url(self, page: str) -> str | None: ...


class RegexVersionExtractor:
    """First-match regex extraction, e.g. ``/Windows/536.23/536.23-desktop-....exe``."""

    VERSION_PATTERN = re.compile(r'Windows/(\d{3}\.\d{2})')
    INSTALLER_PATTERN = re.compile(r'/Windows/\d{3}\.\d{2}/[\w/\-.]*?\.exe')

    def __init__(self, download_host: str = DOWNLOAD_HOST):
        self.download_host = download_host.rstrip('/')

    def extract_version(self, page: str) -> str | None:
        match = self.VERSION_PATTERN.search(page)
        return match.group(1) if match else None

    def extract_download_url(self, page: str) -> str | None:
        match = self.INSTALLER_PATTERN.search(page)
        if not match:
            return None
        return self.download_host + match.group(0)


class PageScraper:
    """Fetches a results page and reads the published driver off it."""

    def __init__(self, extractor: VersionExtractor | None = None, timeout: int = 30):
        self.extractor = extractor or RegexVersionExtractor()
        self.timeout = timeout

    def scrape(self, url: str) -> DriverRelease:
        """Raises NetworkFailure if the page can't be fetched, ParseFailure if
        it holds no version or installer link."""
        logger.info("Trying to get newest driver version")
        page = fetch_text(url, self.timeout)
        return self.parse(page, url)

    def parse(self, page: str, url: str = "") -> DriverRelease:
        version = self.extractor.extract_version(page)
        if not version:
            raise ParseFailure("No driver version found on results page", request=url)

        download_url = self.extractor.extract_download_url(page)
        if not download_url:
            raise ParseFailure("No installer link found on results page", request=url)

        logger.info("Got online driver version: %s", version)
        return DriverRelease(version=version, download_url=download_url, page_url=url)
