"""Installer download and launch.

The installer is streamed to ``<version>-nvidia-installer.exe.downloading``
and renamed to its final name only once complete, so a file without the
suffix is always a whole installer.
"""

import logging
import os
import subprocess
import sys
from http.client import HTTPException
from urllib.error import URLError
from urllib.request import Request, urlopen

from nvupdater.branding import AppBranding
from nvupdater.core.errors import DownloadFailure
from nvupdater.core.models import DownloadJob

logger = logging.getLogger(__name__)

# Buffer size for streaming downloads (80 KB)
DOWNLOAD_BUFFER = 81920

INSTALLER_SUFFIX = '-nvidia-installer.exe'
PARTIAL_SUFFIX = '.downloading'


def format_size(size_bytes: int | float) -> str:
    """Format bytes into human-readable string."""
    if size_bytes < 0:
        return "?"
    value = float(size_bytes)
    for unit in ('B', 'KB', 'MB', 'GB'):
        if abs(value) < 1024:
            if unit == 'B':
                return f"{int(value)} B"
            return f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} TB"


class DownloadManager:
    """Downloads driver installers into the data directory.

    download() is synchronous (blocking); run it on a worker thread.
    """

    def __init__(self, data_dir: str, timeout: int = 120):
        self.data_dir = data_dir
        self.timeout = timeout

    def installer_path(self, version: str) -> str:
        return os.path.join(self.data_dir, f"{version}{INSTALLER_SUFFIX}")

    def is_downloaded(self, version: str) -> bool:
        return os.path.isfile(self.installer_path(version))

    def create_job(self, url: str, version: str) -> DownloadJob:
        final_path = self.installer_path(version)
        return DownloadJob(
            url=url,
            version=version,
            final_path=final_path,
            partial_path=final_path + PARTIAL_SUFFIX,
        )

    # ── Download ─────────────────────────────────────────────────────

    def download(self, job: DownloadJob, progress_callback=None, cancelled=None) -> str:
        """Fetch ``job.url`` into ``job.final_path``. Returns the final path.

        ``progress_callback`` receives integer percentages 0-100.
        ``cancelled`` is polled between chunks; once it returns True the
        download stops. On failure or cancellation the partial file is
        removed and DownloadFailure raised.
        """
        if os.path.exists(job.partial_path):
            logger.warning("Found previous unfinished download, retrying")
            os.remove(job.partial_path)

        req = Request(job.url, headers={
            'User-Agent': AppBranding.BROWSER_USER_AGENT,
        })

        logger.info("Started installer download: %s", job.url)
        try:
            with urlopen(req, timeout=self.timeout) as resp:
                total = int(resp.headers.get('Content-Length') or 0)
                downloaded = 0
                job.progress = 0
                if progress_callback:
                    progress_callback(0)
                with open(job.partial_path, 'wb') as f:
                    while True:
                        if cancelled and cancelled():
                            raise DownloadFailure("Download cancelled")
                        chunk = resp.read(DOWNLOAD_BUFFER)
                        if not chunk:
                            break
                        f.write(chunk)
                        downloaded += len(chunk)
                        if total > 0:
                            pct = min(int(downloaded * 100 / total), 100)
                            if pct != job.progress:
                                job.progress = pct
                                if progress_callback:
                                    progress_callback(pct)
            if total > 0 and downloaded < total:
                raise DownloadFailure(
                    f"Download incomplete ({format_size(downloaded)} of {format_size(total)})"
                )
            # os.replace overwrites an existing installer of the same name
            os.replace(job.partial_path, job.final_path)
        except (URLError, OSError, HTTPException, ValueError, DownloadFailure) as e:
            self._remove_partial(job)
            logger.error("Download NOT successful. Error: %s", e)
            if isinstance(e, DownloadFailure):
                raise
            raise DownloadFailure(f"Download failed: {e}") from e

        if job.progress != 100:
            job.progress = 100
            if progress_callback:
                progress_callback(100)
        logger.info("Download successful: %s (%s)",
                    job.final_path, format_size(os.path.getsize(job.final_path)))
        return job.final_path

    def _remove_partial(self, job: DownloadJob):
        try:
            if os.path.exists(job.partial_path):
                os.remove(job.partial_path)
        except OSError as e:
            logger.warning("Could not remove partial download %s: %s", job.partial_path, e)

    # ── Launch ───────────────────────────────────────────────────────

    def launch(self, version: str) -> subprocess.Popen:
        """Start a downloaded installer as a detached process."""
        path = self.installer_path(version)
        if not os.path.isfile(path):
            raise FileNotFoundError(path)

        logger.info("Launching installer %s", path)
        creationflags = 0
        if sys.platform == 'win32':
            creationflags = (subprocess.DETACHED_PROCESS
                             | subprocess.CREATE_NEW_PROCESS_GROUP)
        return subprocess.Popen([path], cwd=self.data_dir, creationflags=creationflags)
