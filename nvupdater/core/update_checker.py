"""Driver update check: probe, catalog, scrape, decide.

Architecture:
  UpdateChecker:  pure Python logic (no Qt dependency), blocking methods
  DownloadWorker: QThread wrapper with pyqtSignal for thread-safe UI updates
"""

import logging

from nvupdater.config.markers import MarkerStore
from nvupdater.config.settings import AppSettings
from nvupdater.core.catalog import CatalogResolver
from nvupdater.core.downloader import DownloadManager
from nvupdater.core.errors import ChannelUnsupported
from nvupdater.core.models import CheckResult, DownloadJob, GpuIdentity, GpuInfo
from nvupdater.core.scraper import PageScraper
from nvupdater.core.versions import decide
from nvupdater.system.probe import windows_build

logger = logging.getLogger(__name__)


class UpdateChecker:
    """Runs the check-and-decide cycle for the local NVIDIA GPU.

    All methods are synchronous (blocking) and meant for the UI thread;
    only DownloadManager.download() goes to a worker.
    """

    def __init__(self, settings: AppSettings, probe,
                 markers: MarkerStore | None = None,
                 resolver: CatalogResolver | None = None,
                 scraper: PageScraper | None = None,
                 downloads: DownloadManager | None = None):
        self.settings = settings
        self.probe = probe
        self.markers = markers or MarkerStore(settings.data_dir)
        self.resolver = resolver or CatalogResolver(settings)
        self.scraper = scraper or PageScraper(timeout=settings.request_timeout)
        self.downloads = downloads or DownloadManager(settings.data_dir)

        self.gpu: GpuInfo | None = None
        self.identity: GpuIdentity | None = None
        self.last_result: CheckResult | None = None

    # ── Startup ──────────────────────────────────────────────────────

    def start(self) -> GpuInfo:
        """Probe the GPU and resolve its catalog identity (once)."""
        self.gpu = self.probe.probe()
        self.identity = self.resolver.resolve_identity(self.gpu, windows_build())
        return self.gpu

    def refresh_local(self) -> GpuInfo:
        """Re-read the installed driver, e.g. after an install finished."""
        logger.info("Reloading local driver version")
        self.gpu = self.probe.probe()
        return self.gpu

    # ── Check ────────────────────────────────────────────────────────

    def resolve_url(self) -> tuple[str, bool]:
        """Results page URL for the selected channel.

        If the studio channel has no entry for this GPU the studio marker is
        dropped and the standard channel tried once. Returns (url, fell_back).
        """
        if self.identity is None:
            self.start()

        studio = self.markers.studio
        try:
            return self.resolver.resolve(self.identity, studio=studio), False
        except ChannelUnsupported:
            if not studio:
                raise
            logger.warning("Could not get GPU update URL, trying again with non-studio driver")

        self.markers.set_studio(False)
        return self.resolver.resolve(self.identity, studio=False), True

    def check(self) -> CheckResult:
        """Run one full check cycle and update the skip marker."""
        if self.gpu is None:
            self.start()

        url, fell_back = self.resolve_url()
        release = self.scraper.scrape(url)

        skipped = self.markers.skipped_version()
        decision = decide(self.gpu.driver_version, release.version, skipped)
        if decision.clear_skip:
            self.markers.clear_skip()
            skipped = None

        installer_ready = self.downloads.is_downloaded(release.version)
        if installer_ready:
            logger.info("Found downloaded driver installer, no need to redownload")

        self.last_result = CheckResult(
            local_version=self.gpu.driver_version,
            release=release,
            state=decision.state,
            skipped_version=skipped,
            skip_cleared=decision.clear_skip,
            studio=self.markers.studio,
            studio_fell_back=fell_back,
            installer_ready=installer_ready,
        )
        return self.last_result

    # ── User actions ─────────────────────────────────────────────────

    def skip_version(self, version: str | None = None):
        """Stop prompting for ``version`` (default: the last online version)."""
        if version is None:
            if self.last_result is None:
                raise RuntimeError("No check has run yet")
            version = self.last_result.release.version
        self.markers.skip_version(version)

    def set_studio(self, enabled: bool) -> bool:
        """Switch driver channel. Returns True if the marker changed."""
        if self.markers.studio == enabled:
            return False
        self.markers.set_studio(enabled)
        return True

    def create_download(self) -> DownloadJob:
        if self.last_result is None:
            raise RuntimeError("No check has run yet")
        release = self.last_result.release
        return self.downloads.create_job(release.download_url, release.version)


# ── QThread Worker ───────────────────────────────────────────────────

# Import PyQt6 only when the worker is actually used (lazy import
# to keep UpdateChecker itself free of Qt dependency)

def _get_worker_class():
    """Lazy import to avoid PyQt6 at module level."""
    from PyQt6.QtCore import QThread, pyqtSignal

    class DownloadWorker(QThread):
        """Background installer download.

        Emits signals that are automatically dispatched to the main thread.
        """

        download_progress = pyqtSignal(int)      # 0-100
        download_finished = pyqtSignal(str)      # Path to installer
        download_failed = pyqtSignal(str)        # Error message

        def __init__(self, manager: DownloadManager, parent=None):
            super().__init__(parent)
            self._manager = manager
            self._job: DownloadJob | None = None

        def download(self, job: DownloadJob):
            """Start background download."""
            if self.isRunning():
                logger.warning("Download already running, ignoring request")
                return
            self._job = job
            self.start()

        def run(self):
            """Thread entry point."""
            if not self._job:
                return
            try:
                path = self._manager.download(
                    self._job,
                    progress_callback=self.download_progress.emit,
                    cancelled=self.isInterruptionRequested,
                )
                self.download_finished.emit(path)
            except Exception as e:
                self.download_failed.emit(str(e))
                logger.error("Installer download failed: %s", e)
            finally:
                self._job = None

    return DownloadWorker


# Module-level accessor
_DownloadWorkerClass = None


def get_download_worker_class():
    """Get the DownloadWorker class (lazy-imported to avoid PyQt6 at import time)."""
    global _DownloadWorkerClass
    if _DownloadWorkerClass is None:
        _DownloadWorkerClass = _get_worker_class()
    return _DownloadWorkerClass
