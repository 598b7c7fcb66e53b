"""Dashboard window: local vs. online driver, download, skip and install."""

import logging
import os
import sys

from PyQt6.QtCore import QFileSystemWatcher, QTimer, QUrl
from PyQt6.QtGui import QDesktopServices
from PyQt6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QHBoxLayout, QLabel, QPushButton,
    QProgressBar, QCheckBox, QStatusBar, QMessageBox, QApplication,
)

from nvupdater.branding import AppBranding
from nvupdater.core.errors import (
    EXIT_INVALID_RESPONSE, EXIT_NETWORK, NetworkFailure, ParseFailure, UpdaterError,
)
from nvupdater.core.models import CheckResult, UpdateState
from nvupdater.core.update_checker import UpdateChecker, get_download_worker_class
from nvupdater.core.versions import DashboardView

logger = logging.getLogger(__name__)

INSTALLER_WATCH_DIR = os.path.join(
    os.environ.get('ProgramW6432', r'C:\Program Files'),
    'NVIDIA Corporation', 'Installer2', 'InstallerCore',
)
# The NVIDIA installer keeps writing files for a while after the change event
INSTALL_SETTLE_MS = 10000
TOAST_MS = 6000
WORKER_STOP_MS = 5000

STYLE_GOOD = ("color: #BBF7D0; background-color: #14532D; border: 1px solid #166534; "
              "border-radius: 4px; padding: 8px; font-weight: bold;")
STYLE_WARN = ("color: #FDE68A; background-color: #451A03; border: 1px solid #92400E; "
              "border-radius: 4px; padding: 8px; font-weight: bold;")
STYLE_ERROR = ("color: #FECACA; background-color: #450A0A; border: 1px solid #991B1B; "
               "border-radius: 4px; padding: 8px; font-weight: bold;")


class DashboardWindow(QMainWindow):
    """Single-window front end for UpdateChecker."""

    def __init__(self, checker: UpdateChecker):
        super().__init__()
        self._checker = checker
        self._result: CheckResult | None = None
        self._syncing_studio = False

        worker_cls = get_download_worker_class()
        self._worker = worker_cls(checker.downloads, self)
        self._worker.download_progress.connect(self._on_download_progress)
        self._worker.download_finished.connect(self._on_download_finished)
        self._worker.download_failed.connect(self._on_download_failed)

        self._setup_ui()
        self._setup_timers()
        self._setup_install_watcher()
        self._show_local()

    # ── Layout ───────────────────────────────────────────────────────

    def _setup_ui(self):
        self.setWindowTitle(AppBranding.window_title())
        self.setMinimumSize(520, 340)

        central = QWidget()
        self.setCentralWidget(central)
        layout = QVBoxLayout(central)
        layout.setContentsMargins(16, 12, 16, 12)
        layout.setSpacing(10)

        # GPU
        self._gpu_label = QLabel("--")
        self._gpu_label.setStyleSheet("font-size: 16px; font-weight: bold; color: #3B82F6;")
        layout.addWidget(self._gpu_label)
        self._type_label = QLabel("Driver type: --")
        self._type_label.setStyleSheet("color: #71717A;")
        layout.addWidget(self._type_label)

        # Versions
        versions = QHBoxLayout()
        self._local_label = QLabel("Installed: --")
        versions.addWidget(self._local_label)
        versions.addStretch()
        self._online_btn = QPushButton("Latest: --")
        self._online_btn.setFlat(True)
        self._online_btn.setToolTip("Open the NVIDIA download page")
        self._online_btn.clicked.connect(self._on_open_page)
        versions.addWidget(self._online_btn)
        layout.addLayout(versions)

        # Status info bar
        self._status_info = QLabel("Checking for updates...")
        self._status_info.setWordWrap(True)
        self._status_info.setStyleSheet(STYLE_WARN)
        layout.addWidget(self._status_info)

        # Studio channel
        self._studio_check = QCheckBox("Use Studio drivers")
        self._studio_check.toggled.connect(self._on_studio_toggled)
        layout.addWidget(self._studio_check)

        # Progress bar (hidden by default)
        self._progress = QProgressBar()
        self._progress.setRange(0, 100)
        self._progress.setValue(0)
        self._progress.setVisible(False)
        layout.addWidget(self._progress)

        # Actions
        actions = QHBoxLayout()
        actions.addStretch()
        self._skip_btn = QPushButton("Skip version")
        self._skip_btn.clicked.connect(self._on_skip)
        actions.addWidget(self._skip_btn)
        self._download_btn = QPushButton("Download")
        self._download_btn.clicked.connect(self._on_download)
        actions.addWidget(self._download_btn)
        self._install_btn = QPushButton("Install")
        self._install_btn.clicked.connect(self._on_install)
        actions.addWidget(self._install_btn)
        layout.addLayout(actions)
        layout.addStretch()

        for btn in (self._skip_btn, self._download_btn, self._install_btn):
            btn.setVisible(False)

        self._status_bar = QStatusBar()
        self.setStatusBar(self._status_bar)

    def _setup_timers(self):
        # Full re-check
        self._check_timer = QTimer(self)
        self._check_timer.timeout.connect(lambda: self.run_check(fatal=False))
        self._check_timer.start(self._checker.settings.check_interval_ms)
        logger.info("Started check timer (%d h)", self._checker.settings.check_interval_hours)

    def _setup_install_watcher(self):
        self._watcher = None
        if not os.path.isdir(INSTALLER_WATCH_DIR):
            logger.warning("Could not start installer watcher. Path not found: %s",
                           INSTALLER_WATCH_DIR)
            return
        self._watcher = QFileSystemWatcher([INSTALLER_WATCH_DIR], self)
        self._watcher.directoryChanged.connect(self._on_installer_changed)
        logger.info("Started installer watcher on %s", INSTALLER_WATCH_DIR)

    # ── Check ────────────────────────────────────────────────────────

    def run_check(self, fatal: bool = True) -> bool:
        """Run a check cycle and render it.

        With ``fatal`` set (startup), network and response errors end the
        process; later checks only report them.
        """
        try:
            result = self._checker.check()
        except NetworkFailure as e:
            logger.error("Network failure during check: %s", e)
            if fatal:
                QMessageBox.critical(
                    self, AppBranding.APP_NAME,
                    "Could not get driver information from NVIDIA, "
                    "please check your network connection.",
                )
                sys.exit(EXIT_NETWORK)
            self._show_error(f"Update check failed: {e}")
            return False
        except ParseFailure as e:
            logger.critical("Invalid API response from NVIDIA. Attempted API call: %s", e.request)
            if fatal:
                QMessageBox.critical(
                    self, AppBranding.APP_NAME,
                    f"Invalid API response from NVIDIA.\nAttempted API call:\n{e.request}",
                )
                sys.exit(EXIT_INVALID_RESPONSE)
            self._show_error(f"Unexpected response from NVIDIA: {e}")
            return False
        except UpdaterError as e:
            logger.error("Update check failed: %s", e)
            self._show_error(str(e))
            return False

        if result.studio_fell_back:
            QMessageBox.information(
                self, AppBranding.APP_NAME,
                "Studio drivers are not available for your GPU. "
                "Switched to standard drivers.",
            )
        self._render(result)
        return True

    def _render(self, result: CheckResult):
        self._result = result
        view = DashboardView.from_result(result)

        self._show_local()
        self._online_btn.setText(f"Latest: {result.release.version}")

        self._syncing_studio = True
        self._studio_check.setChecked(result.studio)
        self._syncing_studio = False

        if view.up_to_date:
            self._set_info(STYLE_GOOD, "Your driver is up to date.")
        elif result.state == UpdateState.UPDATE_SKIPPED:
            self._set_info(STYLE_WARN,
                           f"Driver {result.release.version} is available (skipped).")
        else:
            self._set_info(STYLE_WARN,
                           f"Driver {result.release.version} is available.")

        busy = self._worker.isRunning()
        self._download_btn.setVisible(view.download_visible)
        self._download_btn.setEnabled(not busy)
        self._install_btn.setVisible(view.install_visible)
        self._skip_btn.setVisible(view.skip_visible)
        self._skip_btn.setEnabled(view.skip_enabled)
        self._skip_btn.setToolTip(
            "Skip this version" if view.skip_enabled else "This version is skipped"
        )

        if result.should_notify:
            self._status_bar.showMessage(
                f"New driver available: {result.release.version}", TOAST_MS)

    def _show_local(self):
        gpu = self._checker.gpu
        if gpu is None:
            return
        name = f"{gpu.name} (mobile)" if gpu.is_mobile else gpu.name
        self._gpu_label.setText(name)
        self._type_label.setText(f"Driver type: {'DCH' if gpu.is_dch else 'Standard'}")
        self._local_label.setText(f"Installed: {gpu.driver_version}")

    def _set_info(self, style: str, text: str):
        self._status_info.setStyleSheet(style)
        self._status_info.setText(text)

    def _show_error(self, text: str):
        self._set_info(STYLE_ERROR, text)

    # ── Actions ──────────────────────────────────────────────────────

    def _on_open_page(self):
        if self._result:
            logger.info("Opening download page")
            QDesktopServices.openUrl(QUrl(self._result.release.page_url))

    def _on_studio_toggled(self, checked: bool):
        if self._syncing_studio:
            return
        if self._checker.set_studio(checked):
            self.run_check(fatal=False)

    def _on_skip(self):
        if not self._result:
            return
        self._checker.skip_version(self._result.release.version)
        self._skip_btn.setEnabled(False)
        self._skip_btn.setToolTip("This version is skipped")
        self._download_btn.setVisible(False)
        QMessageBox.information(
            self, AppBranding.APP_NAME,
            f"You will not be notified about driver {self._result.release.version} again.",
        )

    def _on_download(self):
        if not self._result or self._worker.isRunning():
            return
        job = self._checker.create_download()
        self._download_btn.setEnabled(False)
        self._progress.setValue(0)
        self._progress.setVisible(True)
        self._worker.download(job)

    def _on_download_progress(self, percent: int):
        self._progress.setValue(percent)

    def _on_download_finished(self, path: str):
        self._progress.setVisible(False)
        self._download_btn.setEnabled(True)
        self._download_btn.setVisible(False)
        self._install_btn.setVisible(True)
        if self._result:
            self._result.installer_ready = True
        self._status_bar.showMessage("Download complete. The installer is ready.", TOAST_MS)

    def _on_download_failed(self, error: str):
        self._progress.setVisible(False)
        self._download_btn.setEnabled(True)
        self._status_bar.showMessage(f"Download failed: {error}", TOAST_MS)

    def _on_install(self):
        if not self._result:
            return
        try:
            self._checker.downloads.launch(self._result.release.version)
        except OSError as e:
            logger.error("Could not launch installer: %s", e)
            self._status_bar.showMessage(f"Could not start installer: {e}", TOAST_MS)
            self._install_btn.setVisible(False)
            self._download_btn.setVisible(True)

    def _on_installer_changed(self, _path: str):
        logger.info("Watched driver files changed, reloading data")
        QTimer.singleShot(INSTALL_SETTLE_MS, self._reload_after_install)

    def _reload_after_install(self):
        try:
            self._checker.refresh_local()
        except UpdaterError as e:
            logger.warning("Could not reload local driver: %s", e)
            return
        self._show_local()
        self.run_check(fatal=False)

    # ── Shutdown ─────────────────────────────────────────────────────

    def closeEvent(self, event):
        self._check_timer.stop()
        if self._worker.isRunning():
            logger.info("Abandoning unfinished installer download")
            self._worker.requestInterruption()
            if not self._worker.wait(WORKER_STOP_MS):
                # Blocked in a socket read; the stale partial is removed next run
                logger.warning("Download thread did not stop, terminating")
                self._worker.terminate()
                self._worker.wait()
        event.accept()
        QApplication.quit()
