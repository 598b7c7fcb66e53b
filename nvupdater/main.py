"""NvUpdater entry point."""

import sys
import os
import logging

from nvupdater.branding import AppBranding
from nvupdater.config.settings import AppSettings
from nvupdater.core.errors import (
    EXIT_INVALID_RESPONSE, EXIT_NETWORK, EXIT_NO_GPU, EXIT_UNSUPPORTED,
    NetworkFailure, NoSupportedGpu, ParseFailure,
)
from nvupdater.core.update_checker import UpdateChecker
from nvupdater.system.instance import InstanceDetector
from nvupdater.system.probe import FakeVersionProbe, VersionProbe, windows_major


def setup_logging(log_dir: str, verbose: bool = False):
    """Configure logging to file and console."""
    os.makedirs(log_dir, exist_ok=True)
    log_file = os.path.join(log_dir, 'nvupdater.log')

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        handlers=[
            logging.FileHandler(log_file, encoding='utf-8'),
            logging.StreamHandler(),
        ],
    )


def has_flag(argv: list[str], name: str) -> bool:
    """Accept both Windows-style ``/name`` and ``--name``."""
    return f"/{name}" in argv or f"--{name}" in argv


def main():
    argv = sys.argv[1:]

    # Load settings early (before any GUI init)
    settings = AppSettings.load_or_create()
    settings.ensure_dirs()

    setup_logging(settings.log_dir, settings.verbose_logging)
    logger = logging.getLogger(__name__)
    logger.info("Starting %s, version %s", AppBranding.APP_NAME, AppBranding.VERSION)

    from PyQt6.QtWidgets import QApplication, QMessageBox

    app = QApplication(sys.argv)
    app.setApplicationName(AppBranding.APP_NAME)
    app.setOrganizationName(AppBranding.PUBLISHER)

    def fatal(message: str, code: int):
        logger.critical(message)
        QMessageBox.critical(None, AppBranding.APP_NAME, message)
        sys.exit(code)

    if sys.platform != 'win32' or windows_major() < 10:
        if not has_flag(argv, 'fake'):
            fatal("NvUpdater requires Windows 10 or newer.", EXIT_UNSUPPORTED)

    # Matches the frozen NvUpdater.exe only; from source the process is python
    if InstanceDetector.is_running_elsewhere(AppBranding.APP_NAME):
        fatal("NvUpdater is already running.", EXIT_UNSUPPORTED)

    probe = FakeVersionProbe() if has_flag(argv, 'fake') else VersionProbe()
    if not probe.has_nvidia_gpu():
        fatal("No supported NVIDIA GPU found.", EXIT_NO_GPU)
    checker = UpdateChecker(settings, probe)

    try:
        checker.start()
    except NoSupportedGpu as e:
        fatal(f"No supported NVIDIA GPU found. ({e})", EXIT_NO_GPU)
    except NetworkFailure as e:
        fatal(f"Could not get list of GPU models from NVIDIA, "
              f"please check your network connection.\n{e}", EXIT_NETWORK)
    except ParseFailure as e:
        fatal(f"Invalid API response from NVIDIA.\nAttempted API call:\n{e.request}",
              EXIT_INVALID_RESPONSE)

    from nvupdater.ui.dashboard import DashboardWindow

    window = DashboardWindow(checker)
    window.run_check(fatal=True)

    if has_flag(argv, 'minimize') or settings.start_minimized:
        logger.info("Launching minimized")
        window.showMinimized()
    else:
        window.show()

    exit_code = app.exec()
    logger.info("Goodbye")
    sys.exit(exit_code)


if __name__ == '__main__':
    main()
