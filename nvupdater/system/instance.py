"""Single-instance detection via psutil."""

import logging
import os

import psutil

logger = logging.getLogger(__name__)


class InstanceDetector:
    """Finds other running processes of this application."""

    @staticmethod
    def is_running_elsewhere(process_name: str) -> bool:
        """True if a process other than this one has ``process_name``.

        Matching is case-insensitive and ignores a trailing ``.exe``.
        """
        wanted = process_name.lower().removesuffix('.exe')
        own_pid = os.getpid()
        try:
            for proc in psutil.process_iter(['pid', 'name']):
                name = (proc.info.get('name') or '').lower().removesuffix('.exe')
                if name == wanted and proc.info.get('pid') != own_pid:
                    logger.info("Found another instance (pid %s)", proc.info.get('pid'))
                    return True
        except psutil.Error as e:
            logger.warning("Instance detection failed: %s", e)
        return False
