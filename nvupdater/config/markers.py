"""Sentinel-file flags: skipped driver version and studio channel.

Both live as flat files in the data directory so they survive restarts.
The studio marker carries no content, only its presence matters.
"""

import logging
import os

logger = logging.getLogger(__name__)

SKIP_MARKER = 'skip.marker'
STUDIO_MARKER = 'studio.marker'


class MarkerStore:
    """Reads and writes the two sentinel files."""

    def __init__(self, data_dir: str):
        self.data_dir = data_dir

    @property
    def skip_path(self) -> str:
        return os.path.join(self.data_dir, SKIP_MARKER)

    @property
    def studio_path(self) -> str:
        return os.path.join(self.data_dir, STUDIO_MARKER)

    # ── Skip marker ──────────────────────────────────────────────────

    def skipped_version(self) -> str | None:
        """Version the user chose to skip, or None."""
        if not os.path.isfile(self.skip_path):
            return None
        with open(self.skip_path, 'r', encoding='utf-8') as f:
            first_line = f.readline().strip()
        if not first_line:
            return None
        logger.info("Found version skip marker: %s", first_line)
        return first_line

    def skip_version(self, version: str):
        with open(self.skip_path, 'w', encoding='utf-8') as f:
            f.write(version)
        logger.info("Skipping driver version %s", version)

    def clear_skip(self):
        if os.path.exists(self.skip_path):
            os.remove(self.skip_path)
            logger.info("Removed version skip marker")

    # ── Studio channel ───────────────────────────────────────────────

    @property
    def studio(self) -> bool:
        return os.path.isfile(self.studio_path)

    def set_studio(self, enabled: bool):
        """Create or remove the studio marker. No-op if already in that state."""
        if enabled and not self.studio:
            open(self.studio_path, 'w').close()
            logger.info("Switched to studio driver channel")
        elif not enabled and self.studio:
            os.remove(self.studio_path)
            logger.info("Switched to standard driver channel")
