"""Driver version comparison and the update decision.

NVIDIA driver versions are ``NNN.NN`` strings and are compared as decimal
numbers. Depending on the user's locale the separator may come back as ``,``
so parsing falls back to a separator-normalised read before giving up.
"""

import locale
import logging
from dataclasses import dataclass

from nvupdater.core.errors import VersionFormatError
from nvupdater.core.models import CheckResult, UpdateState

logger = logging.getLogger(__name__)


def parse_driver_version(value: str) -> float:
    """Read a driver version string as a float.

    Tries a plain parse first. On a format error the decimal separator is
    swapped for the current locale's and the value re-read with
    :func:`locale.atof`, so ``"536.23"`` and ``"536,23"`` are equal.
    """
    value = (value or "").strip()
    try:
        return float(value)
    except ValueError:
        logger.debug("Format error for %r, assuming locale workaround is necessary", value)

    point = locale.localeconv()['decimal_point']
    normalized = value.replace('.', point).replace(',', point)
    try:
        return locale.atof(normalized)
    except ValueError as e:
        raise VersionFormatError(f"Not a driver version: {value!r}") from e


def is_newer(local: str, online: str) -> bool:
    """True if ``online`` is a higher driver version than ``local``."""
    return parse_driver_version(local) < parse_driver_version(online)


def same_version(a: str | None, b: str | None) -> bool:
    if a is None or b is None:
        return False
    try:
        return parse_driver_version(a) == parse_driver_version(b)
    except VersionFormatError:
        return a == b


@dataclass
class Decision:
    state: UpdateState
    clear_skip: bool        # Stored skip marker is for another version


def decide(local: str, online: str, skipped: str | None = None) -> Decision:
    """Derive the update state for one check cycle.

    A skip marker only applies to the exact version it was written for; any
    other online version invalidates it.
    """
    clear_skip = skipped is not None and not same_version(skipped, online)
    if clear_skip:
        logger.info("Skipped version %s is surpassed by %s", skipped, online)
        skipped = None

    if not is_newer(local, online):
        logger.info("Local version %s is up to date (online %s)", local, online)
        return Decision(UpdateState.UP_TO_DATE, clear_skip)

    if skipped is not None:
        logger.info("Online version %s is skipped", online)
        return Decision(UpdateState.UPDATE_SKIPPED, clear_skip)

    logger.info("Local version %s is older than online %s", local, online)
    return Decision(UpdateState.UPDATE_AVAILABLE, clear_skip)


@dataclass
class DashboardView:
    """Which dashboard controls are shown/enabled for a check result."""

    up_to_date: bool
    download_visible: bool
    install_visible: bool
    skip_visible: bool
    skip_enabled: bool

    @staticmethod
    def from_result(result: CheckResult) -> 'DashboardView':
        if result.state == UpdateState.UP_TO_DATE:
            return DashboardView(
                up_to_date=True,
                download_visible=False,
                install_visible=False,
                skip_visible=False,
                skip_enabled=False,
            )
        if result.state == UpdateState.UPDATE_SKIPPED:
            return DashboardView(
                up_to_date=False,
                download_visible=False,
                install_visible=False,
                skip_visible=True,
                skip_enabled=False,
            )
        return DashboardView(
            up_to_date=False,
            download_visible=not result.installer_ready,
            install_visible=result.installer_ready,
            skip_visible=True,
            skip_enabled=True,
        )
