"""Update-check data models."""

from dataclasses import dataclass
from enum import Enum


class UpdateState(Enum):
    UP_TO_DATE = "up_to_date"
    UPDATE_AVAILABLE = "update_available"
    UPDATE_SKIPPED = "update_skipped"


@dataclass(frozen=True)
class GpuInfo:
    """What the version probe reads from the OS."""

    name: str               # e.g. "NVIDIA GeForce RTX 3080"
    driver_version: str     # NVIDIA notation, e.g. "536.23"
    is_mobile: bool = False
    is_dch: bool = True


@dataclass(frozen=True)
class GpuIdentity:
    """Catalog ids for one GPU, resolved once at startup."""

    series_id: int          # psid
    product_id: int         # pfid
    os_id: int              # osid
    language_id: int = 1    # lid


@dataclass
class DriverRelease:
    """Latest driver published for a GPU/channel."""

    version: str
    download_url: str       # Direct installer link on the NVIDIA CDN
    page_url: str           # driverResults page the data was scraped from


@dataclass
class CheckResult:
    """Outcome of one check cycle."""

    local_version: str
    release: DriverRelease
    state: UpdateState
    skipped_version: str | None = None
    skip_cleared: bool = False
    studio: bool = False
    studio_fell_back: bool = False      # Studio unsupported, switched to standard
    installer_ready: bool = False       # Installer for release.version already on disk

    @property
    def should_notify(self) -> bool:
        return self.state == UpdateState.UPDATE_AVAILABLE


@dataclass
class DownloadJob:
    """An installer download in flight."""

    url: str
    version: str
    final_path: str
    partial_path: str
    progress: int = 0       # 0-100
