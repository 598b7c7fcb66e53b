"""Local GPU and driver detection via PowerShell CIM queries and the registry."""

import json
import logging
import re
import subprocess
import sys

from nvupdater.core.errors import NoSupportedGpu
from nvupdater.core.models import GpuInfo

logger = logging.getLogger(__name__)

GPU_QUERY = (
    "Get-CimInstance Win32_VideoController | "
    "Select-Object Name, DriverVersion, AdapterCompatibility | ConvertTo-Json"
)
CHASSIS_QUERY = (
    "(Get-CimInstance Win32_SystemEnclosure).ChassisTypes | ConvertTo-Json"
)

# Win32_SystemEnclosure chassis codes for portable machines
MOBILE_CHASSIS = {8, 9, 10, 11, 12, 14, 18, 21, 30, 31, 32}

NVLDDMKM_KEY = r"SYSTEM\CurrentControlSet\Services\nvlddmkm"


def _run_powershell(command: str, timeout: int = 15) -> str:
    result = subprocess.run(
        ["powershell", "-NoProfile", "-Command", command],
        capture_output=True, text=True, timeout=timeout,
        creationflags=getattr(subprocess, 'CREATE_NO_WINDOW', 0),
    )
    return result.stdout.strip()


def _as_list(data) -> list:
    # ConvertTo-Json emits a bare object for a single result
    if data is None:
        return []
    if isinstance(data, list):
        return data
    return [data]


def to_nvidia_version(windows_version: str) -> str:
    """Convert a Windows driver version to NVIDIA notation.

    The last five digits carry the NVIDIA version: ``31.0.15.3623`` → ``536.23``.
    """
    digits = re.sub(r'\D', '', windows_version or '')
    if len(digits) < 5:
        raise ValueError(f"Unexpected driver version: {windows_version!r}")
    tail = digits[-5:]
    return f"{tail[:3]}.{tail[3:]}"


class VersionProbe:
    """Reads the installed NVIDIA adapter and driver version from Windows."""

    def probe(self) -> GpuInfo:
        """Return the first NVIDIA adapter. Raises NoSupportedGpu."""
        adapter = self._find_nvidia_adapter()
        if adapter is None:
            raise NoSupportedGpu("No NVIDIA display adapter found")

        name = (adapter.get('Name') or '').strip()
        try:
            version = to_nvidia_version(adapter.get('DriverVersion') or '')
        except ValueError as e:
            raise NoSupportedGpu(str(e)) from e

        info = GpuInfo(
            name=name,
            driver_version=version,
            is_mobile=self.is_mobile(name),
            is_dch=self.is_dch(),
        )
        logger.info("Local driver version: %s (%s, mobile=%s, dch=%s)",
                    info.driver_version, info.name, info.is_mobile, info.is_dch)
        return info

    def has_nvidia_gpu(self) -> bool:
        return self._find_nvidia_adapter() is not None

    def _find_nvidia_adapter(self) -> dict | None:
        try:
            output = _run_powershell(GPU_QUERY)
            adapters = _as_list(json.loads(output)) if output else []
        except (OSError, subprocess.SubprocessError, ValueError) as e:
            logger.warning("GPU detection failed: %s", e)
            return None

        for adapter in adapters:
            label = f"{adapter.get('Name', '')} {adapter.get('AdapterCompatibility', '')}"
            if 'nvidia' in label.lower():
                return adapter
        return None

    @staticmethod
    def is_mobile(gpu_name: str = "") -> bool:
        """Laptop GPU names say so; otherwise ask the chassis type."""
        if 'laptop' in gpu_name.lower():
            return True
        try:
            output = _run_powershell(CHASSIS_QUERY)
            chassis = _as_list(json.loads(output)) if output else []
        except (OSError, subprocess.SubprocessError, ValueError) as e:
            logger.warning("Chassis detection failed: %s", e)
            return False
        return any(int(c) in MOBILE_CHASSIS for c in chassis if str(c).isdigit())

    @staticmethod
    def is_dch() -> bool:
        """DCH drivers register a DCHUVen value under the nvlddmkm service."""
        if sys.platform != 'win32':
            return False
        import winreg
        try:
            with winreg.OpenKey(winreg.HKEY_LOCAL_MACHINE, NVLDDMKM_KEY) as key:
                winreg.QueryValueEx(key, 'DCHUVen')
            return True
        except OSError:
            return False


class FakeVersionProbe:
    """Stand-in GPU for running without NVIDIA hardware (``/fake``)."""

    NAME = "NVIDIA GeForce RTX 3080"
    DRIVER_VERSION = "466.11"

    def probe(self) -> GpuInfo:
        logger.warning("Faking GPU with debug info")
        return GpuInfo(name=self.NAME, driver_version=self.DRIVER_VERSION,
                       is_mobile=False, is_dch=True)

    def has_nvidia_gpu(self) -> bool:
        return True


def windows_build() -> int:
    """Windows build number, 0 off Windows."""
    if sys.platform != 'win32':
        return 0
    return sys.getwindowsversion().build


def windows_major() -> int:
    if sys.platform != 'win32':
        return 0
    return sys.getwindowsversion().major
