"""NVIDIA driver catalog: GPU name to catalog ids, ids to download page.

Two steps:
  resolve_identity(): once at startup, maps the adapter name to the
                       series/product/OS ids of NVIDIA's lookup tables.
  resolve():          every check, asks processDriver.aspx for the results
                       page of the standard or studio channel.
"""

import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from urllib.parse import urlencode, urljoin

from nvupdater.config.settings import AppSettings
from nvupdater.core.errors import ChannelUnsupported, ParseFailure, UnknownGpu
from nvupdater.core.http import fetch_text
from nvupdater.core.models import GpuIdentity, GpuInfo

logger = logging.getLogger(__name__)

LOOKUP_URL = "https://www.nvidia.com/Download/API/lookupValueSearch.aspx"
PROCESS_DRIVER_URL = "https://www.nvidia.com/Download/processDriver.aspx"
RESULTS_MARKER = "driverResults.aspx"

# lookupValueSearch TypeIDs
TYPE_SERIES = 2
TYPE_PRODUCT = 3
TYPE_OS = 4

# processDriver dtid values
DTID_STANDARD = 1
DTID_STUDIO = 18

OS_WINDOWS_11 = "Windows 11"
OS_WINDOWS_10 = "Windows 10 64-bit"
WINDOWS_11_BUILD = 22000


@dataclass(frozen=True)
class LookupValue:
    name: str
    value: int
    parent_id: int


def parse_lookup_values(xml_text: str) -> list[LookupValue]:
    """Parse a lookupValueSearch.aspx response into LookupValue entries."""
    try:
        root = ET.fromstring(xml_text.lstrip('\ufeff').strip())
    except ET.ParseError as e:
        raise ParseFailure(f"Malformed catalog XML: {e}") from e

    values = []
    for node in root.iter('LookupValue'):
        name = (node.findtext('Name') or '').strip()
        raw_value = (node.findtext('Value') or '').strip()
        if not name or not raw_value.isdigit():
            continue
        parent = node.get('ParentID', '0')
        values.append(LookupValue(
            name=name,
            value=int(raw_value),
            parent_id=int(parent) if parent.isdigit() else 0,
        ))
    return values


def normalize_product_name(name: str) -> str:
    """Adapter name as it appears in the catalog ("NVIDIA " prefix dropped)."""
    name = re.sub(r'^nvidia\s+', '', name.strip(), flags=re.IGNORECASE)
    return re.sub(r'\s+', ' ', name).lower()


def os_name_for_build(build: int) -> str:
    return OS_WINDOWS_11 if build >= WINDOWS_11_BUILD else OS_WINDOWS_10


class CatalogResolver:
    """Maps GPU identity + driver channel to an NVIDIA results-page URL."""

    def __init__(self, settings: AppSettings):
        self._settings = settings

    def _lookup(self, type_id: int) -> list[LookupValue]:
        url = f"{LOOKUP_URL}?{urlencode({'TypeID': type_id})}"
        values = parse_lookup_values(fetch_text(url, self._settings.request_timeout))
        if not values:
            raise ParseFailure("Empty catalog list", request=url)
        return values

    # ── Identity ─────────────────────────────────────────────────────

    def resolve_identity(self, gpu: GpuInfo, windows_build: int) -> GpuIdentity:
        """Find the catalog ids for ``gpu``. Raises UnknownGpu if absent."""
        wanted = normalize_product_name(gpu.name)
        products = [p for p in self._lookup(TYPE_PRODUCT)
                    if normalize_product_name(p.name) == wanted]
        if not products:
            raise UnknownGpu(f"GPU not in NVIDIA catalog: {gpu.name}",
                             request=f"{LOOKUP_URL}?TypeID={TYPE_PRODUCT}")

        product = products[0]
        if len(products) > 1:
            series_names = {s.value: s.name.lower() for s in self._lookup(TYPE_SERIES)}
            for candidate in products:
                is_notebook = 'notebook' in series_names.get(candidate.parent_id, '')
                if is_notebook == gpu.is_mobile:
                    product = candidate
                    break

        os_id = self._resolve_os(windows_build)
        identity = GpuIdentity(
            series_id=product.parent_id,
            product_id=product.value,
            os_id=os_id,
            language_id=self._settings.language_id,
        )
        logger.info("Resolved %s to psid=%d pfid=%d osid=%d",
                    gpu.name, identity.series_id, identity.product_id, identity.os_id)
        return identity

    def _resolve_os(self, windows_build: int) -> int:
        wanted = os_name_for_build(windows_build).lower()
        for entry in self._lookup(TYPE_OS):
            if entry.name.lower() == wanted:
                return entry.value
        raise ParseFailure(f"Operating system not in NVIDIA catalog: {wanted}",
                           request=f"{LOOKUP_URL}?TypeID={TYPE_OS}")

    # ── Channel URL ──────────────────────────────────────────────────

    def build_query(self, identity: GpuIdentity, studio: bool) -> str:
        params = {
            'psid': identity.series_id,
            'pfid': identity.product_id,
            'osid': identity.os_id,
            'lid': identity.language_id,
            'whql': 1,
            'lang': self._settings.language_code,
            'ctk': 0,
            'dtcid': 1,
            'dtid': DTID_STUDIO if studio else DTID_STANDARD,
        }
        return f"{PROCESS_DRIVER_URL}?{urlencode(params)}"

    def resolve(self, identity: GpuIdentity, studio: bool = False) -> str:
        """Return the driverResults page URL for this GPU and channel.

        Raises ChannelUnsupported when NVIDIA has no driver for the pair.
        """
        query = self.build_query(identity, studio)
        body = fetch_text(query, self._settings.request_timeout).strip()
        if RESULTS_MARKER not in body:
            raise ChannelUnsupported(
                f"No {'studio' if studio else 'standard'} driver for this GPU",
                request=query,
            )
        body = urljoin(PROCESS_DRIVER_URL, body)
        logger.info("GPU update URL: %s", body)
        return body
