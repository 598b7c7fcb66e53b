"""Tests for NVIDIA catalog lookups"""
from unittest.mock import patch

import pytest

from nvupdater.config.settings import AppSettings
from nvupdater.core.catalog import (
    CatalogResolver,
    DTID_STUDIO,
    normalize_product_name,
    os_name_for_build,
    parse_lookup_values,
)
from nvupdater.core.errors import ChannelUnsupported, ParseFailure, UnknownGpu
from nvupdater.core.models import GpuIdentity, GpuInfo

SERIES_XML = """<?xml version="1.0" encoding="utf-8"?>
<LookupValueSearch><LookupValues>
  <LookupValue ParentID="1"><Name>GeForce RTX 30 Series</Name><Value>120</Value></LookupValue>
  <LookupValue ParentID="1"><Name>GeForce RTX 30 Series (Notebooks)</Name><Value>123</Value></LookupValue>
</LookupValues></LookupValueSearch>"""

PRODUCTS_XML = """<?xml version="1.0" encoding="utf-8"?>
<LookupValueSearch><LookupValues>
  <LookupValue ParentID="120"><Name>GeForce RTX 3080</Name><Value>929</Value></LookupValue>
  <LookupValue ParentID="123"><Name>GeForce RTX 3080</Name><Value>942</Value></LookupValue>
  <LookupValue ParentID="120"><Name>GeForce RTX 3070</Name><Value>933</Value></LookupValue>
</LookupValues></LookupValueSearch>"""

OS_XML = """<?xml version="1.0" encoding="utf-8"?>
<LookupValueSearch><LookupValues>
  <LookupValue><Name>Windows 10 64-bit</Name><Value>57</Value></LookupValue>
  <LookupValue><Name>Windows 11</Name><Value>135</Value></LookupValue>
</LookupValues></LookupValueSearch>"""

IDENTITY = GpuIdentity(series_id=120, product_id=929, os_id=135, language_id=1)


def _fake_lookup(url, timeout=30):
    if 'TypeID=2' in url:
        return SERIES_XML
    if 'TypeID=3' in url:
        return PRODUCTS_XML
    if 'TypeID=4' in url:
        return OS_XML
    raise AssertionError(url)


@pytest.fixture
def resolver(tmp_path):
    return CatalogResolver(AppSettings(data_dir=str(tmp_path)))


def test_parse_lookup_values():
    values = parse_lookup_values(PRODUCTS_XML)
    assert len(values) == 3
    assert values[0].name == "GeForce RTX 3080"
    assert values[0].value == 929
    assert values[0].parent_id == 120


def test_parse_lookup_values_malformed():
    with pytest.raises(ParseFailure):
        parse_lookup_values("<html>oops")


def test_normalize_product_name():
    assert normalize_product_name("NVIDIA GeForce  RTX 3080") == "geforce rtx 3080"
    assert normalize_product_name("GeForce RTX 3080") == "geforce rtx 3080"


def test_os_name_for_build():
    assert os_name_for_build(22621) == "Windows 11"
    assert os_name_for_build(19045) == "Windows 10 64-bit"


@patch('nvupdater.core.catalog.fetch_text', side_effect=_fake_lookup)
def test_resolve_identity_desktop(mock_fetch, resolver):
    gpu = GpuInfo(name="NVIDIA GeForce RTX 3080", driver_version="536.23", is_mobile=False)
    identity = resolver.resolve_identity(gpu, windows_build=22621)
    assert identity == GpuIdentity(series_id=120, product_id=929, os_id=135, language_id=1)


@patch('nvupdater.core.catalog.fetch_text', side_effect=_fake_lookup)
def test_resolve_identity_notebook(mock_fetch, resolver):
    gpu = GpuInfo(name="NVIDIA GeForce RTX 3080", driver_version="536.23", is_mobile=True)
    identity = resolver.resolve_identity(gpu, windows_build=19045)
    assert identity.series_id == 123
    assert identity.product_id == 942
    assert identity.os_id == 57


@patch('nvupdater.core.catalog.fetch_text', side_effect=_fake_lookup)
def test_resolve_identity_unknown_gpu(mock_fetch, resolver):
    gpu = GpuInfo(name="NVIDIA Quadro Imaginary 9000", driver_version="536.23")
    with pytest.raises(UnknownGpu):
        resolver.resolve_identity(gpu, windows_build=22621)


def test_build_query_channels(resolver):
    standard = resolver.build_query(IDENTITY, studio=False)
    studio = resolver.build_query(IDENTITY, studio=True)
    assert "psid=120" in standard and "pfid=929" in standard and "osid=135" in standard
    assert "dtid=1" in standard
    assert f"dtid={DTID_STUDIO}" in studio


@patch('nvupdater.core.catalog.fetch_text')
def test_resolve_returns_results_url(mock_fetch, resolver):
    mock_fetch.return_value = "https://www.nvidia.com/Download/driverResults.aspx/205468/en-us\r\n"
    url = resolver.resolve(IDENTITY)
    assert url == "https://www.nvidia.com/Download/driverResults.aspx/205468/en-us"


@patch('nvupdater.core.catalog.fetch_text')
def test_resolve_relative_results_url(mock_fetch, resolver):
    mock_fetch.return_value = "driverResults.aspx/205468/en-us"
    url = resolver.resolve(IDENTITY)
    assert url == "https://www.nvidia.com/Download/driverResults.aspx/205468/en-us"


@patch('nvupdater.core.catalog.fetch_text')
def test_resolve_unsupported_channel(mock_fetch, resolver):
    mock_fetch.return_value = "No certified downloads were found for this configuration."
    with pytest.raises(ChannelUnsupported) as exc_info:
        resolver.resolve(IDENTITY, studio=True)
    assert "processDriver.aspx" in exc_info.value.request
    assert f"dtid={DTID_STUDIO}" in exc_info.value.request
