"""Tests for the shared HTTP helper"""
from unittest.mock import MagicMock, patch
from urllib.error import URLError

import pytest

from nvupdater.branding import AppBranding
from nvupdater.core.errors import NetworkFailure
from nvupdater.core.http import fetch_text


@patch('nvupdater.core.http.urlopen')
def test_fetch_text_decodes_body(mock_urlopen):
    resp = MagicMock()
    resp.read.return_value = "Windows/536.23".encode('utf-8')
    resp.headers.get_content_charset.return_value = 'utf-8'
    mock_urlopen.return_value.__enter__.return_value = resp

    assert fetch_text("https://example.invalid/page", timeout=7) == "Windows/536.23"

    req = mock_urlopen.call_args[0][0]
    assert req.get_header('User-agent') == AppBranding.BROWSER_USER_AGENT
    assert mock_urlopen.call_args[1]['timeout'] == 7


@patch('nvupdater.core.http.urlopen', side_effect=URLError("unreachable"))
def test_fetch_text_network_failure(mock_urlopen):
    with pytest.raises(NetworkFailure):
        fetch_text("https://example.invalid/page")
