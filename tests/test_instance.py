"""Tests for single-instance detection"""
import os
from unittest.mock import Mock, patch

import psutil

from nvupdater.system.instance import InstanceDetector


def _proc(pid, name):
    return Mock(info={'pid': pid, 'name': name})


@patch('nvupdater.system.instance.psutil.process_iter')
def test_other_instance_found(mock_iter):
    mock_iter.return_value = [_proc(os.getpid(), "NvUpdater.exe"), _proc(4242, "NvUpdater.exe")]
    assert InstanceDetector.is_running_elsewhere("NvUpdater") is True


@patch('nvupdater.system.instance.psutil.process_iter')
def test_only_self_running(mock_iter):
    mock_iter.return_value = [_proc(os.getpid(), "NvUpdater.exe"), _proc(1, "explorer.exe")]
    assert InstanceDetector.is_running_elsewhere("NvUpdater") is False


@patch('nvupdater.system.instance.psutil.process_iter', side_effect=psutil.AccessDenied())
def test_psutil_error_treated_as_not_running(mock_iter):
    assert InstanceDetector.is_running_elsewhere("NvUpdater") is False
