"""Tests for skip and studio sentinel files"""
import os

from nvupdater.config.markers import MarkerStore, SKIP_MARKER, STUDIO_MARKER


def test_no_skip_marker(tmp_path):
    assert MarkerStore(str(tmp_path)).skipped_version() is None


def test_skip_version_round_trip(tmp_path):
    store = MarkerStore(str(tmp_path))
    store.skip_version("536.23")
    assert (tmp_path / SKIP_MARKER).read_text(encoding='utf-8') == "536.23"
    assert store.skipped_version() == "536.23"


def test_skip_marker_survives_new_store(tmp_path):
    MarkerStore(str(tmp_path)).skip_version("536.23")
    assert MarkerStore(str(tmp_path)).skipped_version() == "536.23"


def test_skip_marker_reads_first_line(tmp_path):
    (tmp_path / SKIP_MARKER).write_text("536.23\nleftover\n", encoding='utf-8')
    assert MarkerStore(str(tmp_path)).skipped_version() == "536.23"


def test_empty_skip_marker_is_ignored(tmp_path):
    (tmp_path / SKIP_MARKER).write_text("", encoding='utf-8')
    assert MarkerStore(str(tmp_path)).skipped_version() is None


def test_clear_skip(tmp_path):
    store = MarkerStore(str(tmp_path))
    store.skip_version("536.23")
    store.clear_skip()
    assert not (tmp_path / SKIP_MARKER).exists()
    # Clearing twice is harmless
    store.clear_skip()


def test_studio_marker_presence(tmp_path):
    store = MarkerStore(str(tmp_path))
    assert store.studio is False

    store.set_studio(True)
    assert (tmp_path / STUDIO_MARKER).exists()
    assert os.path.getsize(tmp_path / STUDIO_MARKER) == 0
    assert store.studio is True

    store.set_studio(False)
    assert not (tmp_path / STUDIO_MARKER).exists()
    assert store.studio is False


def test_studio_and_skip_are_independent(tmp_path):
    store = MarkerStore(str(tmp_path))
    store.set_studio(True)
    store.skip_version("536.23")
    store.clear_skip()
    assert store.studio is True
