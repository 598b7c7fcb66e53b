"""Tests for JSON settings persistence"""
import json

from nvupdater.config.settings import AppSettings


def test_defaults(tmp_path):
    s = AppSettings(data_dir=str(tmp_path))
    assert s.check_interval_hours == 5
    assert s.language_code == "en-us"
    assert s.check_interval_ms == 5 * 60 * 60 * 1000


def test_empty_data_dir_gets_default():
    assert AppSettings().data_dir != ""


def test_missing_file_returns_defaults(tmp_path):
    s = AppSettings.load(str(tmp_path / "missing.json"))
    assert s.check_interval_hours == 5


def test_save_and_load(tmp_path):
    path = str(tmp_path / "settings.json")
    AppSettings(data_dir=str(tmp_path), check_interval_hours=2, verbose_logging=True).save(path)

    loaded = AppSettings.load(path)
    assert loaded.check_interval_hours == 2
    assert loaded.verbose_logging is True
    assert loaded.data_dir == str(tmp_path)


def test_first_run_writes_defaults(tmp_path):
    path = tmp_path / "settings.json"

    s = AppSettings.load_or_create(str(path))

    assert path.is_file()
    assert json.loads(path.read_text(encoding='utf-8'))['check_interval_hours'] == 5
    assert s.check_interval_hours == 5


def test_existing_file_not_overwritten(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"data_dir": str(tmp_path), "check_interval_hours": 8}),
                    encoding='utf-8')

    s = AppSettings.load_or_create(str(path))

    assert s.check_interval_hours == 8
    assert json.loads(path.read_text(encoding='utf-8')) == {
        "data_dir": str(tmp_path), "check_interval_hours": 8}


def test_unknown_keys_ignored(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"data_dir": str(tmp_path), "listen_port": 6881}), encoding='utf-8')
    loaded = AppSettings.load(str(path))
    assert loaded.data_dir == str(tmp_path)


def test_corrupt_file_returns_defaults(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text("{not json", encoding='utf-8')
    assert AppSettings.load(str(path)).check_interval_hours == 5


def test_interval_never_below_one_hour(tmp_path):
    assert AppSettings(data_dir=str(tmp_path), check_interval_hours=0).check_interval_ms == 3600000


def test_ensure_dirs(tmp_path):
    s = AppSettings(data_dir=str(tmp_path / "data"))
    s.ensure_dirs()
    assert (tmp_path / "data" / "logs").is_dir()
