import importlib

from fieldcat_backend import config
from fieldcat_backend.utils import parse_bool, parse_int


def test_env_int_clamps_and_falls_back(monkeypatch) -> None:
    monkeypatch.setenv("FIELDCAT_TEST_INT", "50000")
    assert config._env_int(500, "FIELDCAT_TEST_INT", min_value=1, max_value=10_000) == 10_000

    monkeypatch.setenv("FIELDCAT_TEST_INT", "0")
    assert config._env_int(500, "FIELDCAT_TEST_INT", min_value=1) == 1

    monkeypatch.setenv("FIELDCAT_TEST_INT", "many")
    assert config._env_int(500, "FIELDCAT_TEST_INT") == 500

    monkeypatch.delenv("FIELDCAT_TEST_INT", raising=False)
    assert config._env_int(500, "FIELDCAT_TEST_INT") == 500


def test_env_raw_uses_first_non_blank_name(monkeypatch) -> None:
    monkeypatch.setenv("FIELDCAT_A", "  ")
    monkeypatch.setenv("FIELDCAT_B", " value ")
    assert config._env_raw("FIELDCAT_A", "FIELDCAT_B") == "value"
    assert config._env_raw("FIELDCAT_MISSING", default="x") == "x"


def test_env_float_and_bool(monkeypatch) -> None:
    monkeypatch.setenv("FIELDCAT_TEST_FLOAT", "0.1")
    assert config._env_float(30.0, "FIELDCAT_TEST_FLOAT", min_value=1.0) == 1.0

    monkeypatch.setenv("FIELDCAT_TEST_BOOL", "yes")
    assert config._env_bool(False, "FIELDCAT_TEST_BOOL") is True
    monkeypatch.setenv("FIELDCAT_TEST_BOOL", "off")
    assert config._env_bool(True, "FIELDCAT_TEST_BOOL") is False


def test_defaults_are_within_bounds() -> None:
    assert 1 <= config.SYNC_BATCH_SIZE <= config.SYNC_BATCH_SIZE_MAX == 10_000
    assert config.LONG_TEXT_THRESHOLD == 30
    assert config.PAGE_SIZE_DEFAULT >= 1


def test_parse_helpers() -> None:
    assert parse_bool("enabled") is True
    assert parse_bool("garbage", default=True) is True
    assert parse_int(" 12 ", 1) == 12
    assert parse_int("x", 1) == 1
    assert parse_int(True, 7) == 7


def test_sync_track_conflicts_follows_env(monkeypatch) -> None:
    monkeypatch.setenv("FIELDCAT_SYNC_TRACK_CONFLICTS", "true")
    try:
        assert importlib.reload(config).SYNC_TRACK_CONFLICTS is True

        monkeypatch.setenv("FIELDCAT_SYNC_TRACK_CONFLICTS", "no")
        assert importlib.reload(config).SYNC_TRACK_CONFLICTS is False

        monkeypatch.delenv("FIELDCAT_SYNC_TRACK_CONFLICTS")
        assert importlib.reload(config).SYNC_TRACK_CONFLICTS is False
    finally:
        monkeypatch.undo()
        importlib.reload(config)
