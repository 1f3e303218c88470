from pathlib import Path

from prd_stream.settings import EngineSettings, get_engine_settings

_ENV = (
    "PRD_STREAM_SAMPLE_INTERVAL_S",
    "PRD_STREAM_MIN_SECTIONS",
    "PRD_STREAM_PLACEHOLDER_RATIO",
    "PRD_STREAM_DATA_DIR",
    "PRD_STREAM_STORE",
    "PRD_STREAM_LOG_LEVEL",
)


def _clear_env(monkeypatch):
    for name in _ENV:
        monkeypatch.delenv(name, raising=False)


def test_defaults(monkeypatch):
    _clear_env(monkeypatch)
    assert get_engine_settings() == EngineSettings()


def test_env_overrides(monkeypatch, tmp_path):
    _clear_env(monkeypatch)
    monkeypatch.setenv("PRD_STREAM_SAMPLE_INTERVAL_S", "0.25")
    monkeypatch.setenv("PRD_STREAM_MIN_SECTIONS", "3")
    monkeypatch.setenv("PRD_STREAM_PLACEHOLDER_RATIO", "0.8")
    monkeypatch.setenv("PRD_STREAM_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("PRD_STREAM_STORE", "FILE")
    monkeypatch.setenv("PRD_STREAM_LOG_LEVEL", "debug")
    settings = get_engine_settings()
    assert settings.sample_interval_s == 0.25
    assert settings.min_complete_sections == 3
    assert settings.placeholder_ratio == 0.8
    assert settings.data_dir == Path(tmp_path)
    assert settings.store_backend == "file"
    assert settings.log_level == "DEBUG"


def test_invalid_values_fall_back(monkeypatch):
    _clear_env(monkeypatch)
    monkeypatch.setenv("PRD_STREAM_SAMPLE_INTERVAL_S", "fast")
    monkeypatch.setenv("PRD_STREAM_MIN_SECTIONS", "0")
    monkeypatch.setenv("PRD_STREAM_PLACEHOLDER_RATIO", "1.5")
    monkeypatch.setenv("PRD_STREAM_STORE", "redis")
    settings = get_engine_settings()
    assert settings.sample_interval_s == 0.1
    assert settings.min_complete_sections == 1
    assert settings.placeholder_ratio == 0.5
    assert settings.store_backend == "memory"
