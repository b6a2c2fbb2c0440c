from pathlib import Path

import pytest
import yaml

from bankai.config import DEFAULT_GEMINI_MODEL, Settings, save_config


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("API_KEY", raising=False)
    Settings.reset()
    yield
    Settings.reset()


def test_load_copies_templates_and_reads_yaml(tmp_path, monkeypatch):
    example = tmp_path / ".metadata.example"
    example.mkdir()
    (example / "config.yaml").write_text(
        "db_path: data/papers.db\ngemini_model: gemini-test\nbatch_start_delay: 3\n", encoding="utf-8"
    )
    monkeypatch.setenv("API_KEY", "legacy-key")

    settings = Settings.load(tmp_path)

    assert (tmp_path / ".metadata" / "config.yaml").exists()
    assert settings.db_path == tmp_path / "data" / "papers.db"
    assert settings.gemini_model == "gemini-test"
    assert settings.batch_start_delay == 3.0
    assert settings.gemini_api_key == "legacy-key"


def test_defaults_without_config(tmp_path):
    settings = Settings.load(tmp_path)
    assert settings.db_path == tmp_path / "bankai.db"
    assert settings.gemini_model == DEFAULT_GEMINI_MODEL
    assert settings.gemini_api_key is None


def test_singleton_and_reload(tmp_path, monkeypatch):
    first = Settings.load(tmp_path)
    assert Settings.load(Path("/elsewhere")) is first
    monkeypatch.setenv("GEMINI_API_KEY", "new-key")
    assert Settings.reload(tmp_path).gemini_api_key == "new-key"


def test_update_rejects_unknown_fields(tmp_path):
    settings = Settings.load(tmp_path)
    with pytest.raises(AttributeError):
        settings.update(feeds=[])


def test_save_config_never_writes_the_api_key(tmp_path, monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "secret")
    settings = Settings.load(tmp_path)
    settings.update(gemini_model="gemini-other")
    path = tmp_path / ".metadata" / "config.yaml"
    save_config(path, settings)

    text = path.read_text(encoding="utf-8")
    assert "secret" not in text
    assert yaml.safe_load(text)["gemini_model"] == "gemini-other"


def test_malformed_yaml_is_ignored(tmp_path):
    metadata = tmp_path / ".metadata"
    metadata.mkdir()
    (metadata / "config.yaml").write_text("db_path: [unclosed\n", encoding="utf-8")
    assert Settings.load(tmp_path).gemini_model == DEFAULT_GEMINI_MODEL
