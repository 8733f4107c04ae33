import pytest
import yaml

from photolens.config import DEFAULT_CONFIG, ConfigError, ConfigManager


def write_config(path, data):
    path.write_text(yaml.safe_dump(data))
    return path


def test_load_merges_file_over_defaults(tmp_path):
    path = write_config(tmp_path / "config.yaml", {
        "vision": {"api_key": "file-key", "model": "llava:13b"},
    })

    config = ConfigManager.load(str(path), interactive=False)

    assert config.get("vision.api_key") == "file-key"
    assert config.get("vision.model") == "llava:13b"
    assert config.get("vision.timeout") == DEFAULT_CONFIG["vision"]["timeout"]
    assert config.get("privacy.clean_prefix") == "clean_"
    assert config.config_path == path


def test_missing_api_key_fails_validation(tmp_path):
    path = write_config(tmp_path / "config.yaml", {"vision": {"model": "llava:13b"}})

    with pytest.raises(ConfigError, match="vision.api_key"):
        ConfigManager.load(str(path), interactive=False)


def test_environment_overrides_file(tmp_path, monkeypatch):
    path = write_config(tmp_path / "config.yaml", {"vision": {"api_key": "file-key"}})
    monkeypatch.setenv("OLLAMA_API_KEY", "env-key")
    monkeypatch.setenv("OLLAMA_HOST", "http://gpu-box:11434")

    config = ConfigManager.load(str(path), interactive=False)

    assert config.get("vision.api_key") == "env-key"
    assert config.get("vision.endpoint") == "http://gpu-box:11434"


def test_new_config_never_stores_environment_secret(tmp_path, monkeypatch):
    path = tmp_path / "fresh" / "config.yaml"
    monkeypatch.setenv("OLLAMA_API_KEY", "env-key")

    config = ConfigManager.load(str(path), interactive=True)

    assert config.get("vision.api_key") == "env-key"
    saved = yaml.safe_load(path.read_text())
    assert saved["vision"]["api_key"] == ""


def test_interactive_prompt_fills_and_saves_key(tmp_path, monkeypatch):
    path = tmp_path / "config.yaml"
    answers = iter(["", "typed-key"])
    monkeypatch.setattr("builtins.input", lambda prompt="": next(answers))

    config = ConfigManager.load(str(path), interactive=True)

    assert config.get("vision.api_key") == "typed-key"
    assert yaml.safe_load(path.read_text())["vision"]["api_key"] == "typed-key"


def test_missing_file_without_create_fails(tmp_path):
    with pytest.raises(ConfigError, match="not found"):
        ConfigManager.load(str(tmp_path / "absent.yaml"), create_if_missing=False)


@pytest.mark.parametrize("content", ["vision: [unclosed", "- just\n- a list\n"])
def test_malformed_file_fails(tmp_path, content):
    path = tmp_path / "config.yaml"
    path.write_text(content)

    with pytest.raises(ConfigError):
        ConfigManager.load(str(path), interactive=False)


def test_empty_file_uses_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("")

    config = ConfigManager.load(str(path), interactive=False, validate=False)

    assert config.get("vision.model") == "qwen3-vl:8b"


def test_dot_notation_get_set_and_save(tmp_path):
    config = ConfigManager({"vision": {"model": "gemma3:4b"}})

    config.set("privacy.quality", 80)

    assert config.get("privacy.quality") == 80
    assert config.get("vision.missing", "fallback") == "fallback"
    with pytest.raises(ConfigError):
        config.save()

    target = tmp_path / "saved.yaml"
    config.save(str(target))
    assert yaml.safe_load(target.read_text())["privacy"]["quality"] == 80


def test_defaults_are_not_mutated(tmp_path):
    path = write_config(tmp_path / "config.yaml", {"vision": {"api_key": "k"}})

    config = ConfigManager.load(str(path), interactive=False)
    config.set("vision.model", "llava:7b")

    assert DEFAULT_CONFIG["vision"]["model"] == "qwen3-vl:8b"
    assert DEFAULT_CONFIG["vision"]["api_key"] == ""
