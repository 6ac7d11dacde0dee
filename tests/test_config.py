import pytest

from kvcast.core.config import KvCastConfig, load_config
from kvcast.core.errors import ConfigError


def test_defaults_without_file():
    config = load_config(None)
    assert config == KvCastConfig()
    assert config.buffer_size == 4096
    assert config.delay == 1.0


def test_yaml_values_are_loaded(tmp_path):
    path = tmp_path / "kvcast.yaml"
    path.write_text("delay: 0\nttl: 8\ndebug: true\nlog_level: DEBUG\n", encoding="utf-8")

    config = load_config(path)
    assert config.delay == 0.0
    assert isinstance(config.delay, float)
    assert config.ttl == 8
    assert config.debug is True
    assert config.log_level == "DEBUG"
    assert config.buffer_size == 4096


def test_empty_file_gives_defaults(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")
    assert load_config(path) == KvCastConfig()


@pytest.mark.parametrize("content, message", [
    ("colour: red\n", "Unknown config key"),
    ("ttl: many\n", "must be an integer"),
    ("debug: 1\n", "true or false"),
    ("delay: -1\n", "must not be negative"),
    ("- a\n- b\n", "must be a mapping"),
    ("delay: [\n", "Invalid YAML"),
])
def test_invalid_config(tmp_path, content, message):
    path = tmp_path / "bad.yaml"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(ConfigError, match=message):
        load_config(path)


def test_missing_file(tmp_path):
    with pytest.raises(ConfigError, match="Unable to read"):
        load_config(tmp_path / "absent.yaml")


def test_overrides_ignore_none():
    config = KvCastConfig().with_overrides(delay=0.1, debug=None, unicast=True)
    assert config.delay == 0.1
    assert config.debug is False
    assert config.unicast is True
