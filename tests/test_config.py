"""Tests for environment/.env driven configuration."""
import pytest

from src.config import DEFAULT_CACHE_DIR, Config, get_config


def write_env(project, **values):
    lines = [f"{key}={value}" for key, value in values.items()]
    (project / ".env").write_text("\n".join(lines) + "\n")


def test_defaults(tmp_path):
    config = Config(tmp_path)
    assert config.enabled_rules is None
    assert config.disabled_rules == []
    assert config.targets == []
    assert config.excluded_dirs == []
    assert config.cache_dir == tmp_path.resolve() / DEFAULT_CACHE_DIR


def test_environment_variables(tmp_path, monkeypatch):
    monkeypatch.setenv("RESULT_JANITOR_RULES", "unused-json-operation, unused-re-operation")
    monkeypatch.setenv("RESULT_JANITOR_EXCLUDE", "generated,fixtures")
    config = Config(tmp_path)
    assert config.enabled_rules == ["unused-json-operation", "unused-re-operation"]
    assert config.excluded_dirs == ["generated", "fixtures"]
    assert [rule.id for rule in config.rules()] == ["unused-re-operation", "unused-json-operation"]


def test_dotenv_file(tmp_path):
    write_env(
        tmp_path,
        RESULT_JANITOR_DISABLED_RULES="unused-math-operation",
        RESULT_JANITOR_TARGETS="mylib.pure:compute;otherlib",
        RESULT_JANITOR_CACHE_DIR="build/cache",
    )
    config = Config(tmp_path)
    assert config.disabled_rules == ["unused-math-operation"]
    assert [str(target) for target in config.targets] == ["mylib.pure:compute", "otherlib:*"]
    assert config.cache_dir == tmp_path.resolve() / "build" / "cache"


def test_environment_wins_over_dotenv(tmp_path, monkeypatch):
    write_env(tmp_path, RESULT_JANITOR_RULES="unused-re-operation")
    monkeypatch.setenv("RESULT_JANITOR_RULES", "unused-json-operation")
    assert Config(tmp_path).enabled_rules == ["unused-json-operation"]


def test_custom_targets_become_rules(tmp_path, monkeypatch):
    monkeypatch.setenv("RESULT_JANITOR_TARGETS", "mylib.pure")
    rules = Config(tmp_path).rules(only=["unused-json-operation"])
    assert [rule.id for rule in rules] == ["unused-json-operation", "unused-custom-operation"]


def test_unknown_rule_rejected(tmp_path, monkeypatch):
    monkeypatch.setenv("RESULT_JANITOR_RULES", "unused-everything")
    with pytest.raises(ValueError, match="unused-everything"):
        Config(tmp_path)


def test_malformed_target_rejected(tmp_path, monkeypatch):
    monkeypatch.setenv("RESULT_JANITOR_TARGETS", "my-lib:compute")
    with pytest.raises(ValueError):
        Config(tmp_path)


def test_get_config_is_a_per_root_singleton(tmp_path):
    first = tmp_path / "one"
    second = tmp_path / "two"
    first.mkdir()
    second.mkdir()
    assert get_config(first) is get_config(first)
    assert get_config(first) is not get_config(second)
