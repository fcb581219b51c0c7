from pathlib import Path

import pytest

from tmdb_cli.core.errors import ConfigError
from tmdb_cli.core.settings import Settings, default_config_path, load_settings


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(text, encoding="utf-8")
    return path


def test_api_key_is_read_from_config_file(tmp_path: Path) -> None:
    settings = load_settings(_write(tmp_path, "api_key: abc123\n"))

    assert settings.tmdb_api_key == "abc123"
    assert settings.tmdb_timeout_seconds == 10.0
    assert settings.tmdb_base_url == "https://api.themoviedb.org/3"


def test_config_file_can_override_other_settings(tmp_path: Path) -> None:
    settings = load_settings(_write(tmp_path, "api_key: abc\ntmdb_max_retries: 2\nlog_level: DEBUG\n"))

    assert settings.tmdb_max_retries == 2
    assert settings.log_level == "DEBUG"


def test_environment_supplies_missing_api_key(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("TMDB_API_KEY", "from-env")

    settings = load_settings(_write(tmp_path, "log_level: INFO\n"))

    assert settings.tmdb_api_key == "from-env"


def test_missing_api_key_is_a_config_error(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.delenv("TMDB_API_KEY", raising=False)

    with pytest.raises(ConfigError) as exc:
        load_settings(_write(tmp_path, ""))

    assert exc.value.code == "missing_api_key"
    assert "api_key: YOUR_API_KEY" in exc.value.message


def test_missing_file_is_a_config_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigError) as exc:
        load_settings(tmp_path / "nope.yaml")

    assert exc.value.code == "config_unreadable"


@pytest.mark.parametrize("text", ["api_key: [unclosed\n", "- just\n- a list\n", "api_key: abc\ntmdb_max_retries: zero\n"])
def test_invalid_file_is_a_config_error(tmp_path: Path, text: str) -> None:
    with pytest.raises(ConfigError) as exc:
        load_settings(_write(tmp_path, text))

    assert exc.value.code == "config_invalid"


def test_default_config_path_lives_in_home(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setattr(Path, "home", lambda: tmp_path)

    assert default_config_path() == tmp_path / ".tmdb-cli" / "config.yaml"


def test_default_max_items_is_bounded() -> None:
    with pytest.raises(ValueError):
        Settings(default_max_items=401)
