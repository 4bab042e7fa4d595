import pytest

from core.config import load_settings, load_token_config, resolve_token
from core.errors import ConfigError


def test_empty_path_means_no_config():
    assert load_token_config("").token is None
    assert load_token_config(None).token is None
    assert load_token_config("   ").token is None


def test_loads_token(tmp_path):
    path = tmp_path / "secrets.json"
    path.write_text('{"token": "AQAA123"}\n', encoding="utf-8")

    assert load_token_config(path).token == "AQAA123"


def test_missing_file(tmp_path):
    with pytest.raises(ConfigError, match="opening config file"):
        load_token_config(tmp_path / "nope.json")


@pytest.mark.parametrize(
    "content, message",
    [
        ("", "config file is empty"),
        ("  \n", "config file is empty"),
        ("{token: 1}", "decoding config"),
        ('{"token": "a"} {"token": "b"}', "multiple JSON values"),
        ('{"token": "a", "user": "x"}', "decoding config"),
        ('["a"]', "expected a JSON object"),
    ],
)
def test_rejects_bad_files(tmp_path, content, message):
    path = tmp_path / "secrets.json"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(ConfigError, match=message):
        load_token_config(path)


def test_cli_token_wins():
    assert resolve_token(" cli ", "file") == "cli"


def test_falls_back_to_config_token():
    assert resolve_token("  ", " file ") == "file"
    assert resolve_token(None, "file") == "file"


def test_no_token_anywhere():
    with pytest.raises(ConfigError, match="no API token"):
        resolve_token("", None)


@pytest.mark.parametrize("token", ["tökén", "abc\r\nX-Injected: 1", "a\x00b"])
def test_token_must_be_header_safe(token):
    with pytest.raises(ConfigError, match="not allowed in an HTTP header"):
        resolve_token(token, None)


def test_log_level_is_case_insensitive(monkeypatch):
    monkeypatch.setenv("EJUDGE_USERS_LOG_LEVEL", " debug ")

    assert load_settings().log_level == "DEBUG"


def test_invalid_log_level(monkeypatch):
    monkeypatch.setenv("EJUDGE_USERS_LOG_LEVEL", "loud")

    with pytest.raises(ConfigError, match="invalid settings"):
        load_settings()
