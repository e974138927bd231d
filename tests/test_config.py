"""Settings layering and local identity persistence."""

import json
import re

from roomchat.config import (
    Settings,
    generate_user_id,
    load_config,
    load_identity,
    load_settings,
    save_username,
)
from roomchat.scheduler import DEFAULT_POLL_INTERVAL_S


def test_defaults_without_config_file():
    settings = load_settings()
    assert settings == Settings()
    assert settings.poll_interval_s == DEFAULT_POLL_INTERVAL_S == 2.0


def test_file_then_env_overrides(tmp_path, monkeypatch):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"base_url": "http://file.test", "api_key": "from-file"}))
    monkeypatch.setenv("ROOMCHAT_API_KEY", "from-env")
    monkeypatch.setenv("ROOMCHAT_POLL_INTERVAL", "0.5")

    settings = load_settings(path)
    assert settings.base_url == "http://file.test"
    assert settings.api_key == "from-env"
    assert settings.poll_interval_s == 0.5


def test_corrupt_config_reads_as_empty(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{not json")
    assert load_config(path) == {}


def test_generate_user_id_shape():
    user_id = generate_user_id(now_ms=1700000000000)
    assert re.fullmatch(r"user_1700000000000_[0-9a-z]{9}", user_id)
    assert generate_user_id() != generate_user_id()


def test_identity_is_created_once_and_persisted(tmp_path):
    path = tmp_path / "nested" / "config.json"
    first = load_identity(path)
    second = load_identity(path)
    assert first.user_id == second.user_id
    assert first.username == ""

    named = save_username("Alice", path)
    assert named.user_id == first.user_id
    assert load_identity(path).username == "Alice"
    assert json.loads(path.read_text())["username"] == "Alice"
