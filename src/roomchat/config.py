"""
Configuration and local identity.

Settings come from ~/.roomchat/config.json (or the file named by
ROOMCHAT_CONFIG), overridden by ROOMCHAT_BASE_URL, ROOMCHAT_API_KEY and
ROOMCHAT_POLL_INTERVAL. The same file stores the local identity: a user id
generated on first use and the chosen display name.
"""

from __future__ import annotations

import json
import os
import secrets
import string
import time
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel

from roomchat.scheduler import DEFAULT_POLL_INTERVAL_S
from roomchat.transport.http import DEFAULT_BASE_URL

CONFIG_FILE = Path.home() / ".roomchat" / "config.json"

ENV_OVERRIDES = {
    "ROOMCHAT_BASE_URL": "base_url",
    "ROOMCHAT_API_KEY": "api_key",
    "ROOMCHAT_POLL_INTERVAL": "poll_interval_s",
}

_BASE36 = string.digits + string.ascii_lowercase


class Settings(BaseModel):
    base_url: str = DEFAULT_BASE_URL
    api_key: Optional[str] = None
    poll_interval_s: float = DEFAULT_POLL_INTERVAL_S
    user_id: Optional[str] = None
    username: Optional[str] = None


class Identity(BaseModel):
    user_id: str
    username: str = ""


def config_path(path: Optional[Path] = None) -> Path:
    if path is not None:
        return path
    override = os.environ.get("ROOMCHAT_CONFIG")
    return Path(override) if override else CONFIG_FILE


def load_config(path: Optional[Path] = None) -> dict[str, Any]:
    try:
        data = json.loads(config_path(path).read_text())
    except (FileNotFoundError, json.JSONDecodeError):
        return {}
    return data if isinstance(data, dict) else {}


def save_config(cfg: dict[str, Any], path: Optional[Path] = None) -> None:
    target = config_path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(json.dumps(cfg, indent=2))


def load_settings(path: Optional[Path] = None) -> Settings:
    cfg = load_config(path)
    for env_var, key in ENV_OVERRIDES.items():
        value = os.environ.get(env_var)
        if value:
            cfg[key] = value
    return Settings.model_validate(cfg)


def generate_user_id(now_ms: Optional[int] = None) -> str:
    """user_<epoch ms>_<9 base36 chars>"""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    suffix = "".join(secrets.choice(_BASE36) for _ in range(9))
    return f"user_{now_ms}_{suffix}"


def load_identity(path: Optional[Path] = None) -> Identity:
    """Return the local identity, creating and persisting a user id on first use."""
    cfg = load_config(path)
    if not cfg.get("user_id"):
        cfg["user_id"] = generate_user_id()
        save_config(cfg, path)
    return Identity(user_id=cfg["user_id"], username=cfg.get("username") or "")


def save_username(username: str, path: Optional[Path] = None) -> Identity:
    identity = load_identity(path)
    cfg = load_config(path)
    cfg["username"] = username
    save_config(cfg, path)
    return Identity(user_id=identity.user_id, username=username)
