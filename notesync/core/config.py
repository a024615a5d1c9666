"""
Configuration - 配置
配置是一个嵌套字典，结构与插件配置保持一致，各组件通过 config.get(...) 读取。
加载顺序：默认值 < JSON 配置文件 < 环境变量 < 显式覆盖。
"""

import copy
import json
import os
from typing import Any, Dict, Optional

from .exceptions import ConfigError
from .models import DEFAULT_PAGE_SIZE

DEFAULT_CONFIG: Dict[str, Any] = {
    "notes_base_url": "http://localhost:8080/api/v1",
    "notes_token": "",
    "page_size": DEFAULT_PAGE_SIZE,
    "stale_time": 5.0,
    "request_timeout": 30.0,
    "placeholder_previous": True,
    "ui_preferences": {
        "show_timestamps": True,
        "compact_mode": False,
        "custom_responses": {
            "note_created": "Note created successfully",
            "note_updated": "Note updated successfully",
            "note_deleted": "Note deleted successfully",
            "error_general": "{error}",
            "command_unknown": "Unknown command: #{command}. Try #help",
        },
        "custom_templates": {
            "enable_custom": False,
        },
    },
    "advanced_settings": {
        "enable_debug_mode": False,
    },
}

_ENV_KEYS = {
    "NOTESYNC_BASE_URL": ("notes_base_url", str),
    "NOTESYNC_PAGE_SIZE": ("page_size", int),
    "NOTESYNC_REQUEST_TIMEOUT": ("request_timeout", float),
    "NOTESYNC_STALE_TIME": ("stale_time", float),
}


def _deep_merge(base: Dict[str, Any], extra: Dict[str, Any]) -> Dict[str, Any]:
    for key, value in extra.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
    return base


def _env_overrides() -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for env_name, (key, cast) in _ENV_KEYS.items():
        raw = os.environ.get(env_name)
        if raw is None or raw == "":
            continue
        try:
            out[key] = cast(raw)
        except ValueError:
            raise ConfigError(f"{env_name} has an invalid value: {raw!r}")
    debug = os.environ.get("NOTESYNC_DEBUG")
    if debug:
        out["advanced_settings"] = {"enable_debug_mode": debug.lower() in ("1", "true", "yes", "on")}
    return out


def validate_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """检查数值配置的取值范围，不合法时抛出 ConfigError。"""
    page_size = config.get("page_size")
    if not isinstance(page_size, int) or isinstance(page_size, bool) or not 1 <= page_size <= 100:
        raise ConfigError(f"page_size must be an integer between 1 and 100, got {page_size!r}")
    stale_time = config.get("stale_time")
    if not isinstance(stale_time, (int, float)) or stale_time < 0:
        raise ConfigError(f"stale_time must be >= 0, got {stale_time!r}")
    timeout = config.get("request_timeout")
    if not isinstance(timeout, (int, float)) or timeout <= 0:
        raise ConfigError(f"request_timeout must be > 0, got {timeout!r}")
    if not str(config.get("notes_base_url") or "").startswith(("http://", "https://")):
        raise ConfigError(f"notes_base_url must be an http(s) URL, got {config.get('notes_base_url')!r}")
    return config


def load_config(path: Optional[str] = None, overrides: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    构建最终配置。

    :param path: 可选的 JSON 配置文件路径。
    :param overrides: 显式覆盖项（优先级最高）。
    :return: 合并并校验后的配置字典。
    :raises ConfigError: 文件无法解析或取值不合法时抛出。
    """
    config = copy.deepcopy(DEFAULT_CONFIG)
    if path:
        try:
            with open(path, "r", encoding="utf-8") as f:
                file_config = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Failed to read config file {path}: {e}")
        if not isinstance(file_config, dict):
            raise ConfigError(f"Config file {path} must contain a JSON object")
        _deep_merge(config, file_config)
    _deep_merge(config, _env_overrides())
    if overrides:
        _deep_merge(config, copy.deepcopy(overrides))
    return validate_config(config)
