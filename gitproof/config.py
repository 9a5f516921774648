"""Configuration loading for gitproof"""

import copy
import logging
from pathlib import Path
from typing import Dict, Any, Optional, Union

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG: Dict[str, Any] = {
    "ai": {
        "provider": "auto",
        "openai_model": "gpt-4o-mini",
        "gemini_model": "gemini-1.5-flash",
        "timeout_sec": 20,
        "max_tokens": 600,
        "language": "en",
        "use_cache": True,
        "cache_dir": None,
        "cache_ttl_days": 7,
    },
    "leaderboard": {
        "enabled": True,
        "path": "~/.gitproof/leaderboard.json",
        "limit": 50,
    },
    "publish": {
        "url": None,
        "token_env": "GITPROOF_PUBLISH_TOKEN",
        "auth_type": "bearer",
        "custom_header": "X-API-Key",
        "timeout_sec": 15,
    },
}

CONFIG_FILENAMES = ("gitproof.yml", "gitproof.yaml")


def find_config_file() -> Optional[Path]:
    """Look for a config file in the working directory, then the home directory"""
    possible_paths = [Path(name) for name in CONFIG_FILENAMES]
    possible_paths.append(Path.home() / ".gitproof" / "config.yml")
    for path in possible_paths:
        if path.exists():
            return path
    return None


def load_config(path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """Load config from ``path`` (or the first file found) merged over defaults"""
    config_path = Path(path) if path else find_config_file()
    if not config_path or not config_path.exists():
        return copy.deepcopy(DEFAULT_CONFIG)

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Ignoring unreadable config %s: %s", config_path, e)
        return copy.deepcopy(DEFAULT_CONFIG)

    if not isinstance(data, dict):
        logger.warning("Ignoring config %s: top level is not a mapping", config_path)
        return copy.deepcopy(DEFAULT_CONFIG)

    logger.debug("Loaded config from %s", config_path)
    return merge_config(DEFAULT_CONFIG, data)


def merge_config(base: Dict[str, Any], override: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Deep-merge ``override`` into a copy of ``base``"""
    result = copy.deepcopy(base)
    for key, value in (override or {}).items():
        if isinstance(result.get(key), dict) and isinstance(value, dict):
            result[key] = merge_config(result[key], value)
        else:
            result[key] = value
    return result
