"""YAML configuration loader with environment variable overrides.

# ─── CONFIGURATION HIERARCHY ──────────────────────────────────────────
#
# Configuration is loaded in layers (later layers override earlier):
#
#   1. config/config.yaml : Static defaults checked into the repo
#   2. .env file          : Local developer overrides (not committed)
#   3. Environment vars   : Set at deploy time
#
# Layers 2 and 3 are resolved by Settings; load_config() lays the result
# over the YAML tree section by section, so YAML-only keys such as
# crawl.allowed_depths survive while tunables always reflect the env:
#   yaml      = {"crawl": {"allowed_depths": [1, 2, 3], "user_agent": "a"}}
#   settings  = {"crawl": {"user_agent": "b"}}
#   result    = {"crawl": {"allowed_depths": [1, 2, 3], "user_agent": "b"}}
# ──────────────────────────────────────────────────────────────────────
"""

from pathlib import Path
from typing import Any

import yaml

from knowledge_core.config.settings import Settings
from knowledge_core.utils.errors import ConfigurationError

DEFAULT_CONFIG_PATH = "config/config.yaml"


def load_config(path: str = DEFAULT_CONFIG_PATH, settings: Settings | None = None) -> dict[str, Any]:
    """Return the merged configuration tree.

    A missing file is treated as an empty tree.  A file that does not
    parse, or whose top level is not a mapping, raises
    :class:`ConfigurationError`.
    """
    tree = _read_yaml(Path(path))
    _deep_merge(tree, _settings_tree(settings or Settings()))
    return tree


def _read_yaml(config_path: Path) -> dict[str, Any]:
    if not config_path.is_file():
        return {}
    try:
        loaded = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigurationError(message=f"Cannot parse {config_path}: {exc}") from exc
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigurationError(
            message=f"{config_path} must contain a mapping at the top level, got {type(loaded).__name__}"
        )
    return loaded


def _settings_tree(settings: Settings) -> dict[str, Any]:
    """Project the flat Settings fields onto the YAML section layout."""
    return {
        "app": {"env": settings.app_env},
        "embedding": {
            "api_url": settings.embedding_api_url,
            "model": settings.embedding_model,
            "batch_size": settings.embedding_batch_size,
            "batch_delay_ms": settings.embedding_batch_delay_ms,
            "timeout": settings.embedding_timeout,
            # The key itself never leaves Settings.
            "configured": settings.has_embedding_credentials(),
        },
        "chunking": {
            "chunk_size": settings.chunk_size,
            "chunk_overlap": settings.chunk_overlap,
        },
        "retrieval": {
            "top_k": settings.rag_top_k,
            "min_similarity": settings.rag_min_similarity,
            "max_context_length": settings.rag_max_context_length,
        },
        "crawl": {
            "user_agent": settings.crawl_user_agent,
            "rate_limit_ms": settings.crawl_rate_limit_ms,
            "timeout_ms": settings.crawl_timeout_ms,
            "respect_robots_txt": settings.crawl_respect_robots_txt,
            "robots_timeout": settings.robots_timeout,
        },
        "uploads": {
            "dir": settings.upload_dir,
            "max_size_mb": settings.max_upload_size_mb,
        },
        "logging": {"level": settings.log_level},
    }


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
