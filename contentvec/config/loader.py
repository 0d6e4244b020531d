"""YAML configuration loader with environment variable overrides.

# ─── CONFIGURATION HIERARCHY ──────────────────────────────────────────
#
# Configuration is loaded in layers (later layers override earlier):
#
#   1. config/config.yaml : static defaults checked into the repo
#   2. .env file          : local developer overrides (not committed)
#   3. Environment vars   : set at deploy time
#
# The YAML file carries structured data that does not fit flat env vars,
# chiefly the ``content_types`` table mapping profile-field content-type
# labels to the host CMS's canonical identifiers:
#
#   content_types:
#     "AI Content": "api::ai-content.ai-content"
#     article: "api::article.article"
# ──────────────────────────────────────────────────────────────────────
"""

from pathlib import Path

import yaml

from contentvec.config.settings import Settings


def load_config(path: str | None = None, settings: Settings | None = None) -> dict:
    """Load YAML config and merge with environment-based Settings.

    Environment variables (via Settings) override YAML values where keys overlap.

    Args:
        path: Path to the YAML configuration file.  Defaults to
            ``settings.config_path``.
        settings: Pre-built settings; a fresh ``Settings()`` is read when omitted.

    Returns:
        Fully resolved configuration dictionary.
    """
    settings = settings or Settings()
    config_path = Path(path or settings.config_path)
    if config_path.exists():
        with open(config_path) as f:
            yaml_config = yaml.safe_load(f) or {}
    else:
        yaml_config = {}

    env_overrides = {
        "app": {
            "host": settings.app_host,
            "port": settings.app_port,
            "env": settings.app_env,
        },
        "embedding": {
            "provider": settings.embedding_provider,
            "model": settings.embedding_model,
        },
        "content": {
            "api_url": settings.content_api_url,
            "page_size": settings.content_page_size,
        },
        "indexing": {
            "concurrency": settings.indexing_concurrency,
        },
        "logging": {
            "level": settings.log_level,
        },
    }

    _deep_merge(yaml_config, env_overrides)
    yaml_config.setdefault("content_types", {})
    return yaml_config


def content_type_map(config: dict) -> dict[str, str]:
    """Return the ``content_types`` label → uid table from a loaded config."""
    raw = config.get("content_types") or {}
    return {str(label): str(uid) for label, uid in raw.items()}


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
