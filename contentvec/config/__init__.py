"""Configuration module: exports Settings and the YAML config loader."""

from contentvec.config.loader import content_type_map, load_config
from contentvec.config.settings import Settings

__all__ = ["Settings", "content_type_map", "load_config"]
