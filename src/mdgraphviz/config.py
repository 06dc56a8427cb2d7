"""Application configuration: settings schema and config.yaml loader"""

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError


CONFIG_FILE = "config.yaml"
ENV_PREFIX = "MDGRAPHVIZ_"


class Settings(BaseModel):
    graphviz_command:   str = Field(default="dot", description="Graphviz executable used for rendering")
    max_spawn_attempts: int = Field(default=5,  ge=1, description="Attempts to start the renderer before giving up")
    backoff_ms:         int = Field(default=10, ge=0, description="Backoff base; attempt n waits n² × backoff_ms")
    timeout:  Optional[float] = Field(default=None, gt=0, description="Seconds a render may run; None = no limit")
    parser_config:      str = Field(default="commonmark", description="MarkdownIt parser preset name")
    log_level:          str = Field(default="WARNING", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    output_dir:         str = Field(default="dist", description="Output directory for the build command")


def load_config(overrides: dict[str, Any] = None) -> Settings:
    """Load Settings from config.yaml, then MDGRAPHVIZ_<FIELD> env vars, then non-None overrides.

    Override keys may use '-' in place of '_' (book.toml style).
    """
    data: dict[str, Any] = {}
    if Path(CONFIG_FILE).exists():
        try:
            data = yaml.safe_load(Path(CONFIG_FILE).read_text()) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid {CONFIG_FILE}: {e}") from e

    for name in Settings.model_fields:
        if val := os.getenv(f"{ENV_PREFIX}{name.upper()}"):
            data[name] = val

    if overrides:
        data.update({k.replace('-', '_'): v for k, v in overrides.items() if v is not None})
    try:
        return Settings(**data)
    except ValidationError as e:
        raise ValueError(f"Invalid configuration: {e}") from e
