"""Render configuration loading.

Settings are read from a YAML file and validated with pydantic. Two
environment variables override the file:

- ``VT_DOT_EXECUTABLE``: Graphviz binary used to render images.
- ``VT_OUTPUT_FORMAT``: Image format passed to Graphviz (``-T``).
"""

from __future__ import annotations

import os
from pathlib import Path  # noqa: TC003 - used at runtime
from typing import Any, Literal

from pydantic import BaseModel, Field, ValidationError
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from valuetrace.graph.errors import ConfigError
from valuetrace.observability.logging import get_logger

log = get_logger(__name__)


class RenderConfig(BaseModel):
    """How the value graph is serialized and handed to Graphviz."""

    rankdir: Literal["TB", "LR", "BT", "RL"] = Field(
        default="TB", description="Graph direction written into the DOT header"
    )
    show_named_only: bool = Field(
        default=False, description="Omit anonymous nodes and the edges touching them"
    )
    show_values: bool = Field(default=True, description="Print value snapshots in node labels")
    max_label_length: int = Field(
        default=40, description="Value text is truncated beyond this length", ge=8
    )
    output_format: str = Field(default="png", description="Graphviz output format", min_length=1)
    dot_executable: str = Field(default="dot", description="Graphviz binary", min_length=1)
    keep_dot: bool = Field(default=True, description="Keep the .dot file next to the image")
    timeout_seconds: float = Field(default=30.0, description="Renderer time limit", gt=0)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RenderConfig:
        """Create config from a dictionary, applying environment overrides.

        Args:
            data: Raw settings, typically the ``render`` section of the YAML file.

        Returns:
            Validated RenderConfig.
        """
        merged = dict(data)
        if executable := os.getenv("VT_DOT_EXECUTABLE"):
            merged["dot_executable"] = executable
        if output_format := os.getenv("VT_OUTPUT_FORMAT"):
            merged["output_format"] = output_format
        return cls.model_validate(merged)


def load_config(path: Path | None = None) -> RenderConfig:
    """Load render configuration.

    Args:
        path: YAML file to read. If None, defaults (plus environment
            overrides) are returned.

    Returns:
        Validated RenderConfig.

    Raises:
        ConfigError: If *path* is given but cannot be read, parsed or validated.
    """
    if path is None:
        return RenderConfig.from_dict({})

    if not path.exists():
        raise ConfigError(path, "File not found")

    yaml = YAML(typ="safe")
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.load(f)
    except (OSError, YAMLError) as e:
        raise ConfigError(path, str(e)) from e

    if data is None:
        log.info("config_empty", path=str(path))
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(path, "Expected a mapping at the top level")

    # Settings may live at the top level or under a ``render`` key
    section = data.get("render", data)
    if not isinstance(section, dict):
        raise ConfigError(path, "Expected 'render' to be a mapping")

    try:
        config = RenderConfig.from_dict(section)
    except ValidationError as e:
        raise ConfigError(path, str(e)) from e

    log.debug("config_loaded", path=str(path), rankdir=config.rankdir)
    return config
