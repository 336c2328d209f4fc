"""Shared CLI helpers."""

from pathlib import Path
from typing import Optional

from rich.console import Console

from ..config import GeneratorConfig, load_config

console = Console()


def resolve_config(
    config: Optional[Path] = None,
    production: bool = False,
    no_update: bool = False,
) -> GeneratorConfig:
    """Build configuration from CLI options.

    Flags only override the file and environment when they are set.
    """
    overrides = {}
    if production:
        overrides["production"] = True
    if no_update:
        overrides["update"] = False
    return load_config(config_file=config, **overrides)
