"""Talos imager integration.

This module handles:
- Rendering build profiles into imager profile documents
- Running the imager container and capturing its log
"""

from talos_imagegen.imager.compose import (
    compose_imager_config,
    imager_config_to_yaml,
    parse_image_source,
)
from talos_imagegen.imager.runner import (
    ImagerExecutionError,
    ImagerResult,
    compose_docker_command,
    run_imager,
)

__all__ = [
    "ImagerExecutionError",
    "ImagerResult",
    "compose_docker_command",
    "compose_imager_config",
    "imager_config_to_yaml",
    "parse_image_source",
    "run_imager",
]
