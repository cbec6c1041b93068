"""Imager runner for executing containerized Talos image builds.

This module handles:
- Composing the `docker run` command for the imager container
- Piping the rendered imager profile on stdin
- Capturing stdout/stderr to a log file
- Enforcing build timeouts
"""

from __future__ import annotations

import logging
import shlex
import subprocess
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

from talos_imagegen.errors import TalosImagegenError
from talos_imagegen.imager.compose import (
    DEFAULT_IMAGER_IMAGE,
    DEFAULT_IMAGER_VERSION,
    compose_imager_config,
    effective_imager_image,
    imager_config_to_yaml,
)

if TYPE_CHECKING:
    from talos_imagegen.profiles.schema import BuildProfileSchema

logger = logging.getLogger(__name__)

LOG_FILENAME = "imager.log"


class ImagerExecutionError(TalosImagegenError):
    """Raised when the imager cannot be run or times out."""

    def __init__(
        self,
        message: str,
        exit_code: int | None = None,
        code: str = "execution_error",
    ) -> None:
        super().__init__(message, code=code)
        self.exit_code = exit_code


@dataclass
class ImagerResult:
    """Result of an imager run.

    Attributes:
        success: Whether the imager exited with status 0.
        exit_code: Process exit code.
        output_dir: Directory the imager wrote into.
        log_path: Path to the imager log file.
        started_at: Run start time.
        finished_at: Run finish time.
        command: The command that was executed.
        error_message: Error message if the run failed.
        artifacts: Files present in the output directory after the run.
    """

    success: bool
    exit_code: int
    output_dir: Path
    log_path: Path
    started_at: datetime
    finished_at: datetime
    command: str
    error_message: str | None = None
    artifacts: list[Path] = field(default_factory=list)


def compose_docker_command(
    profile: BuildProfileSchema,
    output_dir: Path,
    docker_bin: str = "docker",
    default_image: str = DEFAULT_IMAGER_IMAGE,
    default_version: str = DEFAULT_IMAGER_VERSION,
) -> list[str]:
    """Compose the `docker run` command for the imager.

    The imager reads its profile from stdin (``-``) and writes into the
    mounted ``/out`` directory.

    Args:
        profile: Build profile.
        output_dir: Host directory mounted as ``/out``.
        docker_bin: Container runtime binary.
        default_image: Imager image used when the profile sets none.
        default_version: Imager version used when the profile sets none.

    Returns:
        Command as list of strings suitable for subprocess.
    """
    image, version = effective_imager_image(profile, default_image, default_version)
    return [
        docker_bin,
        "run",
        "--rm",
        "-i",
        "-v",
        f"{output_dir.resolve()}:/out",
        "-v",
        "/dev:/dev",
        "--privileged",
        f"{image}:{version}",
        "-",
        "--output",
        "/out",
    ]


def list_artifacts(output_dir: Path) -> list[Path]:
    """List image files in the output directory, excluding the run log."""
    if not output_dir.is_dir():
        return []
    return sorted(
        path
        for path in output_dir.iterdir()
        if path.is_file() and path.name != LOG_FILENAME
    )


def run_imager(
    profile: BuildProfileSchema,
    output_dir: Path,
    timeout: int | None = None,
    docker_bin: str = "docker",
    default_image: str = DEFAULT_IMAGER_IMAGE,
    default_version: str = DEFAULT_IMAGER_VERSION,
) -> ImagerResult:
    """Run the imager container for a build profile.

    Args:
        profile: Build profile.
        output_dir: Directory for images and the run log.
        timeout: Timeout in seconds (None = no timeout).
        docker_bin: Container runtime binary.
        default_image: Imager image used when the profile sets none.
        default_version: Imager version used when the profile sets none.

    Returns:
        ImagerResult with execution details.

    Raises:
        ImagerExecutionError: If the imager fails to start or times out.
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    log_path = output_dir / LOG_FILENAME

    cmd = compose_docker_command(
        profile,
        output_dir,
        docker_bin=docker_bin,
        default_image=default_image,
        default_version=default_version,
    )
    document = imager_config_to_yaml(compose_imager_config(profile, default_version))

    cmd_str = shlex.join(cmd)
    logger.info("Executing imager: %s", cmd_str)
    logger.info("Output directory: %s", output_dir)
    logger.debug("Imager profile:\n%s", document)

    started_at = datetime.now(timezone.utc)
    error_message: str | None = None

    try:
        with log_path.open("w") as log_file:
            log_file.write(f"# Command: {cmd_str}\n")
            log_file.write(f"# Started: {started_at.isoformat()}\n")
            log_file.write(f"# Profile: {profile.name or '-'}\n")
            log_file.write("# " + "=" * 70 + "\n\n")
            log_file.flush()

            result = subprocess.run(
                cmd,
                input=document,
                text=True,
                stdout=log_file,
                stderr=subprocess.STDOUT,
                timeout=timeout,
                check=False,
            )

            exit_code = result.returncode
            success = exit_code == 0

            if not success:
                error_message = f"Imager failed with exit code {exit_code}"
                logger.error("%s. See log: %s", error_message, log_path)

    except subprocess.TimeoutExpired as e:
        error_message = f"Imager timed out after {timeout} seconds"
        logger.error("%s. See log: %s", error_message, log_path)

        with log_path.open("a") as log_file:
            log_file.write(f"\n# TIMEOUT after {timeout} seconds\n")

        raise ImagerExecutionError(
            error_message,
            exit_code=-1,
            code="imager_timeout",
        ) from e

    except OSError as e:
        error_message = f"Failed to execute imager: {e}"
        logger.error(error_message)
        raise ImagerExecutionError(
            error_message,
            exit_code=None,
            code="execution_error",
        ) from e

    finished_at = datetime.now(timezone.utc)

    with log_path.open("a") as log_file:
        log_file.write(f"\n# Finished: {finished_at.isoformat()}\n")
        log_file.write(f"# Exit code: {exit_code}\n")
        duration = (finished_at - started_at).total_seconds()
        log_file.write(f"# Duration: {duration:.1f}s\n")

    return ImagerResult(
        success=success,
        exit_code=exit_code,
        output_dir=output_dir,
        log_path=log_path,
        started_at=started_at,
        finished_at=finished_at,
        command=cmd_str,
        error_message=error_message,
        artifacts=list_artifacts(output_dir) if success else [],
    )


__all__ = [
    "ImagerExecutionError",
    "ImagerResult",
    "LOG_FILENAME",
    "compose_docker_command",
    "list_artifacts",
    "run_imager",
]
