"""Configuration settings for talos_imagegen.

Uses pydantic-settings for config parsing from environment variables
and defaults. Configuration precedence: CLI flags > env vars > defaults.
"""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings.

    Settings are loaded from environment variables with the TALOS_IMG_ prefix.
    CLI flags can override these at runtime. Relative paths are resolved
    against the current working directory (the build checkout).
    """

    model_config = SettingsConfigDict(
        env_prefix="TALOS_IMG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Paths
    profiles_dir: Path = Field(
        default=Path("profiles"),
        description="Directory containing build profile YAML files",
    )
    output_dir: Path = Field(
        default=Path("_out"),
        description="Directory the imager writes images into",
    )
    changes_file: Path = Field(
        default=Path("config.yaml"),
        description="Kernel config/module change document",
    )
    kernel_config_file: Path = Field(
        default=Path("vendor/pkgs/kernel/build/config-arm64"),
        description="Baseline kernel config file",
    )
    modules_file: Path = Field(
        default=Path("vendor/talos/hack/modules-arm64.txt"),
        description="Module manifest file",
    )
    pkgs_dir: Path = Field(
        default=Path("vendor/pkgs"),
        description="Checkout of the kernel packages repository",
    )

    # Module manifest
    module_footer_prefix: str = Field(
        default="modules.",
        min_length=1,
        description="Line prefix identifying module manifest footer entries",
    )

    # Imager
    docker_bin: str = Field(
        default="docker",
        description="Container runtime binary used to run the imager",
    )
    default_imager_image: str = Field(
        default="ghcr.io/siderolabs/imager",
        description="Imager image used when a profile does not set one",
    )
    default_imager_version: str = Field(
        default="v1.12.1",
        description="Imager version used when a profile does not set one",
    )

    # Kernel source
    github_api_url: str = Field(
        default="https://api.github.com",
        description="GitHub REST API base URL",
    )
    kernel_repository: str = Field(
        default="raspberrypi/linux",
        description="GitHub repository providing kernel source tarballs",
    )

    # Operational
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )

    # Timeouts (in seconds)
    build_timeout: int = Field(
        default=3600,
        ge=60,
        description="Timeout for imager runs",
    )
    download_timeout: int = Field(
        default=600,
        ge=10,
        description="Timeout for kernel tarball downloads",
    )


def get_settings() -> Settings:
    """Get the application settings.

    Returns:
        Settings instance loaded from environment.
    """
    return Settings()


def print_settings_json(settings: Settings | None = None) -> str:
    """Render effective settings as JSON.

    Args:
        settings: Optional settings instance; uses default if not provided.

    Returns:
        JSON string of effective settings.
    """
    if settings is None:
        settings = get_settings()
    return settings.model_dump_json(indent=2)


__all__ = ["Settings", "get_settings", "print_settings_json"]
