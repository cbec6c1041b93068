"""Tests for the imager runner.

Uses mocked subprocess for imager execution tests.
"""

import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from talos_imagegen.imager.runner import (
    LOG_FILENAME,
    ImagerExecutionError,
    compose_docker_command,
    list_artifacts,
    run_imager,
)
from talos_imagegen.profiles.schema import BuildProfileSchema


def make_profile(**kwargs) -> BuildProfileSchema:
    """Create a test profile with defaults."""
    data = {"name": "rpi5"}
    data.update(kwargs)
    return BuildProfileSchema.model_validate(data)


class TestComposeDockerCommand:
    """Tests for compose_docker_command."""

    def test_command_shape(self, tmp_path: Path):
        """The imager runs privileged with /out and /dev mounted."""
        cmd = compose_docker_command(make_profile(), tmp_path)

        assert cmd == [
            "docker",
            "run",
            "--rm",
            "-i",
            "-v",
            f"{tmp_path.resolve()}:/out",
            "-v",
            "/dev:/dev",
            "--privileged",
            "ghcr.io/siderolabs/imager:v1.12.1",
            "-",
            "--output",
            "/out",
        ]

    def test_custom_runtime_and_image(self, tmp_path: Path):
        """Runtime binary and imager image are configurable."""
        profile = make_profile(imager={"image": "my/imager", "version": "v1.11.0"})

        cmd = compose_docker_command(profile, tmp_path, docker_bin="podman")

        assert cmd[0] == "podman"
        assert "my/imager:v1.11.0" in cmd


class TestRunImager:
    """Tests for run_imager with mocked subprocess."""

    def test_success(self, tmp_path: Path):
        """A zero exit code is a successful build."""
        output_dir = tmp_path / "out"
        with patch("subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(returncode=0)

            result = run_imager(make_profile(), output_dir)

        assert result.success is True
        assert result.exit_code == 0
        assert result.log_path == output_dir / LOG_FILENAME
        assert result.error_message is None
        assert result.finished_at >= result.started_at

    def test_profile_piped_on_stdin(self, tmp_path: Path):
        """The rendered imager profile is passed as stdin."""
        with patch("subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(returncode=0)

            run_imager(make_profile(), tmp_path / "out", timeout=120)

        call_kwargs = mock_run.call_args.kwargs
        assert call_kwargs["input"].startswith("arch: arm64\n")
        assert call_kwargs["timeout"] == 120
        assert call_kwargs["stderr"] == subprocess.STDOUT

    def test_failure(self, tmp_path: Path):
        """A non-zero exit code is reported, not raised."""
        with patch("subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(returncode=1)

            result = run_imager(make_profile(), tmp_path / "out")

        assert result.success is False
        assert result.exit_code == 1
        assert "exit code 1" in (result.error_message or "")
        assert result.artifacts == []

    def test_timeout(self, tmp_path: Path):
        """Timeouts raise ImagerExecutionError."""
        with patch("subprocess.run") as mock_run:
            mock_run.side_effect = subprocess.TimeoutExpired(cmd="docker", timeout=60)

            with pytest.raises(ImagerExecutionError) as exc_info:
                run_imager(make_profile(), tmp_path / "out", timeout=60)

        assert exc_info.value.code == "imager_timeout"
        log = (tmp_path / "out" / LOG_FILENAME).read_text()
        assert "TIMEOUT" in log

    def test_missing_runtime(self, tmp_path: Path):
        """A runtime that cannot start raises ImagerExecutionError."""
        with patch("subprocess.run") as mock_run:
            mock_run.side_effect = FileNotFoundError("docker")

            with pytest.raises(ImagerExecutionError) as exc_info:
                run_imager(make_profile(), tmp_path / "out")

        assert exc_info.value.code == "execution_error"

    def test_log_header(self, tmp_path: Path):
        """The log records the command, start, and finish."""
        with patch("subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(returncode=0)

            result = run_imager(make_profile(), tmp_path / "out")

        log = result.log_path.read_text()
        assert "# Command: docker run" in log
        assert "# Started:" in log
        assert "# Finished:" in log
        assert "# Exit code: 0" in log

    def test_artifacts_listed(self, tmp_path: Path):
        """Files the imager wrote are reported, excluding the log."""
        output_dir = tmp_path / "out"
        output_dir.mkdir()
        (output_dir / "metal-arm64.raw.xz").write_bytes(b"image")

        with patch("subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(returncode=0)

            result = run_imager(make_profile(), output_dir)

        assert result.artifacts == [output_dir / "metal-arm64.raw.xz"]


class TestListArtifacts:
    """Tests for list_artifacts."""

    def test_missing_dir(self, tmp_path: Path):
        """A missing directory has no artifacts."""
        assert list_artifacts(tmp_path / "missing") == []
