"""Kernel source update module.

This module handles:
- Resolving a branch or tag of the kernel repository to a commit
- Streaming the source tarball and computing its checksums
- Rewriting the kernel package files to pin the new commit
"""

from __future__ import annotations

import hashlib
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import httpx

from talos_imagegen.errors import MissingBaselineError, TalosImagegenError
from talos_imagegen.files import atomic_write_text, backup_file, read_baseline

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"
GITHUB_ARCHIVE_BASE = "https://github.com"
DEFAULT_REPOSITORY = "raspberrypi/linux"

# Timeout for API requests (seconds)
API_TIMEOUT = 30

# Timeout for tarball downloads (seconds)
DOWNLOAD_TIMEOUT = 600

# Chunk size for downloads (bytes)
DOWNLOAD_CHUNK_SIZE = 64 * 1024  # 64 KB

PKGFILE_NAME = "Pkgfile"
PKG_YAML_PATH = Path("kernel/prepare/pkg.yaml")

# Expanded by the package build at fetch time
GITHUB_SOURCE_TEMPLATE = "{{ .linux_ref }}"

_REF_LINE = re.compile(r"^(\s*)linux_(?:version|ref):.*$", re.MULTILINE)
_SHA256_LINE = re.compile(r"^(\s*)linux_sha256:.*$", re.MULTILINE)
_SHA512_LINE = re.compile(r"^(\s*)linux_sha512:.*$", re.MULTILINE)
_CDN_URL_LINE = re.compile(
    r"^(\s*(?:-\s*)?)url:\s*\S*cdn\.kernel\.org.*$", re.MULTILINE
)


class DownloadError(TalosImagegenError):
    """Raised when a GitHub request or tarball download fails."""

    def __init__(self, message: str, code: str = "download_error") -> None:
        super().__init__(message, code=code)


class KernelRefNotFoundError(TalosImagegenError):
    """Raised when a ref is neither a branch nor a tag."""

    def __init__(self, ref: str, repository: str) -> None:
        super().__init__(
            f"Could not resolve '{ref}' as a branch or tag of {repository}",
            code="ref_not_found",
        )
        self.ref = ref
        self.repository = repository


@dataclass
class TarballChecksums:
    """Checksums of a downloaded source tarball."""

    sha256: str
    sha512: str
    size_bytes: int


@dataclass
class KernelUpdateResult:
    """Result of a kernel ref update.

    Attributes:
        ref: Requested branch or tag.
        commit: Resolved commit SHA.
        tarball_url: Archive URL the checksums were computed from.
        checksums: Tarball checksums.
        pkgfile_path: Rewritten Pkgfile.
        pkg_yaml_path: Rewritten kernel prepare pkg.yaml.
        pkg_yaml_changed: Whether pkg.yaml was switched to the GitHub source.
        backups: Backup copies written before rewriting.
    """

    ref: str
    commit: str
    tarball_url: str
    checksums: TarballChecksums
    pkgfile_path: Path
    pkg_yaml_path: Path
    pkg_yaml_changed: bool
    backups: list[Path] = field(default_factory=list)


def _extract_sha(data: Any, full_ref: str) -> str | None:
    # The refs endpoint returns a list of prefix matches when there is no
    # exact match.
    if isinstance(data, list):
        data = next((item for item in data if item.get("ref") == full_ref), None)
    if not isinstance(data, dict):
        return None
    sha = data.get("object", {}).get("sha")
    return sha if isinstance(sha, str) and sha else None


def resolve_kernel_ref(
    client: httpx.Client,
    ref: str,
    repository: str = DEFAULT_REPOSITORY,
    api_base: str = GITHUB_API_URL,
    timeout: float = API_TIMEOUT,
) -> str:
    """Resolve a branch or tag name to a commit SHA.

    Branches are tried before tags.

    Args:
        client: HTTPX client instance.
        ref: Branch or tag name (e.g., 'rpi-6.18.y', 'stable_20250428').
        repository: GitHub 'owner/name' repository.
        api_base: GitHub REST API base URL.
        timeout: Request timeout in seconds.

    Returns:
        The SHA the ref points to.

    Raises:
        KernelRefNotFoundError: If neither a branch nor a tag matches.
        DownloadError: If the API request fails for another reason.
    """
    for kind in ("heads", "tags"):
        full_ref = f"refs/{kind}/{ref}"
        url = f"{api_base.rstrip('/')}/repos/{repository}/git/{full_ref}"
        logger.debug("Resolving %s via %s", ref, url)

        try:
            response = client.get(url, timeout=timeout)
            if response.status_code == 404:
                continue
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise DownloadError(
                f"HTTP error resolving {ref}: {e.response.status_code}",
                code="http_error",
            ) from e
        except httpx.TimeoutException as e:
            raise DownloadError(
                f"Timeout resolving {ref} at {url}",
                code="timeout",
            ) from e
        except httpx.RequestError as e:
            raise DownloadError(
                f"Network error resolving {ref}: {e}",
                code="network_error",
            ) from e

        sha = _extract_sha(response.json(), full_ref)
        if sha:
            logger.info("Resolved %s (%s) to %s", ref, kind, sha)
            return sha

    raise KernelRefNotFoundError(ref, repository)


def build_tarball_url(repository: str, commit: str) -> str:
    """Build the GitHub archive URL for a commit."""
    return f"{GITHUB_ARCHIVE_BASE}/{repository}/archive/{commit}.tar.gz"


def compute_tarball_checksums(
    client: httpx.Client,
    url: str,
    timeout: float = DOWNLOAD_TIMEOUT,
    chunk_size: int = DOWNLOAD_CHUNK_SIZE,
) -> TarballChecksums:
    """Stream a tarball and compute its checksums without storing it.

    Args:
        client: HTTPX client instance.
        url: Tarball URL.
        timeout: Download timeout in seconds.
        chunk_size: Size of chunks to download.

    Returns:
        TarballChecksums with hex digests and size.

    Raises:
        DownloadError: If the download fails.
    """
    logger.info("Downloading %s", url)

    try:
        with client.stream(
            "GET", url, timeout=timeout, follow_redirects=True
        ) as response:
            response.raise_for_status()

            total_bytes = 0
            sha256 = hashlib.sha256()
            sha512 = hashlib.sha512()

            for chunk in response.iter_bytes(chunk_size):
                sha256.update(chunk)
                sha512.update(chunk)
                total_bytes += len(chunk)

    except httpx.HTTPStatusError as e:
        raise DownloadError(
            f"HTTP error downloading {url}: {e.response.status_code} {e.response.reason_phrase}",
            code="http_error",
        ) from e
    except httpx.TimeoutException as e:
        raise DownloadError(
            f"Timeout downloading {url}",
            code="timeout",
        ) from e
    except httpx.RequestError as e:
        raise DownloadError(
            f"Network error downloading {url}: {e}",
            code="network_error",
        ) from e

    checksums = TarballChecksums(
        sha256=sha256.hexdigest(),
        sha512=sha512.hexdigest(),
        size_bytes=total_bytes,
    )
    logger.info(
        "Downloaded %d bytes (sha256: %s)",
        total_bytes,
        checksums.sha256[:16] + "...",
    )
    return checksums


def update_pkgfile_text(text: str, commit: str, sha256: str, sha512: str) -> str:
    """Pin the kernel commit and checksums in Pkgfile content.

    A ``linux_version`` line is replaced by ``linux_ref`` so the package
    fetches by commit; an existing ``linux_ref`` is updated in place.
    """
    if not _REF_LINE.search(text):
        logger.warning("No linux_version/linux_ref line found in Pkgfile")
    text = _REF_LINE.sub(lambda m: f"{m.group(1)}linux_ref: {commit}", text)
    text = _SHA256_LINE.sub(lambda m: f"{m.group(1)}linux_sha256: {sha256}", text)
    text = _SHA512_LINE.sub(lambda m: f"{m.group(1)}linux_sha512: {sha512}", text)
    return text


def update_pkg_yaml_text(
    text: str, repository: str = DEFAULT_REPOSITORY
) -> tuple[str, bool]:
    """Switch the kernel prepare step from kernel.org to the GitHub tarball.

    Returns:
        Tuple of (new text, whether anything changed). Content already
        using the GitHub source is returned unchanged.
    """
    if "cdn.kernel.org" not in text:
        return text, False

    source_url = '"' + build_tarball_url(repository, GITHUB_SOURCE_TEMPLATE) + '"'
    updated = _CDN_URL_LINE.sub(lambda m: f"{m.group(1)}url: {source_url}", text)
    updated = updated.replace("destination: linux.tar.xz", "destination: linux.tar.gz")
    updated = updated.replace("tar -xJf linux.tar.xz", "tar -xzf linux.tar.gz")
    return updated, updated != text


def update_kernel(
    ref: str,
    pkgs_dir: Path,
    client: httpx.Client,
    repository: str = DEFAULT_REPOSITORY,
    api_base: str = GITHUB_API_URL,
    timeout: float = DOWNLOAD_TIMEOUT,
) -> KernelUpdateResult:
    """Pin the kernel package to a branch or tag of the kernel repository.

    Args:
        ref: Branch or tag name.
        pkgs_dir: Checkout of the kernel packages repository.
        client: HTTPX client instance.
        repository: GitHub 'owner/name' repository.
        api_base: GitHub REST API base URL.
        timeout: Download timeout in seconds.

    Returns:
        KernelUpdateResult describing the update.

    Raises:
        MissingBaselineError: If Pkgfile or pkg.yaml is missing.
        KernelRefNotFoundError: If the ref cannot be resolved.
        DownloadError: If a request fails.
    """
    pkgfile_path = pkgs_dir / PKGFILE_NAME
    pkg_yaml_path = pkgs_dir / PKG_YAML_PATH
    for path in (pkgfile_path, pkg_yaml_path):
        if not path.is_file():
            raise MissingBaselineError(path)

    commit = resolve_kernel_ref(client, ref, repository=repository, api_base=api_base)
    tarball_url = build_tarball_url(repository, commit)
    checksums = compute_tarball_checksums(client, tarball_url, timeout=timeout)

    pkgfile_text = update_pkgfile_text(
        read_baseline(pkgfile_path), commit, checksums.sha256, checksums.sha512
    )
    pkg_yaml_text, pkg_yaml_changed = update_pkg_yaml_text(
        read_baseline(pkg_yaml_path), repository
    )

    backups = [backup_file(pkgfile_path), backup_file(pkg_yaml_path)]

    atomic_write_text(pkgfile_path, pkgfile_text)
    logger.info("Updated %s to %s", pkgfile_path, commit)

    if pkg_yaml_changed:
        atomic_write_text(pkg_yaml_path, pkg_yaml_text)
        logger.info("Switched %s to the GitHub tarball source", pkg_yaml_path)
    else:
        logger.info("%s already uses the GitHub tarball source", pkg_yaml_path)

    return KernelUpdateResult(
        ref=ref,
        commit=commit,
        tarball_url=tarball_url,
        checksums=checksums,
        pkgfile_path=pkgfile_path,
        pkg_yaml_path=pkg_yaml_path,
        pkg_yaml_changed=pkg_yaml_changed,
        backups=backups,
    )


__all__ = [
    "DownloadError",
    "KernelRefNotFoundError",
    "KernelUpdateResult",
    "TarballChecksums",
    "build_tarball_url",
    "compute_tarball_checksums",
    "resolve_kernel_ref",
    "update_kernel",
    "update_pkg_yaml_text",
    "update_pkgfile_text",
]
