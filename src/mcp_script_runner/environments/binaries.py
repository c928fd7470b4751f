"""Micromamba binary download and removal."""

import os
import shutil
import stat
import tarfile
import tempfile
from pathlib import Path
from typing import List, Optional

import aiohttp

from mcp_script_runner.constants import MICROMAMBA_URL
from mcp_script_runner.environments.platforms import get_platform_info
from mcp_script_runner.logging import get_logger
from mcp_script_runner.types import RunnerConfig

logger = get_logger(__name__)

ARCHIVE_NAME = "micromamba.tar.bz2"


def get_download_url(version: str = "latest", mamba_platform: Optional[str] = None) -> str:
    """Build the micromamba release URL for a platform."""
    mamba_platform = mamba_platform or get_platform_info().mamba_platform
    return MICROMAMBA_URL.format(platform=mamba_platform, version=version)


async def download_file(url: str, dest: Path) -> None:
    """Download a file with streaming."""
    try:
        async with aiohttp.ClientSession() as session:
            logger.info({"event": "binary_download_start", "url": url, "dest": str(dest)})

            async with session.get(url, allow_redirects=True) as response:
                if response.status != 200:
                    logger.error(
                        {
                            "event": "binary_download_status",
                            "url": url,
                            "status": response.status,
                            "reason": response.reason,
                        }
                    )
                    response.raise_for_status()

                downloaded = 0
                with open(dest, "wb") as f:
                    async for chunk in response.content.iter_chunked(8192):
                        f.write(chunk)
                        downloaded += len(chunk)

                logger.info({"event": "binary_download_complete", "url": url, "size": downloaded})

    except aiohttp.ClientError as e:
        if dest.exists():
            dest.unlink()
        logger.error({"event": "binary_download_failed", "url": url, "error": str(e)})
        raise ValueError(f"Failed to download from {url}") from e


def get_archive_files(archive: tarfile.TarFile) -> List[str]:
    """List member names of a tar archive."""
    try:
        return archive.getnames()
    except tarfile.TarError as e:
        logger.error({"event": "list_archive_failed", "error": str(e)})
        raise ValueError("Failed to read archive") from e


def extract_binary(archive_path: Path, member: str, dest: Path) -> Path:
    """Extract a single archive member to ``dest`` and make it executable."""
    try:
        with tarfile.open(archive_path) as archive:
            names = get_archive_files(archive)
            matching = [n for n in names if n == member or n.endswith(f"/{member}")]
            if not matching:
                logger.error(
                    {
                        "event": "binary_not_in_archive",
                        "archive": str(archive_path),
                        "member": member,
                        "available": names,
                    }
                )
                raise ValueError(f"Binary {member} not found in archive")

            source = archive.extractfile(matching[0])
            if source is None:
                raise ValueError(f"Archive member {matching[0]} is not a regular file")

            dest.parent.mkdir(parents=True, exist_ok=True)
            with source, open(dest, "wb") as f:
                shutil.copyfileobj(source, f)

    except tarfile.TarError as e:
        logger.error({"event": "extract_failed", "archive": str(archive_path), "error": str(e)})
        raise ValueError(f"Failed to extract from {archive_path.name}") from e

    mode = dest.stat().st_mode
    dest.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)

    logger.info({"event": "binary_extracted", "member": member, "path": str(dest)})
    return dest


async def fetch_micromamba(config: RunnerConfig, version: str = "latest") -> Path:
    """Ensure the micromamba binary exists under the configured root prefix."""
    target = config.binary_path
    if target.exists():
        logger.debug({"event": "binary_present", "path": str(target)})
        return target

    info = get_platform_info()
    url = get_download_url(version, info.mamba_platform)

    with tempfile.TemporaryDirectory() as tmpdir:
        archive_path = Path(tmpdir) / ARCHIVE_NAME
        await download_file(url, archive_path)

        if not archive_path.exists() or archive_path.stat().st_size == 0:
            raise ValueError("Download failed - archive is missing or empty")

        return extract_binary(archive_path, info.binary_member, target)


def remove_micromamba(config: RunnerConfig) -> bool:
    """Delete the micromamba binary. True once it is gone."""
    target = config.binary_path
    try:
        if target.exists():
            os.remove(target)
            logger.info({"event": "binary_removed", "path": str(target)})
    except OSError as e:
        logger.error({"event": "binary_remove_failed", "path": str(target), "error": str(e)})
        return False
    return not target.exists()
