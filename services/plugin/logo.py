"""
플러그인 로고 처리
"""
import logging
import os
import shutil
import time
from typing import Optional, Tuple

import httpx

from core.config import settings
from core.exceptions import BundleError, ManifestValidationError
from models.plugin import PluginManifest
from utils.helpers import DownloadError, download_file

logger = logging.getLogger(__name__)


def _download_logo(url: str, artifact_dir: str) -> str:
    os.makedirs(artifact_dir, exist_ok=True)
    tmp_path = os.path.join(artifact_dir, f"logo-{time.time_ns()}.tmp")
    try:
        download_file(url, tmp_path, timeout=settings.DOWNLOAD_TIMEOUT_SECONDS)
    except (DownloadError, httpx.HTTPError) as e:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise BundleError(f"download logo: {e}") from e
    return tmp_path


def process_logo(manifest: PluginManifest, extract_dir: str,
                 artifact_dir: str) -> Tuple[str, Optional[str]]:
    """번들 안의 로고 (없으면 URL) 를 <artifact dir>/assets/logo<ext> 로 복사

    logo.path 는 번들 기준 상대 경로여야 한다. 기존 로고가 있으면 .bak-<ns> 로 옮겨 둔다.

    Returns:
        (새 로고 경로, 백업 경로). 로고가 없으면 ("", None)
    """
    source = None
    if manifest.logo.path:
        root = os.path.realpath(extract_dir)
        candidate = os.path.realpath(os.path.join(root, manifest.logo.path))
        # 번들 밖의 파일은 허용하지 않음
        if not candidate.startswith(root + os.sep):
            raise ManifestValidationError(f"illegal file path: {manifest.logo.path}")
        if os.path.isfile(candidate):
            source = candidate
        else:
            logger.warning(f"Logo {manifest.logo.path} not found in bundle")

    downloaded = None
    if source is None and manifest.logo.url:
        downloaded = _download_logo(manifest.logo.url, artifact_dir)
        source = downloaded

    if source is None:
        return "", None

    try:
        assets_dir = os.path.join(artifact_dir, "assets")
        os.makedirs(assets_dir, exist_ok=True)

        ext = os.path.splitext(source)[1].lower()
        if not ext or ext == ".tmp":
            ext = ".png"
        dest = os.path.join(assets_dir, f"logo{ext}")

        backup = None
        if os.path.exists(dest):
            backup = f"{dest}.bak-{time.time_ns()}"
            os.rename(dest, backup)

        shutil.copyfile(source, dest)
    finally:
        if downloaded is not None:
            os.remove(downloaded)

    logger.info(f"Stored plugin logo at {dest}")
    return dest, backup


def restore_logo_backup(new_path: str, backup_path: Optional[str]) -> None:
    """새 로고를 지우고 백업을 원래 위치로 되돌림"""
    if new_path and os.path.exists(new_path):
        os.remove(new_path)
    if backup_path:
        os.rename(backup_path, new_path)
        logger.info(f"Restored logo backup {backup_path}")
