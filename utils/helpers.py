"""
Utility helper functions
번들 다운로드, zip 압축 해제, 아티팩트 복사, 표시용 포맷 변환
"""
import logging
import os
import shutil
import zipfile
from datetime import datetime, timezone
from typing import Iterable, List, Optional

import httpx

logger = logging.getLogger(__name__)


class DownloadError(Exception):
    """다운로드 응답이 200이 아님"""


def download_file(url: str, dest_path: str, timeout: float = 60.0) -> str:
    """URL의 내용을 dest_path에 저장"""
    with httpx.stream("GET", url, timeout=timeout, follow_redirects=True) as response:
        if response.status_code != 200:
            raise DownloadError(f"bad status: {response.status_code} {response.reason_phrase}")
        with open(dest_path, "wb") as out:
            for chunk in response.iter_bytes():
                out.write(chunk)
    logger.info(f"Downloaded {url} -> {dest_path}")
    return dest_path


def extract_zip(zip_path: str, dest_dir: str) -> List[str]:
    """zip 파일을 dest_dir에 풀고 추출된 파일 경로 목록 반환

    dest_dir 밖을 가리키는 엔트리(zip slip)는 거부한다.
    """
    root = os.path.realpath(dest_dir)
    extracted = []
    os.makedirs(root, exist_ok=True)

    with zipfile.ZipFile(zip_path) as archive:
        for info in archive.infolist():
            target = os.path.realpath(os.path.join(root, info.filename))
            if not target.startswith(root + os.sep):
                raise ValueError(f"illegal file path: {info.filename}")

            if info.is_dir():
                os.makedirs(target, exist_ok=True)
                continue

            os.makedirs(os.path.dirname(target), exist_ok=True)
            with archive.open(info) as src, open(target, "wb") as out:
                shutil.copyfileobj(src, out)
            extracted.append(target)

    return extracted


def copy_all_artifacts(src: str, dst: str) -> bool:
    """디렉터리 전체 복사"""
    if not os.path.isdir(src):
        raise FileNotFoundError(f"source directory does not exist: {src}")
    shutil.copytree(src, dst, dirs_exist_ok=True)
    return True


def copy_selected_artifacts(src: str, dst: str, workdir: str, selected: Iterable[str]) -> bool:
    """선택한 아티팩트만 dst/<workdir>/ 아래로 복사

    셸 스크립트는 dependency.sh 로 이름을 바꿔 복사한다.
    """
    if not os.path.isdir(src):
        raise FileNotFoundError(f"source directory does not exist: {src}")

    prefixes = [p for p in selected if p]
    copied = False
    for dirpath, _, filenames in os.walk(src):
        for filename in filenames:
            path = os.path.join(dirpath, filename)
            rel_path = os.path.relpath(path, src)
            if not any(rel_path.startswith(prefix) for prefix in prefixes):
                continue

            new_name = os.path.join(workdir, rel_path)
            if os.path.splitext(rel_path)[1] == ".sh":
                new_name = os.path.join(workdir, "dependency.sh")
            dest_path = os.path.join(dst, new_name)
            os.makedirs(os.path.dirname(dest_path), exist_ok=True)
            shutil.copy2(path, dest_path)
            copied = True

    return copied


def list_folder_names(path: str) -> List[str]:
    """path 바로 아래의 디렉터리 이름 목록"""
    return sorted(
        entry.name for entry in os.scandir(path) if entry.is_dir()
    )


def format_age(created: Optional[datetime], now: Optional[datetime] = None) -> str:
    """생성 시각으로부터 경과 시간을 kubectl 스타일로 표시 (예: 3d, 5h, 12m, 40s)"""
    if created is None:
        return ""
    now = now or datetime.now(timezone.utc)
    if created.tzinfo is None:
        created = created.replace(tzinfo=timezone.utc)

    seconds = max(int((now - created).total_seconds()), 0)
    if seconds >= 86400:
        return f"{seconds // 86400}d"
    if seconds >= 3600:
        return f"{seconds // 3600}h"
    if seconds >= 60:
        return f"{seconds // 60}m"
    return f"{seconds}s"


def sanitize_name(name: str) -> str:
    """리소스 이름에 쓸 수 없는 '.' 을 '-' 로 치환"""
    return name.replace(".", "-")
