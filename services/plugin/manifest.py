"""
플러그인 번들의 manifest.yaml 탐색, 파싱, 검증
"""
import hashlib
import logging
import os
from dataclasses import dataclass
from typing import Iterable

import yaml
from pydantic import ValidationError

from core.exceptions import ManifestValidationError
from models.plugin import PluginManifest

logger = logging.getLogger(__name__)

MANIFEST_FILENAMES = ("manifest.yaml", "manifest.yml")


@dataclass
class ManifestParseResult:
    manifest: PluginManifest
    path: str
    sha256: str
    raw: bytes


def validate_manifest(manifest: PluginManifest) -> None:
    """필수 필드 확인. 처음 누락된 필드에서 ManifestValidationError"""
    required = [
        ("engine_key", manifest.engine_key),
        ("name", manifest.name),
        ("version", manifest.version),
        ("docker.frontend.image", manifest.docker.frontend.image),
        ("docker.backend.image", manifest.docker.backend.image),
    ]
    for field, value in required:
        if not value:
            raise ManifestValidationError(f"manifest validation failed: {field} is required")


def parse_manifest(content: bytes) -> PluginManifest:
    try:
        data = yaml.safe_load(content) or {}
    except yaml.YAMLError as e:
        raise ManifestValidationError(f"parse manifest: {e}") from e
    if not isinstance(data, dict):
        raise ManifestValidationError("parse manifest: top level must be a mapping")
    try:
        return PluginManifest.model_validate(data)
    except ValidationError as e:
        raise ManifestValidationError(f"parse manifest: {e}") from e


def parse_manifest_from_files(files: Iterable[str]) -> ManifestParseResult:
    """추출된 파일 중 첫 manifest.yaml / manifest.yml 을 파싱

    sha256 은 파일 원본 바이트 기준
    """
    for path in files:
        if os.path.basename(path).lower() not in MANIFEST_FILENAMES:
            continue

        with open(path, "rb") as f:
            content = f.read()
        manifest = parse_manifest(content)
        validate_manifest(manifest)

        logger.info(f"Parsed plugin manifest {path} (engine_key={manifest.engine_key})")
        return ManifestParseResult(
            manifest=manifest,
            path=path,
            sha256=hashlib.sha256(content).hexdigest(),
            raw=content,
        )

    raise ManifestValidationError("manifest.yaml not found in plugin bundle")
