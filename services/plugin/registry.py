"""
플러그인 레지스트리 (registry/<identifier>.json)
"""
import json
import logging
import os
import shutil
from typing import List

from pydantic import ValidationError

from core.config import settings
from core.exceptions import ControlPlaneError, PluginNotFoundError
from models.plugin import PluginRecord

logger = logging.getLogger(__name__)


def _check_identifier(identifier: str) -> None:
    if identifier in ("", ".", "..") or "/" in identifier or os.sep in identifier:
        raise ControlPlaneError(f"invalid plugin identifier: {identifier!r}", status_code=400)


def artifact_dir(identifier: str) -> str:
    """<PLUGIN_ARTIFACT_ROOT>/<identifier>

    레지스트리 디렉터리와 겹치는 경로는 거부한다.
    """
    _check_identifier(identifier)
    path = os.path.join(settings.PLUGIN_ARTIFACT_ROOT, identifier)
    resolved = os.path.realpath(path)
    registry = os.path.realpath(settings.PLUGIN_REGISTRY_DIR)
    if registry == resolved or registry.startswith(resolved + os.sep):
        raise ControlPlaneError(
            f"plugin identifier {identifier!r} collides with the registry directory",
            status_code=400,
        )
    return path


def record_path(identifier: str) -> str:
    _check_identifier(identifier)
    return os.path.join(settings.PLUGIN_REGISTRY_DIR, f"{identifier}.json")


def save_plugin_record(record: PluginRecord) -> str:
    os.makedirs(settings.PLUGIN_REGISTRY_DIR, exist_ok=True)
    path = record_path(record.identifier)
    with open(path, "w", encoding="utf-8") as f:
        f.write(record.model_dump_json(by_alias=True, indent=2))
    logger.info(f"Saved plugin record {path}")
    return path


def load_plugin_record(identifier: str) -> PluginRecord:
    path = record_path(identifier)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise PluginNotFoundError(f"plugin {identifier} not found in registry") from e
    except (OSError, ValueError) as e:
        raise ControlPlaneError(f"read plugin record: {e}") from e
    try:
        return PluginRecord.model_validate(data)
    except ValidationError as e:
        raise ControlPlaneError(f"invalid plugin record {path}: {e}") from e


def delete_plugin_record(identifier: str) -> None:
    try:
        os.remove(record_path(identifier))
    except FileNotFoundError:
        pass


def list_plugin_records() -> List[PluginRecord]:
    """레지스트리의 모든 기록. 읽을 수 없는 파일은 건너뜀"""
    if not os.path.isdir(settings.PLUGIN_REGISTRY_DIR):
        return []
    records = []
    for name in sorted(os.listdir(settings.PLUGIN_REGISTRY_DIR)):
        if not name.endswith(".json"):
            continue
        try:
            records.append(load_plugin_record(name[:-len(".json")]))
        except ControlPlaneError as e:
            logger.warning(f"Skipping plugin record {name}: {e.message}")
    return records


def remove_artifacts(identifier: str) -> None:
    path = artifact_dir(identifier)
    if os.path.exists(path):
        shutil.rmtree(path)
        logger.info(f"Removed plugin artifacts {path}")
