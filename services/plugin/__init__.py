# 플러그인 설치 / 제거
from typing import List

from core.config import settings
from core.kubernetes import KubeClients
from models.pod import WorkloadStatus
from services.pod import list_workloads

from .installer import PluginInstaller, InstallOperation, RollbackStack
from .manifest import parse_manifest_from_files, validate_manifest
from .registry import list_plugin_records, load_plugin_record


def list_plugins(kube: KubeClients) -> List[WorkloadStatus]:
    """플러그인 네임스페이스의 워크로드 상태"""
    return list_workloads(kube, settings.PLUGIN_NAMESPACE)


__all__ = [
    'PluginInstaller',
    'InstallOperation',
    'RollbackStack',
    'parse_manifest_from_files',
    'validate_manifest',
    'list_plugin_records',
    'load_plugin_record',
    'list_plugins',
]
