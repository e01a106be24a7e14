# Core module - configuration, kubernetes clients, exceptions
from .config import settings
from .kubernetes import KubeClients, create_k8s_clients, get_kube
from .exceptions import ControlPlaneError

# 환경 자동 감지 K8s 클라이언트 (로컬 개발 지원)
from utils.k8s_client import (
    is_running_in_cluster,
    get_environment_info,
)

__all__ = [
    'settings',
    'KubeClients',
    'create_k8s_clients',
    'get_kube',
    'ControlPlaneError',
    'is_running_in_cluster',
    'get_environment_info',
]
