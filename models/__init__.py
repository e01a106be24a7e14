# Pydantic models
from .common import APIResponse, api_response
from .resources import NodeResources, ClusterNodeResources, ResourceAsk
from .workload import (
    WorkloadResources, CreateLabRequest, CreateModelDeploymentRequest, CreateLlmDeploymentRequest
)
from .pod import WorkloadStatus, WorkloadDetail, PodEvent, PodMetrics, PodLogsResponse
from .plugin import (
    PluginManifest, PluginInstallRequest, PluginUpdateRequest, PluginRollbackRequest,
    PluginInstallResponse, DatabaseCredentials, PluginRecord
)

__all__ = [
    # Common
    'APIResponse', 'api_response',
    # Resources
    'NodeResources', 'ClusterNodeResources', 'ResourceAsk',
    # Workloads
    'WorkloadResources', 'CreateLabRequest', 'CreateModelDeploymentRequest',
    'CreateLlmDeploymentRequest',
    # Pods
    'WorkloadStatus', 'WorkloadDetail', 'PodEvent', 'PodMetrics', 'PodLogsResponse',
    # Plugins
    'PluginManifest', 'PluginInstallRequest', 'PluginUpdateRequest', 'PluginRollbackRequest',
    'PluginInstallResponse', 'DatabaseCredentials', 'PluginRecord',
]
