"""
노드 용량 스냅샷
노드별 allocatable 에서 스케줄된 Pod 의 requests 합계를 뺀 남은 용량을 계산한다. (읽기 전용)
"""
import logging
from decimal import Decimal
from typing import Dict, List, Tuple

from kubernetes.client.rest import ApiException

from core.config import settings
from core.exceptions import CapacityQueryError
from core.kubernetes import KubeClients
from models.resources import NodeResources, ClusterNodeResources
from utils.config import (
    VENDOR_CONFIGS,
    VENDOR_NODE_LABELS,
    VENDOR_PROVIDER_PREFIXES,
    NODE_SELECTOR_KEY,
)
from utils.resources import (
    parse_cpu_cores,
    parse_memory_bytes,
    parse_gpu_count,
    whole_cores,
    whole_gib,
)

logger = logging.getLogger(__name__)

# 종료된 Pod 는 노드 용량을 점유하지 않는다
ACTIVE_POD_SELECTOR = "status.phase!=Succeeded,status.phase!=Failed"


def detect_cluster_vendor(nodes) -> str:
    """노드 라벨 / providerID 로 클러스터 벤더 판별 (eks, gke, aks, minikube, generic)"""
    for node in nodes:
        labels = node.metadata.labels or {}
        for label, vendor in VENDOR_NODE_LABELS:
            if label in labels:
                return vendor

        provider_id = (node.spec.provider_id if node.spec else None) or ""
        for prefix, vendor in VENDOR_PROVIDER_PREFIXES:
            if provider_id.startswith(prefix):
                return vendor

    return "generic"


def _node_ip(node) -> str:
    for address in (node.status.addresses or []) if node.status else []:
        if address.type == "InternalIP":
            return address.address
    return node.metadata.name


def _node_meta(node, vendor_config: dict) -> dict:
    labels = node.metadata.labels or {}
    return {
        "instance_type": labels.get(vendor_config["instance_type_label"], ""),
        "capacity_type": labels.get(vendor_config["capacity_type_label"], ""),
        "node_group": labels.get(vendor_config["node_group_label"], ""),
        "type": labels.get(NODE_SELECTOR_KEY, ""),
        "ip": _node_ip(node),
    }


def _allocatable(node) -> Tuple[Decimal, Decimal, Decimal]:
    allocatable = (node.status.allocatable if node.status else None) or {}
    return (
        parse_cpu_cores(allocatable.get("cpu")),
        parse_memory_bytes(allocatable.get("memory")),
        parse_gpu_count(allocatable.get(settings.GPU_RESOURCE_NAME)),
    )


def _requested_by_node(pods) -> Dict[str, List[Decimal]]:
    """노드 이름 -> [cpu 코어, 메모리 바이트, gpu] requests 합계"""
    used: Dict[str, List[Decimal]] = {}
    for pod in pods:
        node_name = pod.spec.node_name if pod.spec else None
        if not node_name:
            continue
        totals = used.setdefault(node_name, [Decimal(0), Decimal(0), Decimal(0)])
        for container in pod.spec.containers or []:
            requests = (container.resources.requests if container.resources else None) or {}
            totals[0] += parse_cpu_cores(requests.get("cpu"))
            totals[1] += parse_memory_bytes(requests.get("memory"))
            totals[2] += parse_gpu_count(requests.get(settings.GPU_RESOURCE_NAME))
    return used


def _read_cluster(kube: KubeClients):
    try:
        nodes = kube.core_v1.list_node().items
        pods = kube.core_v1.list_pod_for_all_namespaces(
            field_selector=ACTIVE_POD_SELECTOR
        ).items
    except ApiException as e:
        logger.error(f"Failed to read nodes/pods for capacity snapshot: {e}")
        raise CapacityQueryError(f"failed to query cluster capacity: {e.reason}") from e
    return nodes, pods


def get_remaining_node_resources(kube: KubeClients) -> Dict[str, NodeResources]:
    """노드별 남은 용량 (allocatable - requested)

    Returns:
        dict: "node_1", "node_2", ... -> NodeResources
            cpu 는 코어, memory 는 GiB 단위로 내림. 과할당 노드는 음수.

    Raises:
        CapacityQueryError: 노드/Pod 조회 실패 시
    """
    nodes, pods = _read_cluster(kube)
    vendor_config = VENDOR_CONFIGS[detect_cluster_vendor(nodes)]
    used = _requested_by_node(pods)

    snapshot = {}
    for i, node in enumerate(nodes):
        cpu, memory, gpu = _allocatable(node)
        used_cpu, used_memory, used_gpu = used.get(
            node.metadata.name, [Decimal(0), Decimal(0), Decimal(0)]
        )
        snapshot[f"node_{i + 1}"] = NodeResources(
            name=node.metadata.name,
            cpu=whole_cores(cpu - used_cpu),
            memory=whole_gib(memory - used_memory),
            gpu=int(gpu - used_gpu),
            **_node_meta(node, vendor_config),
        )
    return snapshot


def get_node_total_resources(kube: KubeClients) -> Dict[str, NodeResources]:
    """노드별 전체 allocatable 용량"""
    nodes, _ = _read_cluster(kube)
    vendor_config = VENDOR_CONFIGS[detect_cluster_vendor(nodes)]

    totals = {}
    for i, node in enumerate(nodes):
        cpu, memory, gpu = _allocatable(node)
        totals[f"node_{i + 1}"] = NodeResources(
            name=node.metadata.name,
            cpu=whole_cores(cpu),
            memory=whole_gib(memory),
            gpu=int(gpu),
            **_node_meta(node, vendor_config),
        )
    return totals


def get_cluster_node_resources(kube: KubeClients) -> List[ClusterNodeResources]:
    """노드별 전체 용량과 가용 용량을 함께 반환"""
    nodes, pods = _read_cluster(kube)
    vendor_config = VENDOR_CONFIGS[detect_cluster_vendor(nodes)]
    used = _requested_by_node(pods)

    result = []
    for node in nodes:
        cpu, memory, gpu = _allocatable(node)
        used_cpu, used_memory, used_gpu = used.get(
            node.metadata.name, [Decimal(0), Decimal(0), Decimal(0)]
        )
        meta = _node_meta(node, vendor_config)
        result.append(ClusterNodeResources(
            name=node.metadata.name,
            cpu=whole_cores(cpu),
            memory=whole_gib(memory),
            gpu=int(gpu),
            available_cpu=whole_cores(cpu - used_cpu),
            available_memory=whole_gib(memory - used_memory),
            available_gpu=int(gpu - used_gpu),
            machine=meta["instance_type"],
            capacity_type=meta["capacity_type"],
            node_pool=meta["node_group"],
            type=meta["type"],
            node_ip=meta["ip"],
        ))
    return result


__all__ = [
    'detect_cluster_vendor',
    'get_remaining_node_resources',
    'get_node_total_resources',
    'get_cluster_node_resources',
]
