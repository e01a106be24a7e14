"""
Admission controller
요청한 CPU / 메모리 / GPU 를 만족하는 노드가 하나라도 있는지 차원별로 독립적으로 검사한다.

세 차원이 같은 노드에 동시에 들어가는지는 검사하지 않는다.
"""
import logging

from core.exceptions import InvalidResourceRequestError, ResourceUnavailableError
from core.kubernetes import KubeClients
from models.resources import ResourceAsk
from services.capacity import get_remaining_node_resources
from utils.resources import GIB, parse_cpu_cores, parse_memory_bytes, parse_gpu_count

logger = logging.getLogger(__name__)


def _parse(parser, value, dimension: str):
    try:
        return parser(value)
    except ValueError as e:
        raise InvalidResourceRequestError(f"invalid {dimension} request: {value!r}") from e


def check_cpu_availability(kube: KubeClients, cpu_request) -> bool:
    """남은 CPU(코어) >= 요청인 노드가 있으면 True

    Raises:
        ResourceUnavailableError: 만족하는 노드가 없을 때
        CapacityQueryError: 클러스터 조회 실패 시
    """
    requested = _parse(parse_cpu_cores, cpu_request, "cpu")
    for node in get_remaining_node_resources(kube).values():
        if node.cpu >= requested:
            return True
    logger.warning(f"CPU request {cpu_request} does not fit on any node")
    raise ResourceUnavailableError("the requested CPU resources are not available")


def check_memory_availability(kube: KubeClients, memory_request) -> bool:
    """남은 메모리 >= 요청인 노드가 있으면 True"""
    requested = _parse(parse_memory_bytes, memory_request, "memory")
    for node in get_remaining_node_resources(kube).values():
        if node.memory * GIB >= requested:
            return True
    logger.warning(f"Memory request {memory_request} does not fit on any node")
    raise ResourceUnavailableError("the requested memory resources are not available")


def check_gpu_availability(kube: KubeClients, gpu_request) -> bool:
    """남은 GPU >= 요청인 노드가 있으면 True. 요청이 0 이면 조회 없이 통과"""
    requested = _parse(parse_gpu_count, gpu_request, "gpu")
    if requested == 0:
        return True
    for node in get_remaining_node_resources(kube).values():
        if node.gpu >= requested:
            return True
    logger.warning(f"GPU request {gpu_request} does not fit on any node")
    raise ResourceUnavailableError("the requested GPU resources are not available")


def admit(kube: KubeClients, ask: ResourceAsk, order=("gpu", "memory", "cpu")) -> None:
    """요청의 모든 차원을 지정한 순서로 검사. 처음 실패한 차원에서 예외 발생"""
    checks = {
        "cpu": lambda: check_cpu_availability(kube, ask.cpu_request),
        "memory": lambda: check_memory_availability(kube, ask.memory_request),
        "gpu": lambda: check_gpu_availability(kube, ask.gpu_request or "0"),
    }
    for dimension in order:
        checks[dimension]()


__all__ = [
    'check_cpu_availability',
    'check_memory_availability',
    'check_gpu_availability',
    'admit',
]
