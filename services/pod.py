"""
Pod 관련 비즈니스 로직
워크로드별 대표 상태 집계, 상세 조회, 이벤트, 로그, 메트릭 조회
"""
import logging
from typing import Dict, List, Optional

from kubernetes.client.rest import ApiException

from core.config import settings
from core.exceptions import ClusterMutationError, ControlPlaneError
from core.kubernetes import KubeClients
from models.pod import (
    WorkloadStatus,
    WorkloadDetail,
    PodEvent,
    PodMetrics,
    PodLogsResponse,
)
from utils.helpers import format_age
from utils.resources import parse_cpu, parse_memory

logger = logging.getLogger(__name__)

# Waiting reason 우선순위 (높을수록 우선)
WAITING_PRIORITY = {
    "ErrImagePull": 6,
    "ImagePullBackOff": 6,
    "CrashLoopBackOff": 5,
    "CreateContainerConfigError": 4,
    "CreateContainerError": 4,
    "ContainerCreating": 3,
}
DEFAULT_WAITING_PRIORITY = 1
MIGRATING_PRIORITY = 7
TERMINATED_PRIORITY = 10
MIGRATION_KEYWORDS = ("migration", "migrate", "init", "flyway", "liquibase")


def _waiting_reason(waiting):
    reason = waiting.reason or ""
    message = waiting.message or ""
    priority = WAITING_PRIORITY.get(reason, DEFAULT_WAITING_PRIORITY)

    if reason == "ContainerCreating" and any(k in message.lower() for k in MIGRATION_KEYWORDS):
        return "Migrating", MIGRATING_PRIORITY

    if message:
        return f"{reason} ({message})", priority
    return reason, priority


def _terminated_reason(terminated) -> str:
    if terminated.reason:
        return terminated.reason
    if terminated.signal:
        return f"Signal:{terminated.signal}"
    return f"ExitCode:{terminated.exit_code}"


def summarize_pod_status(pod) -> str:
    """Pod 하나의 사람이 읽을 수 있는 상태

    우선순위:
    1. deletionTimestamp -> "Terminating"
    2. 컨테이너 상태 중 가장 높은 우선순위
       - Terminated (10) > Migrating (7) > 이미지 pull 실패 (6) > CrashLoopBackOff (5)
         > 컨테이너 생성 오류 (4) > ContainerCreating (3) > 기타 Waiting (1)
       - 메시지가 있으면 "reason (message)" (Migrating 제외)
    3. Pod phase (PodInitializing -> Initializing)
    """
    if pod.metadata.deletion_timestamp is not None:
        return "Terminating"

    status = ""
    worst_priority = 0
    for cs in (pod.status.container_statuses or []) if pod.status else []:
        state = cs.state
        if state is None:
            continue

        if state.waiting is not None:
            reason, priority = _waiting_reason(state.waiting)
            if priority > worst_priority:
                worst_priority = priority
                status = reason

        # Terminated 는 뒤에 나온 컨테이너가 앞의 결과를 덮어쓴다
        if state.terminated is not None:
            status = _terminated_reason(state.terminated)
            worst_priority = TERMINATED_PRIORITY

    if status:
        return status

    phase = (pod.status.phase if pod.status else None) or ""
    if phase == "PodInitializing":
        return "Initializing"
    return phase


def _ready_and_restarts(pod):
    statuses = (pod.status.container_statuses or []) if pod.status else []
    total = len(pod.spec.containers or []) if pod.spec else 0
    ready = sum(1 for cs in statuses if cs.ready)
    restarts = sum(cs.restart_count or 0 for cs in statuses)
    return f"{ready}/{total}", restarts


def pod_to_status(pod) -> WorkloadStatus:
    ready, restarts = _ready_and_restarts(pod)
    return WorkloadStatus(
        name=pod.metadata.name,
        ready=ready,
        status=summarize_pod_status(pod),
        restarts=restarts,
        age=format_age(pod.metadata.creation_timestamp),
    )


def select_representatives(pods) -> List[WorkloadStatus]:
    """app 라벨(없으면 Pod 이름)로 묶고, 묶음마다 Running Pod 하나(없으면 첫 Pod)를 선택"""
    groups: Dict[str, List[WorkloadStatus]] = {}
    for pod in pods:
        labels = pod.metadata.labels or {}
        key = labels.get("app") or pod.metadata.name
        groups.setdefault(key, []).append(pod_to_status(pod))

    result = []
    for statuses in groups.values():
        running = next((s for s in statuses if s.status == "Running"), None)
        result.append(running or statuses[0])
    return result


def _list_pods(kube: KubeClients, namespace: str, label_selector: Optional[str] = None):
    try:
        if label_selector:
            return kube.core_v1.list_namespaced_pod(namespace, label_selector=label_selector).items
        return kube.core_v1.list_namespaced_pod(namespace).items
    except ApiException as e:
        logger.error(f"Failed to list pods in {namespace}: {e}")
        raise ClusterMutationError(f"error getting pods: {e.reason}") from e


def list_workloads(kube: KubeClients, namespace: str) -> List[WorkloadStatus]:
    """네임스페이스의 워크로드별 대표 상태 목록"""
    return select_representatives(_list_pods(kube, namespace))


def get_workload_detail(kube: KubeClients, namespace: str, app: str) -> Optional[WorkloadDetail]:
    """app=<app> 라벨의 대표 Pod 상세. Pod 가 없으면 None"""
    pods = _list_pods(kube, namespace, label_selector=f"app={app}")
    if not pods:
        return None

    pod = next((p for p in pods if summarize_pod_status(p) == "Running"), pods[0])
    status = pod_to_status(pod)
    return WorkloadDetail(
        **status.model_dump(),
        pod_name=pod.metadata.name,
        namespace=namespace,
        node_name=pod.spec.node_name if pod.spec else None,
        pod_ip=pod.status.pod_ip if pod.status else None,
        images=[c.image for c in (pod.spec.containers or [])] if pod.spec else [],
        labels=pod.metadata.labels or {},
    )


def get_workload_events(kube: KubeClients, namespace: str, deployment_name: str) -> List[PodEvent]:
    """Deployment 에 속한 Pod 들의 이벤트"""
    try:
        deployment = kube.apps_v1.read_namespaced_deployment(deployment_name, namespace)
    except ApiException as e:
        if e.status == 404:
            raise ControlPlaneError(f"deployment {deployment_name} not found", status_code=404) from e
        raise ClusterMutationError(f"failed to get deployment: {e.reason}") from e

    match_labels = deployment.spec.selector.match_labels or {}
    selector = ",".join(f"{k}={v}" for k, v in match_labels.items())

    events = []
    for pod in _list_pods(kube, namespace, label_selector=selector):
        try:
            pod_events = kube.core_v1.list_namespaced_event(
                namespace, field_selector=f"involvedObject.name={pod.metadata.name}"
            ).items
        except ApiException as e:
            raise ClusterMutationError(
                f"failed to list events for pod {pod.metadata.name}: {e.reason}"
            ) from e

        for event in pod_events:
            events.append(PodEvent(
                pod=pod.metadata.name,
                type=event.type or "",
                reason=event.reason or "",
                message=event.message or "",
                count=event.count or 0,
                last_timestamp=event.last_timestamp.isoformat() if event.last_timestamp else None,
            ))
    return events


def get_workload_logs(kube: KubeClients, namespace: str, app: str,
                      tail_lines: Optional[int] = None,
                      container: Optional[str] = None) -> PodLogsResponse:
    """app=<app> 라벨의 첫 Pod 로그 (기본 마지막 200줄)"""
    pods = _list_pods(kube, namespace, label_selector=f"app={app}")
    if not pods:
        raise ControlPlaneError(f"no pods found for {app}", status_code=404)

    pod_name = pods[0].metadata.name
    kwargs = {"tail_lines": tail_lines or settings.DEFAULT_LOG_TAIL_LINES}
    if container:
        kwargs["container"] = container
    try:
        logs = kube.core_v1.read_namespaced_pod_log(pod_name, namespace, **kwargs)
    except ApiException as e:
        raise ClusterMutationError(f"failed to read logs for pod {pod_name}: {e.reason}") from e

    return PodLogsResponse(
        pod_name=pod_name,
        namespace=namespace,
        lines=(logs or "").splitlines(),
    )


def get_pod_metrics(kube: KubeClients, namespace: str) -> List[PodMetrics]:
    """metrics.k8s.io 에서 네임스페이스 Pod 사용량 조회"""
    try:
        metrics = kube.custom.list_namespaced_custom_object(
            group="metrics.k8s.io",
            version="v1beta1",
            namespace=namespace,
            plural="pods",
        )
    except ApiException as e:
        logger.warning(f"Metrics API unavailable for {namespace}: {e.reason}")
        raise ControlPlaneError(f"failed to get pod metrics: {e.reason}", status_code=503) from e

    result = []
    for item in metrics.get("items", []):
        containers = item.get("containers", [])
        result.append(PodMetrics(
            pod_name=item["metadata"]["name"],
            cpu_usage=sum(parse_cpu(c.get("usage", {}).get("cpu", "0")) for c in containers),
            memory_usage=sum(parse_memory(c.get("usage", {}).get("memory", "0")) for c in containers),
        ))
    return result


__all__ = [
    "summarize_pod_status",
    "select_representatives",
    "list_workloads",
    "get_workload_detail",
    "get_workload_events",
    "get_workload_logs",
    "get_pod_metrics",
]
