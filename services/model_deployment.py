"""
모델 서빙 Deployment 라이프사이클 (namespace: model)
"""
import logging
import os
from typing import List, Optional

from core.config import settings
from core.exceptions import ClusterMutationError, InvalidResourceRequestError
from core.kubernetes import KubeClients
from models.pod import PodEvent, PodLogsResponse, PodMetrics, WorkloadDetail, WorkloadStatus
from models.resources import ResourceAsk
from models.workload import CreateModelDeploymentRequest, WorkloadResources
from services import cluster
from services.admission import admit
from services.pod import (
    get_pod_metrics,
    get_workload_detail,
    get_workload_events,
    get_workload_logs,
    list_workloads,
)
from services.specs import build_model_deployment, build_resources, env_vars
from utils.config import MODEL_PORT
from utils.helpers import copy_selected_artifacts, sanitize_name
from utils.resources import parse_whole_gpu

logger = logging.getLogger(__name__)


def model_pvc_name(deployment_name: str) -> str:
    return f"pvc-{deployment_name}"


def admit_deployment(kube: KubeClients, req: WorkloadResources) -> int:
    """모델/LLM 공통 admission (CPU -> GPU -> 메모리). 정수 GPU 개수 반환"""
    try:
        gpu = parse_whole_gpu(req.gpu_request)
    except ValueError as e:
        raise InvalidResourceRequestError(str(e)) from e

    admit(kube, ResourceAsk(
        cpu_request=req.cpu_request,
        memory_request=req.memory_request,
        gpu_request=str(gpu),
    ), order=("cpu", "gpu", "memory"))
    return gpu


def recreate_deployment(kube: KubeClients, namespace: str, name: str,
                        timeout: Optional[float] = None) -> bool:
    """같은 이름의 Deployment 가 있으면 삭제하고 사라질 때까지 대기"""
    return cluster.remove_existing(
        lambda: cluster.deployment_exists(kube, namespace, name),
        lambda: cluster.delete_deployment(kube, namespace, name),
        f"deployment {namespace}/{name}",
        timeout=timeout,
    )


def _copy_model_artifacts(req: CreateModelDeploymentRequest, deployment_name: str, version: str) -> None:
    src = os.path.join(
        settings.ARTIFACT_ROOT, "ModelRegistry", req.username, f"{req.model_name}-{version}"
    )
    dst = os.path.join(settings.ARTIFACT_ROOT, model_pvc_name(deployment_name))
    try:
        copied = copy_selected_artifacts(src, dst, f"{req.model_name}{version}", req.model_artifacts)
    except OSError as e:
        logger.error(f"Artifact copy failed for {deployment_name}: {e}")
        raise ClusterMutationError(f"copy artifacts failed: {e}") from e
    if not copied:
        raise ClusterMutationError("failed to copy model file")
    logger.info(f"Copied model artifacts {src} -> {dst}")


def create_model_deployment(kube: KubeClients, req: CreateModelDeploymentRequest,
                            timeout: Optional[float] = None) -> str:
    """모델 서빙 Deployment 생성

    1. admission
    2. namespace / PVC 준비, 선택한 아티팩트를 PVC 디렉터리로 복사
    3. 기존 Deployment 삭제 대기 후 Service / Deployment 생성

    Returns:
        str: 클러스터 내부 추론 주소 (http://<name>.model)
    """
    gpu = admit_deployment(kube, req)
    namespace = settings.MODEL_NAMESPACE
    name = sanitize_name(req.deployment_name)
    version = sanitize_name(req.version)
    pvc_name = model_pvc_name(name)

    env = env_vars({
        "MODELNAME": req.model_name,
        "VERSION": version,
        "MY_WORKDIR": f"{req.model_name}{version}",
    })

    cluster.create_namespace(kube, namespace)
    resources = build_resources(req.cpu_request, req.memory_request, req.cpu_limit, req.memory_limit)
    cluster.ensure_pvc(kube, namespace, pvc_name, req.disk_storage)
    _copy_model_artifacts(req, name, version)

    recreate_deployment(kube, namespace, name, timeout=timeout)
    cluster.ensure_service(kube, namespace, name, name, MODEL_PORT)
    deployment = build_model_deployment(
        name, settings.MODEL_DEPLOYMENT_IMAGE, pvc_name, MODEL_PORT, resources, env,
        gpu=gpu, node_selector=req.node_selector,
    )
    cluster.create_deployment(kube, namespace, deployment)

    logger.info(f"Model deployment {name} created")
    return f"http://{name}.{namespace}"


def delete_model_deployment(kube: KubeClients, deployment_name: str) -> None:
    """Deployment, Service, 전용 PVC 삭제"""
    namespace = settings.MODEL_NAMESPACE
    name = sanitize_name(deployment_name)
    cluster.delete_deployment(kube, namespace, name)
    cluster.delete_service(kube, namespace, name)
    cluster.delete_pvc(kube, namespace, model_pvc_name(name))
    logger.info(f"Model deployment {name} deleted")


def list_model_deployments(kube: KubeClients) -> List[WorkloadStatus]:
    return list_workloads(kube, settings.MODEL_NAMESPACE)


def get_model_deployment(kube: KubeClients, deployment_name: str) -> Optional[WorkloadDetail]:
    return get_workload_detail(kube, settings.MODEL_NAMESPACE, deployment_name)


def describe_model_deployment(kube: KubeClients, deployment_name: str) -> List[PodEvent]:
    return get_workload_events(kube, settings.MODEL_NAMESPACE, deployment_name)


def get_model_deployment_logs(kube: KubeClients, deployment_name: str,
                              tail_lines: Optional[int] = None) -> PodLogsResponse:
    return get_workload_logs(kube, settings.MODEL_NAMESPACE, deployment_name, tail_lines=tail_lines)


def get_model_metrics(kube: KubeClients) -> List[PodMetrics]:
    return get_pod_metrics(kube, settings.MODEL_NAMESPACE)
