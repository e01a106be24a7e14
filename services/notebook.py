"""
노트북(Labspace) 라이프사이클
사용자별 StatefulSet (단일 컨테이너 또는 코드서버 + ADK UI 듀얼 컨테이너), Service, Ingress 경로 관리
"""
import logging
from typing import List, Optional

from core.config import settings
from core.exceptions import InvalidResourceRequestError
from core.kubernetes import KubeClients
from models.pod import WorkloadDetail, WorkloadStatus, PodMetrics
from models.resources import ResourceAsk
from models.workload import CreateLabRequest
from services import cluster
from services.admission import admit
from services.pod import list_workloads, get_workload_detail, get_pod_metrics
from services.specs import (
    build_container,
    build_notebook_statefulset,
    build_resources,
    env_vars,
    notebook_volumes,
)
from utils.config import (
    NOTEBOOK_PORT,
    ADK_PORT,
    NOTEBOOK_SERVICE_PREFIX,
    ADK_SERVICE_PREFIX,
    ADK_INGRESS_FRONTEND_SUFFIX,
    ADK_INGRESS_BACKEND_SUFFIX,
    NOTEBOOK_PVC_PREFIX,
    NOTEBOOK_PVC_SUFFIX,
    LAB_TYPE_JUPYTERLAB,
    LAB_TYPE_CODESERVER,
    AI_TYPE_ML_MODEL,
    AI_TYPE_AGENT,
)
from utils.resources import parse_whole_gpu

logger = logging.getLogger(__name__)


def notebook_service_name(username: str) -> str:
    return f"{NOTEBOOK_SERVICE_PREFIX}{username}"


def adk_service_name(username: str) -> str:
    return f"{ADK_SERVICE_PREFIX}{username}"


def notebook_pvc_name(username: str) -> str:
    # volumeClaimTemplate "jl" + StatefulSet "<user>" + ordinal 0
    return f"{NOTEBOOK_PVC_PREFIX}{username}{NOTEBOOK_PVC_SUFFIX}"


def notebook_paths(username: str):
    """(기본 경로, ADK UI 경로, ADK 백엔드 경로)"""
    return (
        f"/{username}",
        f"/{username}{ADK_INGRESS_FRONTEND_SUFFIX}",
        f"/{username}{ADK_INGRESS_BACKEND_SUFFIX}",
    )


def _select_image(workspace_type: str) -> str:
    if workspace_type == LAB_TYPE_JUPYTERLAB:
        return settings.JUPYTERLAB_IMAGE
    if workspace_type != LAB_TYPE_CODESERVER:
        logger.warning(f"Unknown workspace type {workspace_type!r}, using code-server image")
    return settings.CODESERVER_IMAGE


def create_notebook(kube: KubeClients, req: CreateLabRequest, timeout: Optional[float] = None) -> str:
    """노트북 생성 (같은 사용자의 StatefulSet 이 있으면 삭제 후 재생성)

    Returns:
        str: 외부 접근 주소

    Raises:
        InvalidResourceRequestError, ResourceUnavailableError, CapacityQueryError,
        ClusterMutationError, WorkloadTimeoutError
    """
    username = req.username
    namespace = settings.LAB_NAMESPACE
    try:
        gpu = parse_whole_gpu(req.gpu_request)
    except ValueError as e:
        raise InvalidResourceRequestError(str(e)) from e

    admit(kube, ResourceAsk(
        cpu_request=req.cpu_request,
        memory_request=req.memory_request,
        gpu_request=str(gpu),
    ), order=("gpu", "memory", "cpu"))

    base_path, adk_ui_path, adk_api_path = notebook_paths(username)
    notebook_env = {
        "NOTEBOOK_USER": username,
        "PASSWORD": req.password,
        "GRANT_SUDO": "yes",
        "JUPYTER_ENABLE_LAB": "yes",
        "NB_UID": "1000",
        "NB_GID": "1000",
        "EXPERIMENT_NAME": username,
    }

    cluster.create_namespace(kube, namespace)
    service_name = notebook_service_name(username)
    cluster.ensure_service(kube, namespace, service_name, username, NOTEBOOK_PORT, "NodePort")
    resources = build_resources(req.cpu_request, req.memory_request, req.cpu_limit, req.memory_limit)
    volumes, mounts = notebook_volumes(gpu)

    agent = req.labspace_type == AI_TYPE_AGENT
    if agent:
        containers = [
            build_container(username, settings.AGENT_CODESERVER_IMAGE, NOTEBOOK_PORT,
                            mounts, env_vars(notebook_env)),
            build_container("adk", settings.ADK_UI_IMAGE, ADK_PORT, mounts, env_vars({
                "NOTEBOOK_USER": username,
                "PASSWORD": req.password,
                "ANGULAR_PATH": adk_ui_path,
                "DOMAIN_NAME": settings.WORKSPACE_DOMAIN,
            })),
        ]
    else:
        if req.labspace_type and req.labspace_type != AI_TYPE_ML_MODEL:
            logger.warning(f"Unknown labspace type {req.labspace_type!r}, creating single container lab")
        containers = [
            build_container(username, _select_image(req.workspace_type), NOTEBOOK_PORT,
                            mounts, env_vars(notebook_env)),
        ]

    cluster.remove_existing(
        lambda: cluster.statefulset_exists(kube, namespace, username),
        lambda: cluster.delete_statefulset(kube, namespace, username),
        f"statefulset {namespace}/{username}",
        timeout=timeout,
    )
    statefulset = build_notebook_statefulset(
        username, service_name, containers, volumes, req.disk_storage, resources,
        gpu=gpu, node_selector=req.node_selector,
    )
    cluster.create_statefulset(kube, namespace, statefulset)

    cluster.append_rule_to_ingress(kube, namespace, settings.LAB_INGRESS, service_name, base_path)
    if agent:
        adk_service = adk_service_name(username)
        cluster.ensure_service(kube, namespace, adk_service, username, ADK_PORT)
        cluster.append_rule_to_ingress(kube, namespace, settings.LAB_INGRESS, adk_service, adk_ui_path)
        cluster.append_rule_to_ingress(kube, namespace, settings.LAB_INGRESS, adk_service, adk_api_path)

    logger.info(f"Notebook created for {username}")
    return f"{settings.WORKSPACE_DOMAIN}{base_path}"


def stop_notebook(kube: KubeClients, username: str) -> None:
    """Service / Ingress 경로 / StatefulSet 제거 (작업 PVC 는 유지)"""
    namespace = settings.LAB_NAMESPACE
    base_path, adk_ui_path, adk_api_path = notebook_paths(username)

    cluster.delete_service(kube, namespace, notebook_service_name(username))
    adk_service = adk_service_name(username)
    if cluster.service_exists(kube, namespace, adk_service):
        cluster.delete_service(kube, namespace, adk_service)
        cluster.delete_rule_from_ingress(kube, namespace, adk_ui_path, settings.LAB_INGRESS)
        cluster.delete_rule_from_ingress(kube, namespace, adk_api_path, settings.LAB_INGRESS)
    cluster.delete_statefulset(kube, namespace, username)
    cluster.delete_rule_from_ingress(kube, namespace, base_path, settings.LAB_INGRESS)
    logger.info(f"Notebook stopped for {username}")


def delete_notebook(kube: KubeClients, username: str) -> None:
    """노트북과 작업 PVC 까지 모두 삭제"""
    namespace = settings.LAB_NAMESPACE
    pvc_name = notebook_pvc_name(username)
    if cluster.pvc_exists(kube, namespace, pvc_name):
        cluster.delete_pvc(kube, namespace, pvc_name)
    stop_notebook(kube, username)
    logger.info(f"Notebook deleted for {username}")


def list_notebooks(kube: KubeClients) -> List[WorkloadStatus]:
    return list_workloads(kube, settings.LAB_NAMESPACE)


def get_notebook(kube: KubeClients, username: str) -> Optional[WorkloadDetail]:
    return get_workload_detail(kube, settings.LAB_NAMESPACE, username)


def get_notebook_metrics(kube: KubeClients) -> List[PodMetrics]:
    return get_pod_metrics(kube, settings.LAB_NAMESPACE)


def restart_notebook(kube: KubeClients, req: CreateLabRequest, timeout: Optional[float] = None) -> str:
    """기존 StatefulSet 을 지우고 같은 설정으로 다시 생성 (작업 PVC 는 유지)"""
    logger.info(f"Restarting notebook for {req.username}")
    return create_notebook(kube, req, timeout=timeout)
