"""
LLM 추론 엔드포인트 (namespace: model, 공유 PVC pvc-llm)
"""
import logging
import os
from typing import List, Optional

from core.config import settings
from core.exceptions import ControlPlaneError, InvalidResourceRequestError
from core.kubernetes import KubeClients
from models.workload import CreateLlmDeploymentRequest
from services import cluster
from services.model_deployment import admit_deployment, recreate_deployment
from services.specs import build_model_deployment, build_resources, env_vars
from utils.config import LLM_PORT, LLM_SHARED_PVC, SUPPORTED_LLM_BACKENDS
from utils.helpers import list_folder_names, sanitize_name

logger = logging.getLogger(__name__)


def create_llm_deployment(kube: KubeClients, req: CreateLlmDeploymentRequest,
                          timeout: Optional[float] = None) -> str:
    """LLM Deployment 생성. 추론 URL 반환"""
    if req.backend_type not in SUPPORTED_LLM_BACKENDS:
        raise InvalidResourceRequestError(f"unsupported backend type: {req.backend_type}")

    gpu = admit_deployment(kube, req)
    namespace = settings.MODEL_NAMESPACE
    name = sanitize_name(req.deployment_name)
    env = env_vars({
        "MODEL_NAME": req.model_name,
        "BACKEND_TYPE": req.backend_type,
    })

    cluster.create_namespace(kube, namespace)
    cluster.ensure_pvc(kube, namespace, LLM_SHARED_PVC, req.disk_storage)
    resources = build_resources(req.cpu_request, req.memory_request, req.cpu_limit, req.memory_limit)

    recreate_deployment(kube, namespace, name, timeout=timeout)
    cluster.ensure_service(kube, namespace, name, name, LLM_PORT)
    deployment = build_model_deployment(
        name, settings.LLM_DEPLOYMENT_IMAGE, LLM_SHARED_PVC, LLM_PORT, resources, env,
        gpu=gpu, node_selector=req.node_selector,
    )
    cluster.create_deployment(kube, namespace, deployment)

    logger.info(f"LLM deployment {name} created with backend {req.backend_type}")
    return f"http://{name}.{namespace}/v2/models/{req.backend_type}/generate"


def delete_llm_deployment(kube: KubeClients, deployment_name: str) -> None:
    """Deployment 와 Service 삭제 (공유 PVC 는 유지)"""
    namespace = settings.MODEL_NAMESPACE
    name = sanitize_name(deployment_name)
    cluster.delete_deployment(kube, namespace, name)
    cluster.delete_service(kube, namespace, name)
    logger.info(f"LLM deployment {name} deleted")


def list_default_llms() -> List[str]:
    """공유 PVC 디렉터리에 준비된 모델 폴더 목록"""
    path = os.path.join(settings.ARTIFACT_ROOT, LLM_SHARED_PVC)
    try:
        return list_folder_names(path)
    except OSError as e:
        logger.error(f"Failed to list default LLMs in {path}: {e}")
        raise ControlPlaneError(f"failed to list default llms: {e}", status_code=400) from e


def supported_backends() -> List[str]:
    return list(SUPPORTED_LLM_BACKENDS)
