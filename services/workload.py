"""
워크로드 종류별 생성/삭제 진입점

라우터의 생성/삭제 엔드포인트는 모두 create_workload / delete_workload 를 거친다.
"""
from typing import Optional, Union

from core.exceptions import InvalidResourceRequestError
from core.kubernetes import KubeClients
from models.workload import CreateLabRequest, CreateLlmDeploymentRequest, CreateModelDeploymentRequest
from services.llm import create_llm_deployment, delete_llm_deployment
from services.model_deployment import create_model_deployment, delete_model_deployment
from services.notebook import create_notebook, delete_notebook
from services.pod import list_workloads

KIND_NOTEBOOK = "notebook"
KIND_MODEL = "model"
KIND_LLM = "llm"

WorkloadRequest = Union[CreateLabRequest, CreateModelDeploymentRequest, CreateLlmDeploymentRequest]

_CREATORS = {
    KIND_NOTEBOOK: (CreateLabRequest, create_notebook),
    KIND_MODEL: (CreateModelDeploymentRequest, create_model_deployment),
    KIND_LLM: (CreateLlmDeploymentRequest, create_llm_deployment),
}

_DELETERS = {
    KIND_NOTEBOOK: delete_notebook,
    KIND_MODEL: delete_model_deployment,
    KIND_LLM: delete_llm_deployment,
}


def create_workload(kube: KubeClients, kind: str, request: WorkloadRequest,
                    timeout: Optional[float] = None) -> str:
    """kind 에 맞는 생성 함수 호출. 외부 접근 주소 반환"""
    if kind not in _CREATORS:
        raise InvalidResourceRequestError(f"unknown workload kind: {kind}")
    request_type, creator = _CREATORS[kind]
    if not isinstance(request, request_type):
        raise InvalidResourceRequestError(
            f"{kind} workload expects {request_type.__name__}, got {type(request).__name__}"
        )
    return creator(kube, request, timeout=timeout)


def delete_workload(kube: KubeClients, kind: str, identity: str) -> None:
    if kind not in _DELETERS:
        raise InvalidResourceRequestError(f"unknown workload kind: {kind}")
    _DELETERS[kind](kube, identity)


__all__ = [
    'KIND_NOTEBOOK', 'KIND_MODEL', 'KIND_LLM',
    'create_workload', 'delete_workload', 'list_workloads',
]
