"""
LLM deployment API
"""
from fastapi import APIRouter, Depends

from core.kubernetes import KubeClients, get_kube
from models.common import api_response
from models.workload import CreateLlmDeploymentRequest
from routers.common import call_service
from services import llm, workload

router = APIRouter(prefix="/api/llm", tags=["llm"])


@router.get("")
async def default_llms():
    """공유 PVC 에 준비된 기본 LLM 목록"""
    folders = await call_service(llm.list_default_llms)
    return api_response("query list of default LLM", folders)


@router.get("/backendtype")
async def supported_backends():
    return api_response("query list of default backend", {"backendType": llm.supported_backends()})


@router.post("")
async def create_llm_deployment(req: CreateLlmDeploymentRequest, kube: KubeClients = Depends(get_kube)):
    url = await call_service(workload.create_workload, kube, workload.KIND_LLM, req)
    return api_response("LLM Deployment Created Successfully", {"inferenceUrl": url})


@router.delete("/{deployment_name}")
async def delete_llm_deployment(deployment_name: str, kube: KubeClients = Depends(get_kube)):
    await call_service(workload.delete_workload, kube, workload.KIND_LLM, deployment_name)
    return api_response("LLM deleted successfully")
