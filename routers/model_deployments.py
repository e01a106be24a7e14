"""
Model deployment API
모델 서빙 Deployment 생성, 삭제, 조회, 이벤트, 로그, 메트릭
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from core.kubernetes import KubeClients, get_kube
from models.common import api_response
from models.workload import CreateModelDeploymentRequest
from routers.common import call_service, dump
from services import model_deployment, workload

router = APIRouter(prefix="/api/modeldeployment", tags=["model-deployments"])


@router.post("")
async def create_model_deployment(req: CreateModelDeploymentRequest,
                                  kube: KubeClients = Depends(get_kube)):
    url = await call_service(workload.create_workload, kube, workload.KIND_MODEL, req)
    return api_response("Model Deployment Created Successfully", {"inferenceUrl": url})


@router.get("")
async def list_model_deployments(kube: KubeClients = Depends(get_kube)):
    deployments = await call_service(model_deployment.list_model_deployments, kube)
    return api_response("Model deployment list retrieved successfully", dump(deployments))


@router.get("/describepod/{deployment_name}")
async def describe_model_deployment(deployment_name: str, kube: KubeClients = Depends(get_kube)):
    """Deployment Pod 이벤트"""
    events = await call_service(model_deployment.describe_model_deployment, kube, deployment_name)
    return api_response("Pod events retrieved successfully", dump(events))


@router.get("/logs/{deployment_name}")
async def model_deployment_logs(
    deployment_name: str,
    tail_lines: Optional[int] = Query(None, alias="tailLines", ge=1),
    kube: KubeClients = Depends(get_kube),
):
    logs = await call_service(
        model_deployment.get_model_deployment_logs, kube, deployment_name, tail_lines
    )
    return api_response("Pod logs retrieved successfully", dump(logs))


@router.get("/metrics")
async def model_metrics(kube: KubeClients = Depends(get_kube)):
    metrics = await call_service(model_deployment.get_model_metrics, kube)
    return api_response("Model metrics fetched successfully", dump(metrics))


@router.get("/{deployment_name}")
async def get_model_deployment(deployment_name: str, kube: KubeClients = Depends(get_kube)):
    detail = await call_service(model_deployment.get_model_deployment, kube, deployment_name)
    if detail is None:
        raise HTTPException(status_code=404, detail=f"model deployment {deployment_name} not found")
    return api_response("Model deployment retrieved successfully", dump(detail))


@router.delete("/{deployment_name}")
async def delete_model_deployment(deployment_name: str, kube: KubeClients = Depends(get_kube)):
    await call_service(workload.delete_workload, kube, workload.KIND_MODEL, deployment_name)
    return api_response("Deployments deleted successfully")
