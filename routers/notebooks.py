"""
Notebook (Labspace) API
사용자별 JupyterLab / code-server / ADK 에이전트 랩 생성, 재시작, 중지, 삭제, 조회
"""
from fastapi import APIRouter, Depends, HTTPException

from core.kubernetes import KubeClients, get_kube
from models.common import api_response
from models.workload import CreateLabRequest
from routers.common import call_service, dump
from services import notebook, workload

router = APIRouter(prefix="/api/notebooks", tags=["notebooks"])


@router.post("")
async def create_notebook(req: CreateLabRequest, kube: KubeClients = Depends(get_kube)):
    """노트북 생성 (같은 사용자의 기존 노트북은 재생성)"""
    url = await call_service(workload.create_workload, kube, workload.KIND_NOTEBOOK, req)
    return api_response("Labspace created successfully", {"url": url})


@router.post("/restart")
async def restart_notebook(req: CreateLabRequest, kube: KubeClients = Depends(get_kube)):
    url = await call_service(notebook.restart_notebook, kube, req)
    return api_response("Labspace restarted successfully", {"url": url})


@router.get("")
async def list_notebooks(kube: KubeClients = Depends(get_kube)):
    notebooks = await call_service(notebook.list_notebooks, kube)
    return api_response("Labspace list retrieved successfully", dump(notebooks))


@router.get("/metrics")
async def notebook_metrics(kube: KubeClients = Depends(get_kube)):
    """metrics.k8s.io 기반 노트북 Pod 사용량"""
    metrics = await call_service(notebook.get_notebook_metrics, kube)
    return api_response("Labs metrics fetched successfully", dump(metrics))


@router.get("/{username}")
async def get_notebook(username: str, kube: KubeClients = Depends(get_kube)):
    detail = await call_service(notebook.get_notebook, kube, username)
    if detail is None:
        raise HTTPException(status_code=404, detail=f"labspace {username} not found")
    return api_response("Labspace retrieved successfully", dump(detail))


@router.delete("/stop/{username}")
async def stop_notebook(username: str, kube: KubeClients = Depends(get_kube)):
    """노트북 중지 (작업 PVC 유지)"""
    await call_service(notebook.stop_notebook, kube, username)
    return api_response("Labspace stopped successfully")


@router.delete("/{username}")
async def delete_notebook(username: str, kube: KubeClients = Depends(get_kube)):
    """노트북과 작업 PVC 삭제"""
    await call_service(workload.delete_workload, kube, workload.KIND_NOTEBOOK, username)
    return api_response("Labspace deleted successfully")
