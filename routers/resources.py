"""
Cluster capacity API
노드별 남은/전체 리소스 조회, admission 사전 확인
"""
from fastapi import APIRouter, Depends

from core.kubernetes import KubeClients, get_kube
from models.common import api_response
from models.resources import ResourceAsk
from routers.common import call_service, dump
from services.admission import admit
from services.capacity import (
    get_cluster_node_resources,
    get_node_total_resources,
    get_remaining_node_resources,
)

router = APIRouter(prefix="/api", tags=["resources"])


@router.get("/resources")
async def remaining_resources(kube: KubeClients = Depends(get_kube)):
    """노드별 남은 CPU(코어) / 메모리(GiB) / GPU"""
    nodes = await call_service(get_remaining_node_resources, kube)
    return api_response("query remaining node resources", dump(nodes))


@router.get("/totalresources")
async def total_resources(kube: KubeClients = Depends(get_kube)):
    """노드별 allocatable 리소스"""
    nodes = await call_service(get_node_total_resources, kube)
    return api_response("query total node resources", dump(nodes))


@router.get("/clusterresources")
async def cluster_resources(kube: KubeClients = Depends(get_kube)):
    """노드별 전체 / 남은 리소스"""
    nodes = await call_service(get_cluster_node_resources, kube)
    return api_response("query cluster resources", dump(nodes))


@router.post("/resources/check")
async def check_resources(ask: ResourceAsk, kube: KubeClients = Depends(get_kube)):
    """요청 리소스가 어떤 노드에든 들어갈 수 있는지 확인"""
    await call_service(admit, kube, ask)
    return api_response("requested resources are available", dump(ask))
