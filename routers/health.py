"""
Health check API
"""
import logging

from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool

from core.kubernetes import KubeClients, get_kube
from utils.k8s_client import get_environment_info

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/api/health")
async def health_check():
    """API 헬스체크"""
    return {"status": "healthy", "service": "workload-control-plane"}


@router.get("/api/k8s/health")
async def k8s_health_check(kube: KubeClients = Depends(get_kube)):
    """Kubernetes 연결 헬스체크"""
    try:
        await run_in_threadpool(kube.core_v1.list_namespace, limit=1)
        return {"status": "connected", "environment": get_environment_info()}
    except Exception as e:
        logger.warning(f"Kubernetes health check failed: {e}")
        return {"status": "disconnected", "error": str(e)}
