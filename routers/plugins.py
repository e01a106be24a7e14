"""
Plugin API
번들 기반 플러그인 설치, 업데이트, 제거, 조회
"""
from typing import Optional

from fastapi import APIRouter, Body, Depends

from core.kubernetes import KubeClients, get_kube
from models.common import api_response
from models.plugin import PluginInstallRequest, PluginRollbackRequest, PluginUpdateRequest
from routers.common import call_service, dump
from services.plugin import PluginInstaller, list_plugin_records, list_plugins

router = APIRouter(prefix="/api/plugin", tags=["plugins"])


@router.get("")
async def get_plugins(kube: KubeClients = Depends(get_kube)):
    """플러그인 네임스페이스의 워크로드 상태"""
    plugins = await call_service(list_plugins, kube)
    return api_response("Plugin list retrieved successfully", dump(plugins))


@router.get("/registry")
async def get_registry():
    """설치된 플러그인 레지스트리 기록"""
    records = await call_service(list_plugin_records)
    return api_response("Plugin registry retrieved successfully", dump(records))


@router.post("/install/{identifier}")
async def install_plugin(identifier: str, req: PluginInstallRequest,
                         kube: KubeClients = Depends(get_kube)):
    result = await call_service(PluginInstaller(kube).install, identifier, req)
    return api_response("Plugin installed successfully", dump(result))


@router.put("/install/{identifier}")
async def update_plugin(identifier: str, req: PluginUpdateRequest,
                        kube: KubeClients = Depends(get_kube)):
    result = await call_service(PluginInstaller(kube).update, identifier, req)
    return api_response("Plugin updated successfully", dump(result))


@router.delete("/install/{identifier}")
async def rollback_plugin(identifier: str,
                          req: Optional[PluginRollbackRequest] = Body(None),
                          kube: KubeClients = Depends(get_kube)):
    """플러그인 제거 (routePath 가 없으면 레지스트리에 기록된 경로 사용)"""
    await call_service(PluginInstaller(kube).rollback, identifier, req or PluginRollbackRequest())
    return api_response("Plugin removed successfully")
