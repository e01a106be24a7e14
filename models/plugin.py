"""
플러그인 관련 Pydantic 모델
매니페스트, 설치 요청/응답, DB 자격 증명, 레지스트리 레코드
"""
from datetime import datetime
from typing import Dict, List, Optional, Any
from pydantic import BaseModel, ConfigDict, Field, model_validator


# ============================================
# manifest.yaml
# ============================================

class ManifestModel(BaseModel):
    """매니페스트 공통 설정: null 값은 기본값으로, 숫자는 문자열로"""
    model_config = ConfigDict(coerce_numbers_to_str=True, extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data):
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


class DatabasePermission(ManifestModel):
    mode: Optional[str] = None  # required | optional | none
    existing: Optional[str] = None
    driver: Optional[str] = None
    user: Optional[str] = None
    database: Optional[str] = None


class ManifestPermissions(ManifestModel):
    database: DatabasePermission = Field(default_factory=DatabasePermission)


class ContainerSpec(ManifestModel):
    image: Optional[str] = None
    tag: Optional[str] = None
    env: Optional[Dict[str, Any]] = None
    replicas: Optional[int] = None
    ports: Optional[List[int]] = None


class BackendContainerSpec(ContainerSpec):
    migration: bool = False


class DockerSpec(ManifestModel):
    frontend: ContainerSpec = Field(default_factory=ContainerSpec)
    backend: BackendContainerSpec = Field(default_factory=BackendContainerSpec)


class LogoSpec(ManifestModel):
    path: Optional[str] = None
    url: Optional[str] = None


class KubernetesSpec(ManifestModel):
    namespace: Optional[str] = None
    labels: Optional[Dict[str, str]] = None


class PluginManifest(ManifestModel):
    """플러그인 번들에 포함된 manifest.yaml"""
    name: Optional[str] = None
    description: Optional[str] = None
    version: Optional[str] = None
    engine_key: Optional[str] = None
    permissions: ManifestPermissions = Field(default_factory=ManifestPermissions)
    docker: DockerSpec = Field(default_factory=DockerSpec)
    logo: LogoSpec = Field(default_factory=LogoSpec)
    kubernetes: KubernetesSpec = Field(default_factory=KubernetesSpec)


# ============================================
# 설치 요청 / 응답
# ============================================

class PluginInstallRequest(BaseModel):
    """플러그인 설치/업데이트 요청"""
    model_config = ConfigDict(populate_by_name=True)

    zip_url: str = Field("", alias="zipUrl")
    route_path: str = Field("", alias="routePath")
    engine_key: str = Field("", alias="engineKey")
    release_id: int = Field(0, alias="releaseId")
    expected_manifest_sha: str = Field("", alias="expectedManifestSha")
    backend_callbacks: Dict[str, str] = Field(default_factory=dict, alias="backendCallbacks")


class PluginUpdateRequest(PluginInstallRequest):
    """업데이트는 설치와 동일한 흐름을 사용"""


class PluginRollbackRequest(BaseModel):
    """플러그인 제거 요청"""
    model_config = ConfigDict(populate_by_name=True)

    route_path: str = Field("", alias="routePath")


class PluginInstallResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    frontend_url: str = Field(..., alias="frontendUrl")
    backend_url: str = Field(..., alias="backendUrl")
    namespace: str
    deployment: str
    release_id: int = Field(..., alias="releaseId")
    engine_key: str = Field(..., alias="engineKey")
    version: str


# ============================================
# 영속 데이터
# ============================================

class DatabaseCredentials(BaseModel):
    """플러그인별 DB 자격 증명 (database.json)"""
    model_config = ConfigDict(populate_by_name=True)

    dsn: str = ""
    driver: str = ""
    user: str = ""
    database: str = ""
    created_at: Optional[datetime] = Field(None, alias="createdAt")


class PluginRecord(BaseModel):
    """마지막으로 성공한 설치 기록 (registry/<identifier>.json)"""
    model_config = ConfigDict(populate_by_name=True)

    identifier: str
    engine_key: str = Field(..., alias="engineKey")
    release_id: int = Field(0, alias="releaseId")
    version: str = ""
    namespace: str = ""
    route_path: str = Field("", alias="routePath")
    manifest_sha: str = Field("", alias="manifestSha")
    manifest_path: str = Field("", alias="manifestPath")
    deployment_path: str = Field("", alias="deploymentPath")
    logo_path: str = Field("", alias="logoPath")
    database: DatabaseCredentials = Field(default_factory=DatabaseCredentials)
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")
