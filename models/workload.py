"""
워크로드 생성 요청 모델 (노트북, 모델 배포, LLM 배포)
"""
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class WorkloadResources(BaseModel):
    """공통 리소스 요청 필드"""
    model_config = ConfigDict(populate_by_name=True)

    cpu_request: str = Field("1", alias="cpuRequest")
    gpu_request: str = Field("0", alias="gpuRequest")
    memory_request: str = Field("1Gi", alias="memoryRequest")
    cpu_limit: Optional[str] = Field(None, alias="cpuLimit")
    memory_limit: Optional[str] = Field(None, alias="memoryLimit")
    disk_storage: str = Field("10Gi", alias="diskStorage")
    node_selector: Optional[str] = Field(None, alias="nodeSelector")


class CreateLabRequest(WorkloadResources):
    """노트북(Labspace) 생성/재시작 요청"""
    username: str = Field(..., alias="userName")
    password: str = ""
    workspace_type: str = Field("", alias="workspaceType")  # jupyterlab, codeserver
    labspace_type: str = Field("", alias="labspaceType")  # ML_MODEL_LABSPACE, AGENT_LABSPACE


class CreateModelDeploymentRequest(WorkloadResources):
    """모델 서빙 배포 요청"""
    username: str = Field(..., alias="userName")
    deployment_name: str = Field(..., alias="deploymentName")
    model_name: str = Field(..., alias="modelName")
    version: str
    model_artifacts: List[str] = Field(default_factory=list, alias="modelartifacts")


class CreateLlmDeploymentRequest(WorkloadResources):
    """LLM 추론 엔드포인트 배포 요청"""
    deployment_name: str = Field(..., alias="deploymentName")
    model_name: str = Field(..., alias="modelName")
    backend_type: str = Field("vllm_model", alias="backendType")
