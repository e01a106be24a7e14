"""
노드 리소스 관련 Pydantic 모델
"""
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class NodeResources(BaseModel):
    """노드별 리소스 스냅샷 (남은 용량 또는 전체 용량)

    cpu: 코어, memory: GiB, gpu: 개수. 과할당된 노드는 음수일 수 있다.
    """
    model_config = ConfigDict(populate_by_name=True)

    name: str
    cpu: int
    memory: int
    gpu: int
    instance_type: str = Field("", alias="instanceType")
    capacity_type: str = Field("", alias="capacityType")
    node_group: str = Field("", alias="nodeGroup")
    type: str = ""
    ip: str = ""


class ClusterNodeResources(BaseModel):
    """노드별 전체 용량과 가용 용량"""
    model_config = ConfigDict(populate_by_name=True)

    name: str
    cpu: int
    memory: int
    gpu: int
    available_cpu: int = Field(..., alias="availableCpu")
    available_memory: int = Field(..., alias="availableMemory")
    available_gpu: int = Field(..., alias="availableGpu")
    machine: str = ""
    capacity_type: str = Field("", alias="capacityType")
    node_pool: str = Field("", alias="nodePool")
    type: str = ""
    node_ip: str = Field("", alias="nodeIp")


class ResourceAsk(BaseModel):
    """admission 검사 요청"""
    model_config = ConfigDict(populate_by_name=True)

    cpu_request: str = Field("0", alias="cpuRequest")
    memory_request: str = Field("0", alias="memoryRequest")
    gpu_request: Optional[str] = Field("0", alias="gpuRequest")
