"""
Pod 관련 Pydantic 모델
워크로드 상태, 이벤트, 메트릭, 로그 등의 데이터 구조 정의
"""

from typing import Optional, List, Dict
from pydantic import BaseModel, ConfigDict, Field


class WorkloadStatus(BaseModel):
    """워크로드(app 라벨 단위) 대표 Pod 상태"""
    name: str
    ready: str  # "1/1"
    status: str  # "Running", "ImagePullBackOff (...)", "Terminating", ...
    restarts: int
    age: str


class WorkloadDetail(WorkloadStatus):
    """워크로드 상세 정보"""
    model_config = ConfigDict(populate_by_name=True)

    pod_name: str = Field(..., alias="podName")
    namespace: str
    node_name: Optional[str] = Field(None, alias="nodeName")
    pod_ip: Optional[str] = Field(None, alias="podIp")
    images: List[str] = []
    labels: Dict[str, str] = {}


class PodEvent(BaseModel):
    """Pod 이벤트"""
    model_config = ConfigDict(populate_by_name=True)

    pod: str
    type: str
    reason: str
    message: str
    count: int = 0
    last_timestamp: Optional[str] = Field(None, alias="lastTimestamp")


class PodMetrics(BaseModel):
    """Pod 리소스 사용량"""
    model_config = ConfigDict(populate_by_name=True)

    pod_name: str = Field(..., alias="podName")
    cpu_usage: float = Field(..., alias="cpuUsage")  # millicores
    memory_usage: int = Field(..., alias="memoryUsage")  # MB


class PodLogsResponse(BaseModel):
    """Pod 로그 응답"""
    model_config = ConfigDict(populate_by_name=True)

    pod_name: str = Field(..., alias="podName")
    namespace: str
    lines: List[str]
