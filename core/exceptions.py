"""
Control plane 예외 계층

서비스 계층은 아래 예외를 발생시키고, 라우터는 status_code를 그대로 HTTP 응답으로 변환한다.
"""
from typing import Optional


class ControlPlaneError(Exception):
    """모든 control plane 예외의 기반 클래스"""

    status_code: int = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ResourceUnavailableError(ControlPlaneError):
    """요청한 리소스를 만족하는 노드가 없음 (admission denied)"""
    status_code = 400


class InvalidResourceRequestError(ControlPlaneError):
    """파싱할 수 없는 리소스 요청값"""
    status_code = 400


class CapacityQueryError(ControlPlaneError):
    """노드/Pod 조회 실패로 용량을 계산할 수 없음"""
    status_code = 503


class ClusterMutationError(ControlPlaneError):
    """클러스터 리소스 생성/삭제/수정 실패"""
    status_code = 500


class WorkloadTimeoutError(ControlPlaneError):
    """재생성 전 이전 워크로드 삭제 대기 시간 초과"""
    status_code = 504


class ManifestValidationError(ControlPlaneError):
    """플러그인 매니페스트 검증 실패"""
    status_code = 400


class PluginNotFoundError(ControlPlaneError):
    status_code = 404


class BundleError(ControlPlaneError):
    """번들 다운로드/압축 해제 실패"""
    status_code = 502


class RollbackError(ControlPlaneError):
    """보상 작업(compensator) 실패

    원래 실패(original)와는 별개로 보고된다.
    """
    status_code = 500

    def __init__(self, message: str, original: Optional[BaseException] = None):
        super().__init__(message)
        self.original = original


__all__ = [
    'ControlPlaneError',
    'ResourceUnavailableError',
    'InvalidResourceRequestError',
    'CapacityQueryError',
    'ClusterMutationError',
    'WorkloadTimeoutError',
    'ManifestValidationError',
    'PluginNotFoundError',
    'BundleError',
    'RollbackError',
]
