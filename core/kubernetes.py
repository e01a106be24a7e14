"""
Kubernetes client initialization

프로세스 시작 시 한 번 생성되어 app.state에 보관되고,
각 서비스 함수에는 인자로 전달된다.
"""
from fastapi import Request
from kubernetes import client
from kubernetes.client.rest import ApiException

from utils.k8s_client import load_k8s_config


class KubeClients:
    """Kubernetes API 클라이언트 묶음

    - core_v1: Node, Pod, Service, Namespace, PVC, Event
    - apps_v1: Deployment, StatefulSet
    - networking_v1: Ingress
    - custom: metrics.k8s.io 등 커스텀 리소스
    """

    def __init__(self, core_v1, apps_v1, networking_v1, custom, api_client=None):
        self.core_v1 = core_v1
        self.apps_v1 = apps_v1
        self.networking_v1 = networking_v1
        self.custom = custom
        self.api_client = api_client

    def close(self):
        if self.api_client is not None:
            self.api_client.close()


def create_k8s_clients() -> KubeClients:
    """Kubernetes API 클라이언트 초기화 및 반환

    클러스터 내부에서 실행 중이면 in-cluster config 사용,
    아니면 kubeconfig 파일 사용

    Returns:
        KubeClients: 하나의 ApiClient를 공유하는 API 객체 묶음
    """
    load_k8s_config()
    api_client = client.ApiClient()
    return KubeClients(
        core_v1=client.CoreV1Api(api_client),
        apps_v1=client.AppsV1Api(api_client),
        networking_v1=client.NetworkingV1Api(api_client),
        custom=client.CustomObjectsApi(api_client),
        api_client=api_client,
    )


def get_kube(request: Request) -> KubeClients:
    """FastAPI dependency: lifespan에서 생성된 클라이언트 반환"""
    return request.app.state.kube


__all__ = ['KubeClients', 'create_k8s_clients', 'get_kube', 'ApiException']
