"""
클러스터 리소스 헬퍼
Namespace / Service / PVC / Deployment / StatefulSet / Ingress 의 존재 확인, 생성, 삭제.

- 생성 시 409(AlreadyExists)는 성공으로 취급
- 삭제/조회 시 404(NotFound)는 "없음"으로 취급
- 그 외 ApiException 은 ClusterMutationError 로 변환
"""
import logging
import time
from typing import Callable, Optional

from kubernetes import client
from kubernetes.client.rest import ApiException

from core.config import settings
from core.exceptions import ClusterMutationError, WorkloadTimeoutError
from core.kubernetes import KubeClients

logger = logging.getLogger(__name__)

FOREGROUND_DELETE = client.V1DeleteOptions(propagation_policy='Foreground')


def _exists(read: Callable[[], object], what: str) -> bool:
    try:
        read()
        return True
    except ApiException as e:
        if e.status == 404:
            return False
        raise ClusterMutationError(f"failed to read {what}: {e.reason}") from e


def _delete(delete: Callable[[], object], what: str) -> bool:
    """삭제 후 True, 이미 없으면 False"""
    try:
        delete()
        logger.info(f"Deleted {what}")
        return True
    except ApiException as e:
        if e.status == 404:
            logger.warning(f"{what} not found, nothing to delete")
            return False
        raise ClusterMutationError(f"failed to delete {what}: {e.reason}") from e


def _create(create: Callable[[], object], what: str) -> bool:
    """생성 후 True, 이미 있으면 False"""
    try:
        create()
        logger.info(f"Created {what}")
        return True
    except ApiException as e:
        if e.status == 409:
            logger.warning(f"{what} already exists")
            return False
        raise ClusterMutationError(f"failed to create {what}: {e.reason}") from e


# ============================================
# Namespace
# ============================================

def create_namespace(kube: KubeClients, name: str) -> bool:
    """네임스페이스 생성 (이미 있으면 그대로 사용)"""
    body = client.V1Namespace(metadata=client.V1ObjectMeta(name=name))
    return _create(lambda: kube.core_v1.create_namespace(body), f"namespace {name}")


# ============================================
# Service
# ============================================

def service_exists(kube: KubeClients, namespace: str, name: str) -> bool:
    return _exists(
        lambda: kube.core_v1.read_namespaced_service(name, namespace),
        f"service {namespace}/{name}",
    )


def create_service(
    kube: KubeClients,
    namespace: str,
    name: str,
    app_label: str,
    target_port: int,
    service_type: str = "ClusterIP",
    port: int = 80,
) -> bool:
    """app=<app_label> 로 선택되는 Service 생성 (port -> target_port)"""
    body = client.V1Service(
        metadata=client.V1ObjectMeta(name=name, labels={"app": app_label}),
        spec=client.V1ServiceSpec(
            type=service_type,
            selector={"app": app_label},
            ports=[client.V1ServicePort(port=port, target_port=target_port, protocol="TCP")],
        ),
    )
    return _create(
        lambda: kube.core_v1.create_namespaced_service(namespace, body),
        f"service {namespace}/{name}",
    )


def ensure_service(kube: KubeClients, namespace: str, name: str, app_label: str,
                   target_port: int, service_type: str = "ClusterIP") -> bool:
    """Service 가 없을 때만 생성. 새로 만들었으면 True"""
    if service_exists(kube, namespace, name):
        return False
    return create_service(kube, namespace, name, app_label, target_port, service_type)


def create_service_object(kube: KubeClients, namespace: str, body) -> None:
    """렌더링된 Service (모델 또는 dict) 생성. 409 포함 모든 실패는 ClusterMutationError"""
    name = body.metadata.name if hasattr(body, "metadata") else body["metadata"]["name"]
    try:
        kube.core_v1.create_namespaced_service(namespace, body)
        logger.info(f"Created service {namespace}/{name}")
    except ApiException as e:
        raise ClusterMutationError(f"failed to create service {namespace}/{name}: {e.reason}") from e


def delete_service(kube: KubeClients, namespace: str, name: str) -> bool:
    return _delete(
        lambda: kube.core_v1.delete_namespaced_service(name, namespace),
        f"service {namespace}/{name}",
    )


# ============================================
# PersistentVolumeClaim
# ============================================

def pvc_exists(kube: KubeClients, namespace: str, name: str) -> bool:
    return _exists(
        lambda: kube.core_v1.read_namespaced_persistent_volume_claim(name, namespace),
        f"pvc {namespace}/{name}",
    )


def create_pvc(kube: KubeClients, namespace: str, name: str, size: str,
               storage_class: Optional[str] = None) -> bool:
    """ReadWriteMany PVC 생성"""
    body = client.V1PersistentVolumeClaim(
        metadata=client.V1ObjectMeta(name=name),
        spec=client.V1PersistentVolumeClaimSpec(
            access_modes=["ReadWriteMany"],
            storage_class_name=storage_class or settings.STORAGE_CLASS,
            resources=client.V1VolumeResourceRequirements(requests={"storage": size}),
        ),
    )
    return _create(
        lambda: kube.core_v1.create_namespaced_persistent_volume_claim(namespace, body),
        f"pvc {namespace}/{name}",
    )


def ensure_pvc(kube: KubeClients, namespace: str, name: str, size: str) -> bool:
    if pvc_exists(kube, namespace, name):
        return False
    return create_pvc(kube, namespace, name, size)


def delete_pvc(kube: KubeClients, namespace: str, name: str) -> bool:
    return _delete(
        lambda: kube.core_v1.delete_namespaced_persistent_volume_claim(name, namespace),
        f"pvc {namespace}/{name}",
    )


# ============================================
# Deployment / StatefulSet
# ============================================

def deployment_exists(kube: KubeClients, namespace: str, name: str) -> bool:
    return _exists(
        lambda: kube.apps_v1.read_namespaced_deployment(name, namespace),
        f"deployment {namespace}/{name}",
    )


def create_deployment(kube: KubeClients, namespace: str, body) -> None:
    """Deployment 생성. 409 포함 모든 실패는 ClusterMutationError"""
    name = body.metadata.name if hasattr(body, "metadata") else body["metadata"]["name"]
    try:
        kube.apps_v1.create_namespaced_deployment(namespace, body)
        logger.info(f"Created deployment {namespace}/{name}")
    except ApiException as e:
        raise ClusterMutationError(f"failed to create deployment {namespace}/{name}: {e.reason}") from e


def delete_deployment(kube: KubeClients, namespace: str, name: str) -> bool:
    return _delete(
        lambda: kube.apps_v1.delete_namespaced_deployment(name, namespace, body=FOREGROUND_DELETE),
        f"deployment {namespace}/{name}",
    )


def statefulset_exists(kube: KubeClients, namespace: str, name: str) -> bool:
    return _exists(
        lambda: kube.apps_v1.read_namespaced_stateful_set(name, namespace),
        f"statefulset {namespace}/{name}",
    )


def create_statefulset(kube: KubeClients, namespace: str, body) -> None:
    name = body.metadata.name
    try:
        kube.apps_v1.create_namespaced_stateful_set(namespace, body)
        logger.info(f"Created statefulset {namespace}/{name}")
    except ApiException as e:
        raise ClusterMutationError(f"failed to create statefulset {namespace}/{name}: {e.reason}") from e


def delete_statefulset(kube: KubeClients, namespace: str, name: str) -> bool:
    return _delete(
        lambda: kube.apps_v1.delete_namespaced_stateful_set(name, namespace, body=FOREGROUND_DELETE),
        f"statefulset {namespace}/{name}",
    )


def wait_until_absent(
    exists: Callable[[], bool],
    what: str,
    timeout: Optional[float] = None,
    interval: Optional[float] = None,
) -> None:
    """exists() 가 False 가 될 때까지 폴링

    Raises:
        WorkloadTimeoutError: timeout 초 안에 사라지지 않을 때
    """
    timeout = settings.RECREATE_TIMEOUT_SECONDS if timeout is None else timeout
    interval = settings.RECREATE_POLL_INTERVAL_SECONDS if interval is None else interval
    deadline = time.monotonic() + timeout

    while exists():
        if time.monotonic() >= deadline:
            logger.error(f"Timed out after {timeout}s waiting for {what} to be deleted")
            raise WorkloadTimeoutError(f"timed out waiting for {what} to be deleted")
        time.sleep(interval)


def remove_existing(
    exists: Callable[[], bool],
    delete: Callable[[], object],
    what: str,
    timeout: Optional[float] = None,
) -> bool:
    """재생성 전 기존 리소스 삭제 후 완전히 사라질 때까지 대기. 삭제했으면 True"""
    if not exists():
        return False
    logger.info(f"{what} already exists, deleting before recreate")
    delete()
    time.sleep(settings.RECREATE_GRACE_SECONDS)
    wait_until_absent(exists, what, timeout=timeout)
    return True


# ============================================
# Ingress
# ============================================

def _read_ingress(kube: KubeClients, namespace: str, ingress_name: str):
    try:
        return kube.networking_v1.read_namespaced_ingress(ingress_name, namespace)
    except ApiException as e:
        raise ClusterMutationError(
            f"failed to read ingress {namespace}/{ingress_name}: {e.reason}"
        ) from e


def _replace_ingress(kube: KubeClients, namespace: str, ingress) -> None:
    name = ingress.metadata.name
    try:
        kube.networking_v1.replace_namespaced_ingress(name, namespace, ingress)
    except ApiException as e:
        raise ClusterMutationError(f"failed to update ingress {namespace}/{name}: {e.reason}") from e


def append_rule_to_ingress(kube: KubeClients, namespace: str, ingress_name: str,
                           service_name: str, path: str, port: int = 80) -> bool:
    """공유 Ingress 의 모든 HTTP 규칙에 Prefix 경로 추가

    같은 경로가 이미 있으면 아무것도 하지 않고 False 반환
    """
    ingress = _read_ingress(kube, namespace, ingress_name)
    new_path = client.V1HTTPIngressPath(
        path=path,
        path_type="Prefix",
        backend=client.V1IngressBackend(
            service=client.V1IngressServiceBackend(
                name=service_name,
                port=client.V1ServiceBackendPort(number=port),
            )
        ),
    )

    rules = ingress.spec.rules or []
    for rule in rules:
        if rule.http and any(p.path == path for p in rule.http.paths or []):
            logger.info(f"Ingress path {path} already present in {namespace}/{ingress_name}")
            return False

    for rule in rules:
        if rule.http:
            rule.http.paths = list(rule.http.paths or []) + [new_path]

    _replace_ingress(kube, namespace, ingress)
    logger.info(f"Added ingress path {path} -> {service_name} in {namespace}/{ingress_name}")
    return True


def delete_rule_from_ingress(kube: KubeClients, namespace: str, path: str,
                             ingress_name: str) -> bool:
    """Ingress 에서 경로 제거. 경로나 Ingress 가 없으면 False"""
    target = path if path.startswith("/") else f"/{path}"
    try:
        ingress = kube.networking_v1.read_namespaced_ingress(ingress_name, namespace)
    except ApiException as e:
        if e.status == 404:
            logger.warning(f"Ingress {namespace}/{ingress_name} not found, skipping rule removal")
            return False
        raise ClusterMutationError(
            f"failed to read ingress {namespace}/{ingress_name}: {e.reason}"
        ) from e

    updated = False
    for rule in ingress.spec.rules or []:
        if not rule.http:
            continue
        kept = [p for p in rule.http.paths or [] if p.path != target]
        if len(kept) != len(rule.http.paths or []):
            updated = True
        rule.http.paths = kept

    if not updated:
        logger.warning(f"Ingress path {target} not found in {namespace}/{ingress_name}")
        return False

    _replace_ingress(kube, namespace, ingress)
    logger.info(f"Removed ingress path {target} from {namespace}/{ingress_name}")
    return True


__all__ = [
    'create_namespace',
    'service_exists', 'create_service', 'ensure_service', 'create_service_object', 'delete_service',
    'pvc_exists', 'create_pvc', 'ensure_pvc', 'delete_pvc',
    'deployment_exists', 'create_deployment', 'delete_deployment',
    'statefulset_exists', 'create_statefulset', 'delete_statefulset',
    'wait_until_absent', 'remove_existing',
    'append_rule_to_ingress', 'delete_rule_from_ingress',
]
